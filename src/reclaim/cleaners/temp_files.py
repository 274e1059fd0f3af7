"""Cleaner for temporary files, preload state and thumbnail caches."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Iterable

from reclaim.models.candidate import ScanRoot
from reclaim.models.cleaner import FileScanCleaner
from reclaim.utils import xdg_cache_home

_VAR_TMP = Path("/var/tmp")
_PRELOAD_DIR = Path("/var/lib/preload")


def temp_roots() -> list[ScanRoot]:
    """Generic temporary directories shared by the temp and aged cleaners.

    Duplicates (e.g. ``TMPDIR=/var/tmp``) are dropped so a tree is not
    scanned twice in one pass.
    """
    roots: list[ScanRoot] = []
    seen: set[Path] = set()
    for path in (Path(tempfile.gettempdir()), _VAR_TMP, xdg_cache_home() / "tmp"):
        if path in seen:
            continue
        seen.add(path)
        roots.append(ScanRoot(path))
    return roots


class TempFilesCleaner(FileScanCleaner):
    """Removes files from temporary directories."""

    @property
    def id(self) -> str:
        return "temporary_files"

    @property
    def name(self) -> str:
        return "Temporary Files"

    @property
    def description(self) -> str:
        return (
            "Files left behind in the system and user temporary directories, "
            "preload state and cached thumbnails. Files still held open are kept."
        )

    def _scan_roots(self) -> Iterable[ScanRoot]:
        roots = temp_roots()
        if _PRELOAD_DIR.is_dir():
            roots.append(ScanRoot(_PRELOAD_DIR))
        return roots

    def _named_files(self) -> Iterable[Path]:
        thumbnails = xdg_cache_home() / "thumbnails"
        if not thumbnails.is_dir():
            return []
        return sorted(thumbnails.glob("*/*.png"))

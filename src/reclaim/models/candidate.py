"""Scan input and output dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_MAX_DEPTH = 10


@dataclass(frozen=True, slots=True)
class ScanRoot:
    """Directory tree to enumerate, with a file-name glob and depth bound.

    ``max_depth=None`` explores the whole tree.  The root itself is depth 0.
    """

    path: Path
    pattern: str = "*"
    max_depth: int | None = DEFAULT_MAX_DEPTH


@dataclass(frozen=True, slots=True)
class FileCandidate:
    """A file found by the scanner.

    Timestamps are POSIX seconds.  ``created`` is the birth time where the
    platform reports one, otherwise the inode change time.
    """

    path: Path
    size_bytes: int
    created: float
    modified: float

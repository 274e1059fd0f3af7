"""Cycle-safe, depth-bounded, cancellable recursive file scanner."""

from __future__ import annotations

import fnmatch
import logging
import os
import stat
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, Iterator

from reclaim.core.cancel import CancelToken
from reclaim.models.candidate import FileCandidate, ScanRoot

log = logging.getLogger(__name__)

CandidateFilter = Callable[[FileCandidate], bool]

# Freedesktop trash directory names; never descended into.
TRASH_DIR_PATTERNS = (".Trash", ".Trash-*")


class _VisitedSet:
    """Canonical paths of the directories on the active recursion stack.

    Owned by a single ``scan()`` call.  A directory is a member only while
    its frame is open, so the same directory reached later through another
    path is scanned again once the first visit has unwound.
    """

    def __init__(self) -> None:
        self._paths: set[str] = set()

    def __contains__(self, canonical: str) -> bool:
        return canonical in self._paths

    @contextmanager
    def enter(self, canonical: str) -> Iterator[None]:
        self._paths.add(canonical)
        try:
            yield
        finally:
            self._paths.discard(canonical)


def scan(
    root: Path | str,
    pattern: str = "*",
    max_depth: int | None = None,
    cancel: CancelToken | None = None,
) -> Iterator[FileCandidate]:
    """Lazily enumerate regular files under *root* whose name matches *pattern*.

    The returned iterator is single-pass.  Symlinked directories are followed,
    but a directory already open higher up the current path is skipped, which
    bounds the walk under symlink cycles.  Symlinks to files are never emitted.
    Trash directories (``.Trash``, ``.Trash-<uid>``) are never entered.

    Unreadable directories are skipped along with their subtree.  Files in
    directories deeper than *max_depth* (root = 0) are not explored.

    Raises:
        OperationCancelled: from the iterator, at the next file or directory
            once *cancel* is triggered.
        ValueError: if *max_depth* is negative.
    """
    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")
    return _scan(Path(root), pattern, max_depth, cancel or CancelToken())


def scan_root(root: ScanRoot, cancel: CancelToken | None = None) -> Iterator[FileCandidate]:
    """Scan a :class:`ScanRoot`."""
    return scan(root.path, root.pattern, root.max_depth, cancel)


def estimate(
    roots: Iterable[ScanRoot],
    cancel: CancelToken | None = None,
    accept: CandidateFilter | None = None,
) -> int:
    """Total size in bytes of the candidates under *roots* that pass *accept*."""
    total = 0
    for root in roots:
        for candidate in scan_root(root, cancel):
            if accept is None or accept(candidate):
                total += candidate.size_bytes
    return total


def stat_candidate(path: Path | str) -> FileCandidate | None:
    """Build a candidate for a single known path, or None if it is not a regular file."""
    try:
        st = os.stat(path, follow_symlinks=False)
    except OSError:
        return None
    if not stat.S_ISREG(st.st_mode):
        return None
    return _candidate(Path(path), st)


def _candidate(path: Path, st: os.stat_result) -> FileCandidate:
    return FileCandidate(
        path=path,
        size_bytes=st.st_size,
        created=getattr(st, "st_birthtime", st.st_ctime),
        modified=st.st_mtime,
    )


def _is_trash_dir(path: str) -> bool:
    name = os.path.basename(path)
    return any(fnmatch.fnmatchcase(name, p) for p in TRASH_DIR_PATTERNS)


def _scan(
    root: Path,
    pattern: str,
    max_depth: int | None,
    cancel: CancelToken,
) -> Iterator[FileCandidate]:
    if not root.is_dir():
        log.debug("Scan root not found: %s", root)
        return
    visited = _VisitedSet()
    yield from _walk(os.fspath(root), os.path.realpath(root), 0, pattern, max_depth, cancel, visited)


def _walk(
    path: str,
    canonical: str,
    depth: int,
    pattern: str,
    max_depth: int | None,
    cancel: CancelToken,
    visited: _VisitedSet,
) -> Iterator[FileCandidate]:
    with visited.enter(canonical):
        try:
            with os.scandir(path) as it:
                entries = list(it)
        except PermissionError:
            log.warning("Access denied, skipping directory: %s", path)
            return
        except OSError as e:
            log.warning("Cannot list directory %s: %s", path, e)
            return

        files: list[os.DirEntry[str]] = []
        subdirs: list[str] = []
        for entry in entries:
            try:
                if entry.is_dir():
                    subdirs.append(entry.path)
                elif entry.is_file(follow_symlinks=False) and fnmatch.fnmatch(entry.name, pattern):
                    files.append(entry)
            except OSError:
                log.debug("Cannot access: %s", entry.path)

        for entry in files:
            cancel.raise_if_cancelled()
            try:
                st = entry.stat(follow_symlinks=False)
            except OSError:
                log.debug("Cannot stat: %s", entry.path)
                continue
            yield _candidate(Path(entry.path), st)

        if max_depth is not None and depth >= max_depth:
            return

        for subdir in subdirs:
            cancel.raise_if_cancelled()
            if _is_trash_dir(subdir):
                log.debug("Skipping trash directory: %s", subdir)
                continue
            sub_canonical = os.path.realpath(subdir)
            if sub_canonical in visited:
                log.warning("Skipping directory already on the scan path: %s", subdir)
                continue
            yield from _walk(subdir, sub_canonical, depth + 1, pattern, max_depth, cancel, visited)

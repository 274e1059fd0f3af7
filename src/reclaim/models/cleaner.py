"""Base category cleaner interface."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from reclaim.core.cancel import CancelToken, OperationCancelled
from reclaim.core.reclaimer import Reclaimer
from reclaim.core.scanner import CandidateFilter, estimate, scan_root, stat_candidate
from reclaim.models.candidate import FileCandidate, ScanRoot
from reclaim.models.options import ReclaimMode
from reclaim.models.results import CleanOutcome, ReclaimOutcome

log = logging.getLogger(__name__)


class CategoryCleaner(ABC):
    """Base class for all category cleaners.

    Every cleaner must implement this interface to take part in an
    orchestrated run.  Implementations keep no per-run state on the
    instance: counters live in the call that produces them.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique identifier, e.g. 'temporary_files'."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name, e.g. 'Temporary Files'."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What this cleaner removes."""

    @property
    def requires_root(self) -> bool:
        """Whether this cleaner needs elevated privileges to do all of its work."""
        return False

    @property
    def unavailable_reason(self) -> str | None:
        """Why this cleaner has nothing to work on here, or None."""
        return None

    def is_available(self) -> bool:
        """Check if this cleaner is applicable on the current system."""
        return self.unavailable_reason is None

    @abstractmethod
    def estimate_size(self, cancel: CancelToken | None = None) -> int:
        """Bytes that execute() would reclaim right now. MUST NOT delete anything."""

    @abstractmethod
    def execute(self, cancel: CancelToken | None = None) -> CleanOutcome:
        """Reclaim this category's files.

        Skipped files (locked, vanished, denied) do not make the outcome
        unsuccessful.

        Raises:
            OperationCancelled: with ``partial`` set to the work done so far.
        """


class _Tally:
    """Per-call counters for one execute()."""

    __slots__ = ("files", "bytes", "skipped")

    def __init__(self) -> None:
        self.files = 0
        self.bytes = 0
        self.skipped = 0

    def outcome(self, success: bool, error: str | None = None) -> CleanOutcome:
        return CleanOutcome(success=success, files_processed=self.files, bytes_freed=self.bytes, error=error)


class FileScanCleaner(CategoryCleaner, ABC):
    """Base class for cleaners that reclaim files found on disk.

    Subclasses describe what to reclaim through ``_scan_roots()`` (pattern
    scans) and ``_named_files()`` (paths known ahead of time), and may narrow
    candidates with ``_candidate_filter()``.  The scan, filter, reclaim and
    tally loop is provided.
    """

    def __init__(self, reclaimer: Reclaimer | None = None, mode: ReclaimMode = ReclaimMode.TRASH) -> None:
        self._reclaimer = reclaimer or Reclaimer()
        self._mode = mode

    @property
    def mode(self) -> ReclaimMode:
        return self._mode

    def _scan_roots(self) -> Iterable[ScanRoot]:
        """Directory trees to scan."""
        return ()

    def _named_files(self) -> Iterable[Path]:
        """Individual files to reclaim without scanning."""
        return ()

    def _candidate_filter(self) -> CandidateFilter | None:
        """Predicate applied to every candidate; built once per call."""
        return None

    def _after_files(self, cancel: CancelToken) -> str | None:
        """Extra work once files are reclaimed.

        Returns an error message to mark the run unsuccessful, or None.
        """
        return None

    @property
    def unavailable_reason(self) -> str | None:
        if any(r.path.is_dir() for r in self._scan_roots()):
            return None
        if any(p.is_file() for p in self._named_files()):
            return None
        return f"No {self.name.lower()} locations found"

    def estimate_size(self, cancel: CancelToken | None = None) -> int:
        cancel = cancel or CancelToken()
        accept = self._candidate_filter()

        total = estimate(self._scan_roots(), cancel, accept)
        for candidate in self._named_candidates(cancel):
            if accept is None or accept(candidate):
                total += candidate.size_bytes

        log.info("Estimated %s: %d bytes", self.name, total)
        return total

    def execute(self, cancel: CancelToken | None = None) -> CleanOutcome:
        cancel = cancel or CancelToken()
        accept = self._candidate_filter()
        tally = _Tally()
        log.info("Starting %s", self.name)

        try:
            for root in self._scan_roots():
                cancel.raise_if_cancelled()
                if not root.path.is_dir():
                    log.info("Directory does not exist, skipping: %s", root.path)
                    continue
                log.debug("Scanning %s for %s", root.path, root.pattern)
                for candidate in scan_root(root, cancel):
                    if accept is None or accept(candidate):
                        self._reclaim(candidate, tally)

            for candidate in self._named_candidates(cancel):
                if accept is None or accept(candidate):
                    self._reclaim(candidate, tally)

            error = self._after_files(cancel)
        except OperationCancelled as exc:
            exc.partial = tally.outcome(success=False, error=str(exc))
            log.info("%s cancelled after %d files", self.name, tally.files)
            raise

        log.info(
            "Finished %s: %d files, %d bytes freed, %d skipped",
            self.name,
            tally.files,
            tally.bytes,
            tally.skipped,
        )
        return tally.outcome(success=error is None, error=error)

    def _named_candidates(self, cancel: CancelToken) -> Iterable[FileCandidate]:
        for path in self._named_files():
            cancel.raise_if_cancelled()
            candidate = stat_candidate(path)
            if candidate is None:
                log.debug("Not found: %s", path)
                continue
            yield candidate

    def _reclaim(self, candidate: FileCandidate, tally: _Tally) -> None:
        outcome = self._reclaimer.reclaim(candidate.path, self._mode)
        if outcome is ReclaimOutcome.RECLAIMED:
            tally.files += 1
            tally.bytes += candidate.size_bytes
        else:
            tally.skipped += 1

"""Cleaner for files in temporary directories older than a cutoff."""

from __future__ import annotations

import logging
import time
from typing import Iterable

from reclaim.cleaners.temp_files import temp_roots
from reclaim.core.reclaimer import Reclaimer
from reclaim.core.scanner import CandidateFilter
from reclaim.models.candidate import FileCandidate, ScanRoot
from reclaim.models.cleaner import FileScanCleaner
from reclaim.models.options import ReclaimMode

log = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86400

DEFAULT_DAYS = 30


class AgedFilesCleaner(FileScanCleaner):
    """Removes files that were created or last written before a cutoff.

    The cutoff is ``now - days`` taken at the start of every estimate or
    execute call, so a long-lived instance never works from a stale clock.
    """

    def __init__(
        self,
        days: int = DEFAULT_DAYS,
        reclaimer: Reclaimer | None = None,
        mode: ReclaimMode = ReclaimMode.TRASH,
    ) -> None:
        if days < 0:
            raise ValueError(f"days must be >= 0, got {days}")
        super().__init__(reclaimer, mode)
        self._days = days

    @property
    def id(self) -> str:
        return "old_files"

    @property
    def name(self) -> str:
        return "Old Files"

    @property
    def description(self) -> str:
        return f"Files in temporary directories not created or modified in the last {self._days} days"

    @property
    def days(self) -> int:
        return self._days

    def _scan_roots(self) -> Iterable[ScanRoot]:
        return temp_roots()

    def _candidate_filter(self) -> CandidateFilter:
        cutoff = time.time() - self._days * _SECONDS_PER_DAY
        log.debug("Old files cutoff: %s", time.ctime(cutoff))

        def _is_aged(candidate: FileCandidate) -> bool:
            return candidate.created < cutoff or candidate.modified < cutoff

        return _is_aged

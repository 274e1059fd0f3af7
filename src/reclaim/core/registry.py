"""Cleaner registry and per-run construction."""

from __future__ import annotations

import logging
from typing import Iterator

from reclaim.cleaners.aged_files import AgedFilesCleaner
from reclaim.cleaners.browser_data import BrowserDataCleaner
from reclaim.cleaners.dns_cache import DnsCacheCleaner
from reclaim.cleaners.system_logs import SystemLogsCleaner
from reclaim.cleaners.temp_files import TempFilesCleaner
from reclaim.core.reclaimer import Reclaimer
from reclaim.models.cleaner import CategoryCleaner
from reclaim.models.options import CleaningOptions

log = logging.getLogger(__name__)


class CleanerRegistry:
    """Stores and retrieves the cleaners of one run."""

    def __init__(self) -> None:
        self._cleaners: dict[str, CategoryCleaner] = {}

    def register(self, cleaner: CategoryCleaner) -> None:
        """Register a cleaner instance."""
        if cleaner.id in self._cleaners:
            log.warning("Cleaner '%s' already registered, skipping duplicate", cleaner.id)
            return
        self._cleaners[cleaner.id] = cleaner
        log.debug("Registered cleaner: %s (%s)", cleaner.id, cleaner.name)

    def get(self, cleaner_id: str) -> CategoryCleaner | None:
        return self._cleaners.get(cleaner_id)

    def __len__(self) -> int:
        return len(self._cleaners)

    def __iter__(self) -> Iterator[CategoryCleaner]:
        return iter(self._cleaners.values())

    def __contains__(self, cleaner_id: str) -> bool:
        return cleaner_id in self._cleaners


def build_registry(options: CleaningOptions, reclaimer: Reclaimer | None = None) -> CleanerRegistry:
    """Construct every cleaner for a run, configured from *options*.

    Cleaners are built fresh per run so the reclamation mode and the age
    cutoff never leak between runs.
    """
    reclaimer = reclaimer or Reclaimer()
    mode = options.reclaim_mode

    registry = CleanerRegistry()
    registry.register(TempFilesCleaner(reclaimer, mode))
    registry.register(SystemLogsCleaner(reclaimer, mode))
    registry.register(AgedFilesCleaner(options.days_for_old_files, reclaimer, mode))
    registry.register(BrowserDataCleaner(reclaimer, mode))
    registry.register(DnsCacheCleaner())
    return registry

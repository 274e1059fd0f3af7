"""Cleaner that flushes the resolver's DNS cache."""

from __future__ import annotations

import logging

from reclaim.core.cancel import CancelToken
from reclaim.core.process import ProcessStartError, run_process
from reclaim.models.cleaner import CategoryCleaner
from reclaim.models.results import CleanOutcome
from reclaim.utils import has_command

log = logging.getLogger(__name__)


class DnsCacheCleaner(CategoryCleaner):
    """Flushes systemd-resolved's cache. Frees no disk space."""

    @property
    def id(self) -> str:
        return "dns_cache"

    @property
    def name(self) -> str:
        return "DNS Cache"

    @property
    def description(self) -> str:
        return "Flushes cached DNS lookups held by systemd-resolved"

    @property
    def unavailable_reason(self) -> str | None:
        if not has_command("resolvectl"):
            return "resolvectl not found"
        return None

    def estimate_size(self, cancel: CancelToken | None = None) -> int:
        return 0

    def execute(self, cancel: CancelToken | None = None) -> CleanOutcome:
        cancel = cancel or CancelToken()
        cancel.raise_if_cancelled()
        log.info("Flushing DNS cache")
        try:
            run_process("resolvectl", ("flush-caches",), cancel)
        except ProcessStartError as e:
            log.error("Failed to flush DNS cache: %s", e)
            return CleanOutcome(success=False, error=str(e))
        # A non-zero exit is already logged and does not fail the category.
        return CleanOutcome(success=True)

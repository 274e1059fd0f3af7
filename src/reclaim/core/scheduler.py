"""Periodic cleaning on a fixed wall-clock interval."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from reclaim.core.cancel import CancelToken
from reclaim.core.orchestrator import CleaningOrchestrator
from reclaim.models.options import CleaningOptions
from reclaim.models.results import CleaningResult

log = logging.getLogger(__name__)

_SECONDS_PER_HOUR = 3600


class CleaningScheduler:
    """Runs the orchestrator every *interval_hours* until cancelled.

    At most one schedule is active; scheduling again replaces it.  The first
    run happens one interval after scheduling.  A run that raises is logged
    and the schedule keeps firing.
    """

    def __init__(
        self,
        orchestrator: CleaningOrchestrator,
        on_complete: Callable[[CleaningResult], None] | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._on_complete = on_complete
        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._interval_hours: float | None = None

    @property
    def is_scheduled(self) -> bool:
        with self._lock:
            return self._stop_event is not None

    @property
    def interval_hours(self) -> float | None:
        return self._interval_hours

    def schedule(self, options: CleaningOptions, interval_hours: float) -> None:
        """Start firing a cleaning run with *options* every *interval_hours*."""
        if interval_hours <= 0:
            raise ValueError(f"interval_hours must be > 0, got {interval_hours}")

        with self._lock:
            self._stop_locked()
            stop_event = threading.Event()
            interval = interval_hours * _SECONDS_PER_HOUR

            def _loop() -> None:
                while not stop_event.wait(interval):
                    self._fire(options)

            thread = threading.Thread(target=_loop, name="reclaim-scheduler", daemon=True)
            self._stop_event = stop_event
            self._thread = thread
            self._interval_hours = interval_hours
            thread.start()

        log.info("Scheduled cleaning every %s hours", interval_hours)

    def cancel_schedule(self) -> None:
        """Stop future runs. A run already in progress finishes on its own."""
        with self._lock:
            if self._stop_event is None:
                return
            self._stop_locked()
        log.info("Cleaning schedule cancelled")

    def _stop_locked(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        self._stop_event = None
        self._thread = None
        self._interval_hours = None

    def _fire(self, options: CleaningOptions) -> None:
        log.info("Scheduled cleaning run starting")
        try:
            result = self._orchestrator.run(options, CancelToken())
        except Exception:
            log.exception("Scheduled cleaning run failed")
            return
        if self._on_complete:
            try:
                self._on_complete(result)
            except Exception:
                log.exception("Scheduled run completion callback failed")

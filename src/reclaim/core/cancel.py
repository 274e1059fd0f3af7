"""Cooperative cancellation shared by scanners, cleaners and the orchestrator."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reclaim.models.results import CleanOutcome


class OperationCancelled(Exception):
    """Raised at a cancellation checkpoint once cancellation was requested.

    Cleaners attach the work they completed before stopping as ``partial``
    so the orchestrator can still report it.
    """

    def __init__(self, message: str = "Operation was cancelled") -> None:
        super().__init__(message)
        self.partial: CleanOutcome | None = None


class CancelToken:
    """Thread-safe, one-way cancellation flag.

    One token is shared by every worker of a run; once cancelled it stays
    cancelled.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelled()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or *timeout* elapses. Returns the flag."""
        return self._event.wait(timeout)

"""Per-item, per-category and aggregate cleaning results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


class ReclaimOutcome(str, Enum):
    """What happened to a single file handed to the reclaimer."""

    RECLAIMED = "reclaimed"
    MISSING = "missing"
    IN_USE = "in_use"
    FAILED = "failed"


@dataclass(slots=True)
class CleanOutcome:
    """Result of one cleaner execution."""

    success: bool
    files_processed: int = 0
    bytes_freed: int = 0
    error: str | None = None


@dataclass(slots=True)
class ServiceResult:
    """Outcome of one category within an orchestrated run."""

    cleaner_id: str
    name: str
    started_at: datetime
    finished_at: datetime | None = None
    success: bool = False
    files_processed: int = 0
    bytes_freed: int = 0
    error: str | None = None


@dataclass(slots=True)
class CleaningResult:
    """Aggregate outcome of an orchestrated run.

    ``service_results`` is in completion order, which carries no meaning.
    """

    started_at: datetime
    finished_at: datetime | None = None
    service_results: list[ServiceResult] = field(default_factory=list)
    total_files_processed: int = 0
    total_bytes_freed: int = 0

    @property
    def duration(self) -> timedelta:
        if self.finished_at is None:
            return timedelta(0)
        return self.finished_at - self.started_at

    @property
    def success(self) -> bool:
        return all(r.success for r in self.service_results)

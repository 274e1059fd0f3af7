"""Cleaning options and reclamation mode."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ReclaimMode(str, Enum):
    """How a reclaimed file leaves its location."""

    TRASH = "trash"
    PERMANENT = "permanent"


@dataclass(frozen=True, slots=True)
class CleaningOptions:
    """Which categories a run includes and how files are reclaimed.

    Every category is included by default.  ``move_to_trash=False`` switches
    the run to permanent deletion.
    """

    include_temporary_files: bool = True
    include_log_files: bool = True
    include_event_logs: bool = True
    include_old_files: bool = True
    include_browser_history: bool = True
    include_browser_cookies: bool = True
    include_dns_cache: bool = True
    days_for_old_files: int = 30
    move_to_trash: bool = True

    def __post_init__(self) -> None:
        if self.days_for_old_files < 0:
            raise ValueError(f"days_for_old_files must be >= 0, got {self.days_for_old_files}")

    @property
    def reclaim_mode(self) -> ReclaimMode:
        return ReclaimMode.TRASH if self.move_to_trash else ReclaimMode.PERMANENT

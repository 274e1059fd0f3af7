"""Reclaim data models."""

from reclaim.models.candidate import FileCandidate, ScanRoot
from reclaim.models.options import CleaningOptions, ReclaimMode
from reclaim.models.results import CleaningResult, CleanOutcome, ReclaimOutcome, ServiceResult

__all__ = [
    "CleanOutcome",
    "CleaningOptions",
    "CleaningResult",
    "FileCandidate",
    "ReclaimMode",
    "ReclaimOutcome",
    "ScanRoot",
    "ServiceResult",
]

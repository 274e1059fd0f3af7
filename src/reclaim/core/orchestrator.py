"""Concurrent multi-category cleaning orchestration."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable

from reclaim.core.cancel import CancelToken, OperationCancelled
from reclaim.core.registry import CleanerRegistry, build_registry
from reclaim.models.cleaner import CategoryCleaner
from reclaim.models.options import CleaningOptions
from reclaim.models.results import CleaningResult, ServiceResult

log = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str], None]  # (cleaner_id, status)
ResultCallback = Callable[[ServiceResult], None]
RegistryFactory = Callable[[CleaningOptions], CleanerRegistry]

# Option flags -> cleaner id.  Several flags may share one cleaner.
_SELECTION: tuple[tuple[str, str], ...] = (
    ("include_temporary_files", "temporary_files"),
    ("include_log_files", "system_logs"),
    ("include_event_logs", "system_logs"),
    ("include_old_files", "old_files"),
    ("include_browser_history", "browser_data"),
    ("include_browser_cookies", "browser_data"),
    ("include_dns_cache", "dns_cache"),
)


def selected_ids(options: CleaningOptions) -> list[str]:
    """Cleaner ids selected by *options*, each at most once, in a stable order."""
    ids: list[str] = []
    for flag, cleaner_id in _SELECTION:
        if getattr(options, flag) and cleaner_id not in ids:
            ids.append(cleaner_id)
    return ids


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _report_progress(on_progress: ProgressCallback | None, cleaner_id: str, status: str) -> None:
    if on_progress is None:
        return
    try:
        on_progress(cleaner_id, status)
    except Exception:
        log.exception("Progress callback failed for cleaner '%s'", cleaner_id)


class CleaningOrchestrator:
    """Runs the selected category cleaners concurrently and aggregates results.

    A failure or cancellation in one category is recorded in its
    ServiceResult and never affects the others.
    """

    def __init__(self, build: RegistryFactory = build_registry) -> None:
        self._build = build

    def run(
        self,
        options: CleaningOptions,
        cancel: CancelToken | None = None,
        on_progress: ProgressCallback | None = None,
        on_result: ResultCallback | None = None,
    ) -> CleaningResult:
        """Clean every category selected by *options*.

        Args:
            options: Which categories to include and how to reclaim files.
            cancel: Shared by all workers; cancelled categories report
                "Operation was cancelled" with whatever they had done.
            on_progress: Called with (cleaner_id, status) where status is
                "cleaning", "done", "error" or "cancelled".
            on_result: Called once per category as it finishes.

        Returns:
            The aggregate result.  ``service_results`` is in completion order.
        """
        cancel = cancel or CancelToken()
        result = CleaningResult(started_at=_now())
        log.info("Starting cleaning run: %s", options)

        cleaners = self._resolve(options)
        lock = threading.Lock()

        def _run_cleaner(cleaner: CategoryCleaner) -> None:
            service = self._run_one(cleaner, cancel, on_progress)
            with lock:
                result.service_results.append(service)
            if on_result:
                try:
                    on_result(service)
                except Exception:
                    log.exception("Result callback failed for cleaner '%s'", cleaner.id)

        if cleaners:
            with ThreadPoolExecutor(max_workers=len(cleaners), thread_name_prefix="reclaim") as executor:
                futures = [executor.submit(_run_cleaner, cleaner) for cleaner in cleaners]
                for future in futures:
                    future.result()

        result.total_files_processed = sum(r.files_processed for r in result.service_results)
        result.total_bytes_freed = sum(r.bytes_freed for r in result.service_results)
        result.finished_at = _now()
        log.info(
            "Cleaning run finished in %s: %d files, %d bytes freed, success=%s",
            result.duration,
            result.total_files_processed,
            result.total_bytes_freed,
            result.success,
        )
        return result

    def estimate(self, options: CleaningOptions, cancel: CancelToken | None = None) -> dict[str, int]:
        """Estimate reclaimable bytes per selected category without deleting anything.

        Categories whose estimate fails or is cancelled are reported as 0.
        """
        cancel = cancel or CancelToken()
        cleaners = self._resolve(options)
        estimates: dict[str, int] = {}
        lock = threading.Lock()

        def _estimate_cleaner(cleaner: CategoryCleaner) -> None:
            try:
                size = cleaner.estimate_size(cancel)
            except OperationCancelled:
                log.info("Estimate for '%s' cancelled", cleaner.id)
                size = 0
            except Exception:
                log.exception("Cleaner '%s' failed during estimate", cleaner.id)
                size = 0
            with lock:
                estimates[cleaner.id] = size

        if cleaners:
            with ThreadPoolExecutor(max_workers=len(cleaners), thread_name_prefix="reclaim") as executor:
                futures = [executor.submit(_estimate_cleaner, cleaner) for cleaner in cleaners]
                for future in futures:
                    future.result()

        return {c.id: estimates.get(c.id, 0) for c in cleaners}

    def _resolve(self, options: CleaningOptions) -> list[CategoryCleaner]:
        registry = self._build(options)
        cleaners: list[CategoryCleaner] = []
        for cleaner_id in selected_ids(options):
            cleaner = registry.get(cleaner_id)
            if cleaner is None:
                log.warning("Cleaner '%s' not found, skipping", cleaner_id)
                continue
            cleaners.append(cleaner)
        return cleaners

    @staticmethod
    def _run_one(
        cleaner: CategoryCleaner,
        cancel: CancelToken,
        on_progress: ProgressCallback | None,
    ) -> ServiceResult:
        service = ServiceResult(cleaner_id=cleaner.id, name=cleaner.name, started_at=_now())
        _report_progress(on_progress, cleaner.id, "cleaning")

        try:
            outcome = cleaner.execute(cancel)
        except OperationCancelled as exc:
            log.info("Cleaner '%s' was cancelled", cleaner.id)
            if exc.partial is not None:
                service.files_processed = exc.partial.files_processed
                service.bytes_freed = exc.partial.bytes_freed
            service.error = str(exc)
            status = "cancelled"
        except Exception as exc:
            log.exception("Cleaner '%s' failed during clean", cleaner.id)
            service.error = str(exc) or type(exc).__name__
            status = "error"
        else:
            service.success = outcome.success
            service.files_processed = outcome.files_processed
            service.bytes_freed = outcome.bytes_freed
            service.error = outcome.error
            status = "done" if outcome.success else "error"

        service.finished_at = _now()
        _report_progress(on_progress, cleaner.id, status)
        return service

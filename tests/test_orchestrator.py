"""Tests for the cleaning orchestrator."""

from __future__ import annotations

import os
import threading
import time

import pytest

from reclaim.core.cancel import CancelToken, OperationCancelled
from reclaim.core.orchestrator import CleaningOrchestrator, selected_ids
from reclaim.core.registry import CleanerRegistry, build_registry
from reclaim.models.cleaner import CategoryCleaner
from reclaim.models.options import CleaningOptions, ReclaimMode
from reclaim.models.results import CleanOutcome

ALL_IDS = ["temporary_files", "system_logs", "old_files", "browser_data", "dns_cache"]


class FakeCleaner(CategoryCleaner):
    """Test cleaner that doesn't touch the filesystem."""

    def __init__(
        self,
        cleaner_id: str,
        files: int = 1,
        size: int = 1024,
        fail: bool = False,
        unsuccessful: bool = False,
        wait_for_cancel: bool = False,
        delay: float = 0,
    ):
        self._id = cleaner_id
        self._files = files
        self._size = size
        self._fail = fail
        self._unsuccessful = unsuccessful
        self._wait_for_cancel = wait_for_cancel
        self._delay = delay
        self.calls = 0
        self.threads: list[str] = []

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return f"Fake Cleaner ({self._id})"

    @property
    def description(self) -> str:
        return "A fake cleaner for testing"

    def estimate_size(self, cancel=None) -> int:
        if self._fail:
            raise RuntimeError("estimate failed")
        return self._size

    def execute(self, cancel=None) -> CleanOutcome:
        self.calls += 1
        self.threads.append(threading.current_thread().name)
        if self._delay:
            time.sleep(self._delay)
        if self._fail:
            raise RuntimeError("clean failed")
        if self._wait_for_cancel:
            cancel.wait(5)
            exc = OperationCancelled()
            exc.partial = CleanOutcome(success=False, files_processed=1, bytes_freed=10, error=str(exc))
            raise exc
        if self._unsuccessful:
            return CleanOutcome(success=False, files_processed=self._files, bytes_freed=self._size, error="partly")
        return CleanOutcome(success=True, files_processed=self._files, bytes_freed=self._size)


def _orchestrator(*cleaners: CategoryCleaner) -> CleaningOrchestrator:
    registry = CleanerRegistry()
    for cleaner in cleaners:
        registry.register(cleaner)
    return CleaningOrchestrator(build=lambda options: registry)


def _only(**flags) -> CleaningOptions:
    base = {
        "include_temporary_files": False,
        "include_log_files": False,
        "include_event_logs": False,
        "include_old_files": False,
        "include_browser_history": False,
        "include_browser_cookies": False,
        "include_dns_cache": False,
    }
    base.update(flags)
    return CleaningOptions(**base)


@pytest.fixture
def fakes():
    return {cid: FakeCleaner(cid, files=i + 1, size=(i + 1) * 100) for i, cid in enumerate(ALL_IDS)}


class TestSelection:
    def test_all_selected_by_default(self):
        assert selected_ids(CleaningOptions()) == ALL_IDS

    def test_nothing_selected(self):
        assert selected_ids(_only()) == []

    @pytest.mark.parametrize("flag", ["include_log_files", "include_event_logs"])
    def test_either_log_flag_selects_system_logs(self, flag):
        assert selected_ids(_only(**{flag: True})) == ["system_logs"]

    @pytest.mark.parametrize("flag", ["include_browser_history", "include_browser_cookies"])
    def test_either_browser_flag_selects_browser_data(self, flag):
        assert selected_ids(_only(**{flag: True})) == ["browser_data"]

    def test_shared_cleaner_scheduled_once(self, fakes):
        orchestrator = _orchestrator(*fakes.values())
        result = orchestrator.run(_only(include_log_files=True, include_event_logs=True))
        assert fakes["system_logs"].calls == 1
        assert [r.cleaner_id for r in result.service_results] == ["system_logs"]


class TestRun:
    def test_aggregates_totals(self, fakes):
        result = _orchestrator(*fakes.values()).run(CleaningOptions())

        assert result.success is True
        assert len(result.service_results) == 5
        assert result.total_files_processed == 1 + 2 + 3 + 4 + 5
        assert result.total_bytes_freed == 100 + 200 + 300 + 400 + 500
        assert result.total_bytes_freed == sum(r.bytes_freed for r in result.service_results)
        assert result.finished_at >= result.started_at
        assert result.started_at.tzinfo is not None

    def test_empty_selection_succeeds(self, fakes):
        result = _orchestrator(*fakes.values()).run(_only())
        assert result.success is True
        assert result.service_results == []
        assert result.total_bytes_freed == 0

    def test_failure_is_isolated(self):
        orchestrator = _orchestrator(
            FakeCleaner("temporary_files", size=100),
            FakeCleaner("dns_cache", fail=True),
        )
        result = orchestrator.run(_only(include_temporary_files=True, include_dns_cache=True))

        by_id = {r.cleaner_id: r for r in result.service_results}
        assert by_id["temporary_files"].success is True
        assert by_id["dns_cache"].success is False
        assert by_id["dns_cache"].error == "clean failed"
        assert result.success is False
        assert result.total_bytes_freed == 100

    def test_unsuccessful_outcome_keeps_counts(self):
        orchestrator = _orchestrator(FakeCleaner("system_logs", files=2, size=50, unsuccessful=True))
        result = orchestrator.run(_only(include_log_files=True))

        (service,) = result.service_results
        assert service.success is False
        assert service.error == "partly"
        assert service.files_processed == 2
        assert result.total_bytes_freed == 50

    def test_runs_concurrently(self):
        cleaners = [FakeCleaner(cid, delay=0.3) for cid in ALL_IDS]
        start = time.monotonic()
        _orchestrator(*cleaners).run(CleaningOptions())
        assert time.monotonic() - start < 1.2
        assert len({c.threads[0] for c in cleaners}) == 5

    def test_missing_cleaner_skipped(self):
        result = _orchestrator(FakeCleaner("dns_cache")).run(CleaningOptions())
        assert [r.cleaner_id for r in result.service_results] == ["dns_cache"]

    def test_callbacks(self, fakes):
        progress: list[tuple[str, str]] = []
        finished: list[str] = []
        lock = threading.Lock()

        def on_progress(cleaner_id, status):
            with lock:
                progress.append((cleaner_id, status))

        _orchestrator(*fakes.values()).run(
            _only(include_temporary_files=True, include_dns_cache=True),
            on_progress=on_progress,
            on_result=lambda r: finished.append(r.cleaner_id),
        )
        assert sorted(progress) == [
            ("dns_cache", "cleaning"),
            ("dns_cache", "done"),
            ("temporary_files", "cleaning"),
            ("temporary_files", "done"),
        ]
        assert sorted(finished) == ["dns_cache", "temporary_files"]


class TestCallbackFailures:
    def test_result_callback_error_does_not_abort_run(self, fakes):
        def on_result(service):
            raise RuntimeError("display went away")

        result = _orchestrator(*fakes.values()).run(CleaningOptions(), on_result=on_result)
        assert result.success is True
        assert len(result.service_results) == 5
        assert result.finished_at is not None

    def test_progress_callback_error_does_not_fail_category(self, fakes):
        def on_progress(cleaner_id, status):
            raise RuntimeError("progress bar broke")

        result = _orchestrator(*fakes.values()).run(_only(include_dns_cache=True), on_progress=on_progress)
        (service,) = result.service_results
        assert service.success is True
        assert fakes["dns_cache"].calls == 1


class TestOverlap:
    def test_temp_and_aged_files_share_files_without_double_counting(self, sandbox, make_file):
        for name, size in (("a.dat", 50), ("b.dat", 70)):
            path = make_file(sandbox.tmp / name, size)
            old = time.time() - 40 * 86400
            os.utime(path, (old, old))

        options = _only(include_temporary_files=True, include_old_files=True, move_to_trash=False)
        result = CleaningOrchestrator().run(options)

        assert result.success is True
        assert result.total_files_processed == 2
        assert result.total_bytes_freed == 120
        assert list(sandbox.tmp.iterdir()) == []


class TestCancellation:
    def test_cancelled_category_reports_partial_work(self):
        token = CancelToken()
        statuses: dict[str, str] = {}
        orchestrator = _orchestrator(
            FakeCleaner("temporary_files", wait_for_cancel=True),
            FakeCleaner("dns_cache", size=0),
        )
        threading.Timer(0.1, token.cancel).start()

        result = orchestrator.run(
            _only(include_temporary_files=True, include_dns_cache=True),
            cancel=token,
            on_progress=lambda cid, status: statuses.__setitem__(cid, status),
        )

        by_id = {r.cleaner_id: r for r in result.service_results}
        cancelled = by_id["temporary_files"]
        assert cancelled.success is False
        assert cancelled.error == "Operation was cancelled"
        assert cancelled.files_processed == 1
        assert cancelled.bytes_freed == 10
        assert by_id["dns_cache"].success is True
        assert statuses == {"temporary_files": "cancelled", "dns_cache": "done"}
        assert result.success is False


class TestEstimate:
    def test_estimate_per_category(self, fakes):
        estimates = _orchestrator(*fakes.values()).estimate(_only(include_temporary_files=True, include_old_files=True))
        assert estimates == {"temporary_files": 100, "old_files": 300}

    def test_failed_estimate_is_zero(self):
        estimates = _orchestrator(FakeCleaner("dns_cache", fail=True)).estimate(_only(include_dns_cache=True))
        assert estimates == {"dns_cache": 0}


class TestBuildRegistry:
    def test_builds_every_category(self):
        registry = build_registry(CleaningOptions())
        assert sorted(c.id for c in registry) == sorted(ALL_IDS)

    def test_mode_and_days_come_from_options(self):
        registry = build_registry(CleaningOptions(move_to_trash=False, days_for_old_files=7))
        assert registry.get("temporary_files").mode is ReclaimMode.PERMANENT
        assert registry.get("old_files").days == 7

    def test_duplicate_registration_ignored(self):
        registry = CleanerRegistry()
        first = FakeCleaner("dns_cache")
        registry.register(first)
        registry.register(FakeCleaner("dns_cache"))
        assert len(registry) == 1
        assert registry.get("dns_cache") is first
        assert "dns_cache" in registry

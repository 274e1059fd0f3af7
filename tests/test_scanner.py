"""Tests for the recursive file scanner."""

from __future__ import annotations

import os

import pytest

from reclaim.core.cancel import CancelToken, OperationCancelled
from reclaim.core.scanner import estimate, scan, scan_root, stat_candidate
from reclaim.models.candidate import ScanRoot


@pytest.fixture
def tree(tmp_path, make_file):
    root = tmp_path / "tree"
    make_file(root / "a.txt", 1)
    make_file(root / "a.log", 2)
    make_file(root / "d1" / "b.txt", 3)
    make_file(root / "d1" / "d2" / "c.txt", 4)
    return root


def _names(candidates) -> list[str]:
    return sorted(c.path.name for c in candidates)


class TestScan:
    def test_finds_all_files_recursively(self, tree):
        assert _names(scan(tree)) == ["a.log", "a.txt", "b.txt", "c.txt"]

    def test_pattern_matches_file_names(self, tree):
        assert _names(scan(tree, "*.txt")) == ["a.txt", "b.txt", "c.txt"]

    def test_candidate_carries_size_and_times(self, tree):
        (candidate,) = list(scan(tree, "a.log"))
        assert candidate.path == tree / "a.log"
        assert candidate.size_bytes == 2
        assert candidate.modified > 0
        assert candidate.created > 0

    @pytest.mark.parametrize(
        ("max_depth", "expected"),
        [
            (0, ["a.log", "a.txt"]),
            (1, ["a.log", "a.txt", "b.txt"]),
            (2, ["a.log", "a.txt", "b.txt", "c.txt"]),
        ],
    )
    def test_depth_bound(self, tree, max_depth, expected):
        assert _names(scan(tree, max_depth=max_depth)) == expected

    def test_negative_depth_rejected(self, tree):
        with pytest.raises(ValueError):
            scan(tree, max_depth=-1)

    def test_missing_root_yields_nothing(self, tmp_path):
        assert list(scan(tmp_path / "nope")) == []

    def test_file_root_yields_nothing(self, tree):
        assert list(scan(tree / "a.txt")) == []

    def test_scan_root(self, tree):
        assert _names(scan_root(ScanRoot(tree, "*.txt", max_depth=0))) == ["a.txt"]


class TestSymlinks:
    def test_cycle_terminates(self, tmp_path, make_file):
        root = tmp_path / "cyclic"
        make_file(root / "f.txt")
        make_file(root / "sub" / "g.txt")
        (root / "sub" / "loop").symlink_to(root, target_is_directory=True)

        assert _names(scan(root, max_depth=None)) == ["f.txt", "g.txt"]

    def test_self_link_terminates(self, tmp_path, make_file):
        root = tmp_path / "self"
        make_file(root / "f.txt")
        (root / "me").symlink_to(".", target_is_directory=True)

        assert _names(scan(root, max_depth=None)) == ["f.txt"]

    def test_directory_reached_twice_is_rescanned(self, tmp_path, make_file):
        root = tmp_path / "diamond"
        make_file(root / "a" / "x.txt")
        (root / "b").mkdir()
        (root / "b" / "to_a").symlink_to(root / "a", target_is_directory=True)

        paths = sorted(str(c.path.relative_to(root)) for c in scan(root))
        assert paths == ["a/x.txt", "b/to_a/x.txt"]

    def test_symlinked_files_not_emitted(self, tmp_path, make_file):
        root = tmp_path / "links"
        target = make_file(tmp_path / "outside.txt", 10)
        make_file(root / "real.txt")
        (root / "link.txt").symlink_to(target)

        assert _names(scan(root)) == ["real.txt"]


class TestTrashDirectories:
    @pytest.mark.parametrize("trash_name", [".Trash", ".Trash-1000"])
    def test_trash_directories_skipped(self, tmp_path, make_file, trash_name):
        root = tmp_path / "mount"
        make_file(root / "keep.txt")
        make_file(root / trash_name / "files" / "old.txt")
        make_file(root / trash_name / "info" / "old.txt.trashinfo")

        assert _names(scan(root)) == ["keep.txt"]

    def test_similar_names_still_scanned(self, tmp_path, make_file):
        root = tmp_path / "mount"
        make_file(root / "Trash" / "a.txt")
        make_file(root / ".Trashcan" / "b.txt")

        assert _names(scan(root)) == ["a.txt", "b.txt"]


class TestAccessDenied:
    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
    def test_unreadable_directory_skipped(self, tmp_path, make_file):
        root = tmp_path / "denied"
        make_file(root / "ok" / "visible.txt")
        make_file(root / "locked" / "hidden.txt")
        (root / "locked").chmod(0)
        try:
            assert _names(scan(root)) == ["visible.txt"]
        finally:
            (root / "locked").chmod(0o755)


class TestCancellation:
    def test_cancelled_before_start(self, tree):
        token = CancelToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            list(scan(tree, cancel=token))

    def test_cancelled_mid_scan(self, tree):
        token = CancelToken()
        it = scan(tree, cancel=token)
        first = next(it)
        assert first.path.exists()

        token.cancel()
        with pytest.raises(OperationCancelled):
            next(it)

    def test_cancel_message(self, tree):
        token = CancelToken()
        token.cancel()
        with pytest.raises(OperationCancelled, match="Operation was cancelled"):
            next(scan(tree, cancel=token))


class TestHelpers:
    def test_estimate_sums_sizes(self, tree):
        assert estimate([ScanRoot(tree)]) == 10

    def test_estimate_with_filter(self, tree):
        assert estimate([ScanRoot(tree)], accept=lambda c: c.size_bytes > 2) == 7

    def test_stat_candidate(self, tree):
        candidate = stat_candidate(tree / "a.log")
        assert candidate is not None
        assert candidate.size_bytes == 2

    def test_stat_candidate_missing_or_directory(self, tree):
        assert stat_candidate(tree / "missing") is None
        assert stat_candidate(tree / "d1") is None

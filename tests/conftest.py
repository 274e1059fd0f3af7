"""Shared test fixtures."""

from __future__ import annotations

import shutil
import uuid
from pathlib import Path
from types import SimpleNamespace

import pytest

import reclaim.cleaners.system_logs as system_logs
import reclaim.cleaners.temp_files as temp_files
import reclaim.core.reclaimer as reclaimer


@pytest.fixture(autouse=True)
def sandbox(tmp_path, monkeypatch):
    """Point every cleaner location and the trash at a temp directory."""
    root = tmp_path / "sandbox"
    dirs = SimpleNamespace(
        tmp=root / "tmp",
        var_tmp=root / "var_tmp",
        preload=root / "preload",
        cache=root / "cache",
        config=root / "config",
        home=root / "home",
        log=root / "log",
        crash=root / "crash",
        coredump=root / "coredump",
        trash=root / "trash",
    )
    for name, path in vars(dirs).items():
        if name != "preload":
            path.mkdir(parents=True)

    monkeypatch.setenv("XDG_CACHE_HOME", str(dirs.cache))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(dirs.config))
    monkeypatch.setenv("HOME", str(dirs.home))
    monkeypatch.setattr(temp_files.tempfile, "gettempdir", lambda: str(dirs.tmp))
    monkeypatch.setattr(temp_files, "_VAR_TMP", dirs.var_tmp)
    monkeypatch.setattr(temp_files, "_PRELOAD_DIR", dirs.preload)
    monkeypatch.setattr(system_logs, "_LOG_DIR", dirs.log)
    monkeypatch.setattr(
        system_logs,
        "_CRASH_DIRS",
        ((dirs.crash, "*.crash"), (dirs.coredump, "core.*")),
    )

    def _fake_send2trash(path: str) -> None:
        src = Path(path)
        shutil.move(src, dirs.trash / f"{uuid.uuid4().hex}-{src.name}")

    monkeypatch.setattr(reclaimer, "send2trash", _fake_send2trash)
    return dirs


@pytest.fixture
def make_file():
    """Create a file of *size* bytes, with parents."""

    def _make(path: Path, size: int = 0) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x" * size)
        return path

    return _make

"""JSON-backed persistence of the user's cleaning options."""

from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Any

from reclaim.models.options import CleaningOptions
from reclaim.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "reclaim"
_SETTINGS_FILE = "settings.json"


def settings_path() -> Path:
    """Default location: $XDG_CONFIG_HOME/reclaim/settings.json."""
    return xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE


def option_names() -> list[str]:
    """Names of the persisted CleaningOptions fields."""
    return [f.name for f in dataclasses.fields(CleaningOptions)]


def options_from_dict(data: dict[str, Any]) -> CleaningOptions:
    """Build options from *data*, ignoring unknown keys.

    Raises:
        ValueError: if a known key has the wrong type or an invalid value.
    """
    values: dict[str, Any] = {}
    for f in dataclasses.fields(CleaningOptions):
        if f.name not in data:
            continue
        value = data[f.name]
        expected = int if f.name == "days_for_old_files" else bool
        # bool is an int subclass; reject it where a day count is expected.
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ValueError(f"{f.name}: expected {expected.__name__}, got {value!r}")
        values[f.name] = value
    return CleaningOptions(**values)


def load_options(path: Path | None = None) -> CleaningOptions:
    """Load saved options, falling back to defaults when missing or invalid."""
    path = path or settings_path()
    if not path.exists():
        return CleaningOptions()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("settings root must be an object")
        return options_from_dict(data)
    except (json.JSONDecodeError, OSError, ValueError) as e:
        log.warning("Could not load settings from %s: %s", path, e)
        return CleaningOptions()


def save_options(options: CleaningOptions, path: Path | None = None) -> Path:
    """Persist *options* and return the file written.

    Raises:
        OSError: if the file cannot be written.
    """
    path = path or settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(dataclasses.asdict(options), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    log.debug("Saved settings to %s", path)
    return path

"""Cleaner for browser history and cookie databases."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from reclaim.models.cleaner import FileScanCleaner
from reclaim.utils import xdg_config_home

# Chromium-family profile roots, relative to XDG_CONFIG_HOME.
_CHROMIUM_VENDORS = (
    "google-chrome",
    "chromium",
    "microsoft-edge",
    "BraveSoftware/Brave-Browser",
)
_CHROMIUM_FILES = ("History", "Cookies")

_FIREFOX_FILES = ("places.sqlite", "cookies.sqlite")


def _chromium_profiles(user_data: Path) -> list[Path]:
    profiles = [user_data / "Default"]
    profiles.extend(sorted(user_data.glob("Profile *")))
    return [p for p in profiles if p.is_dir()]


def _firefox_profiles() -> list[Path]:
    root = Path.home() / ".mozilla" / "firefox"
    if not root.is_dir():
        return []
    return sorted(p for p in root.iterdir() if p.is_dir())


class BrowserDataCleaner(FileScanCleaner):
    """Removes browsing history and cookie stores of installed browsers.

    Selected by either the history or the cookies option; both files are
    removed whichever flag selected it.  Databases held open by a running
    browser are skipped.
    """

    @property
    def id(self) -> str:
        return "browser_data"

    @property
    def name(self) -> str:
        return "Browser Data"

    @property
    def description(self) -> str:
        return "History and cookie databases of Chrome, Chromium, Edge, Brave and Firefox"

    def _named_files(self) -> Iterable[Path]:
        files: list[Path] = []
        config = xdg_config_home()
        for vendor in _CHROMIUM_VENDORS:
            for profile in _chromium_profiles(config / vendor):
                files.extend(profile / name for name in _CHROMIUM_FILES)
        for profile in _firefox_profiles():
            files.extend(profile / name for name in _FIREFOX_FILES)
        return files

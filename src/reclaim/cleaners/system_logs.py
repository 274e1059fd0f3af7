"""Cleaner for system log files, crash dumps and the system journal."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from reclaim.core.cancel import CancelToken
from reclaim.core.process import ProcessStartError, run_process
from reclaim.models.candidate import ScanRoot
from reclaim.models.cleaner import FileScanCleaner

log = logging.getLogger(__name__)

_LOG_DIR = Path("/var/log")
_LOG_PATTERNS = ("*.log", "*.old", "*.tmp", "*.bak", "*.trace")

_CRASH_DIRS = (
    (Path("/var/crash"), "*.crash"),
    (Path("/var/lib/systemd/coredump"), "core.*"),
)

_JOURNAL_CLEAR = ("journalctl", ("--rotate", "--vacuum-time=1s"))
_LOGROTATE_CLEAR = ("logrotate", ("--force", "/etc/logrotate.conf"))


class SystemLogsCleaner(FileScanCleaner):
    """Removes log files and crash dumps, then clears the system journal.

    Selected by either the log-file or the event-log option; both kinds of
    work run whichever flag selected it.
    """

    @property
    def id(self) -> str:
        return "system_logs"

    @property
    def name(self) -> str:
        return "System Logs"

    @property
    def description(self) -> str:
        return (
            "Log files and backups under /var/log, crash reports and core dumps. "
            "Also rotates and vacuums the systemd journal."
        )

    @property
    def requires_root(self) -> bool:
        return True

    def _scan_roots(self) -> Iterable[ScanRoot]:
        roots = [ScanRoot(_LOG_DIR, pattern) for pattern in _LOG_PATTERNS]
        roots.extend(ScanRoot(path, pattern) for path, pattern in _CRASH_DIRS)
        return roots

    def _after_files(self, cancel: CancelToken) -> str | None:
        return clear_event_logs(cancel)


def clear_event_logs(cancel: CancelToken | None = None) -> str | None:
    """Clear the system event log.

    Tries journalctl first; logrotate is only tried when journalctl cannot be
    started at all.  Exit codes are logged, not interpreted.

    Returns:
        An error message if neither tool could be started, else None.
    """
    errors: list[str] = []
    for program, args in (_JOURNAL_CLEAR, _LOGROTATE_CLEAR):
        try:
            run_process(program, args, cancel)
            return None
        except ProcessStartError as e:
            log.warning("Could not clear event logs with %s: %s", program, e)
            errors.append(str(e))
    log.error("Event logs were not cleared")
    return "Failed to clear event logs: " + "; ".join(errors)

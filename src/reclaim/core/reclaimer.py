"""Safe single-file reclamation: in-use detection, then trash or delete."""

from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path

from send2trash import send2trash

from reclaim.models.options import ReclaimMode
from reclaim.models.results import ReclaimOutcome

log = logging.getLogger(__name__)


class Reclaimer:
    """Removes individual files that no other process is holding.

    Existence and lock state are re-checked immediately before acting, since
    files routinely change between a scan and the removal.  The mode is
    always supplied by the caller.
    """

    def is_in_use(self, path: Path | str) -> bool:
        """Return True unless an exclusive lock on *path* can be taken right now.

        Failures other than lock contention (permission denied, vanished
        file, ...) also count as in use: files in an unknown state are left
        alone.
        """
        try:
            with open(path, "rb") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except BlockingIOError:
            return True
        except OSError as e:
            log.debug("Cannot open %s exclusively (%s), treating as in use", path, e)
            return True
        return False

    def reclaim(self, path: Path | str, mode: ReclaimMode) -> ReclaimOutcome:
        """Trash or delete *path* if it still exists and is free."""
        path = Path(path)
        if not path.is_file():
            log.debug("Already gone: %s", path)
            return ReclaimOutcome.MISSING
        if self.is_in_use(path):
            log.warning("File is in use, skipping: %s", path)
            return ReclaimOutcome.IN_USE

        try:
            if mode is ReclaimMode.TRASH:
                send2trash(os.fspath(path))
            else:
                path.unlink()
        except FileNotFoundError:
            log.debug("Already gone: %s", path)
            return ReclaimOutcome.MISSING
        except OSError as e:
            log.warning("Failed to reclaim %s: %s", path, e)
            return ReclaimOutcome.FAILED

        log.debug("%s: %s", "Moved to trash" if mode is ReclaimMode.TRASH else "Deleted", path)
        return ReclaimOutcome.RECLAIMED

    def move_to_trash(self, path: Path | str) -> bool:
        """Move *path* to the user's trash. False if missing, locked or failed."""
        return self.reclaim(path, ReclaimMode.TRASH) is ReclaimOutcome.RECLAIMED

    def delete_permanently(self, path: Path | str) -> bool:
        """Unlink *path*. False if missing, locked or failed."""
        return self.reclaim(path, ReclaimMode.PERMANENT) is ReclaimOutcome.RECLAIMED

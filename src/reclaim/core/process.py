"""External process invocation for cache flushes and log clearing."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Sequence

from reclaim.core.cancel import CancelToken, OperationCancelled

log = logging.getLogger(__name__)

# How often a running child is checked for cancellation (seconds).
_POLL_INTERVAL = 0.1


class ProcessStartError(Exception):
    """Raised when an external program cannot be started at all."""


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Exit code and captured output of a finished process."""

    exit_code: int
    stdout: str
    stderr: str


def run_process(
    program: str,
    args: Sequence[str] = (),
    cancel: CancelToken | None = None,
) -> ProcessResult:
    """Run *program* with *args* to completion and capture its output.

    Output is logged; a non-zero exit code or stderr output is only a warning
    and the caller decides what it means.

    Raises:
        ProcessStartError: if the program could not be started.
        OperationCancelled: if *cancel* fired while waiting; the child is killed.
    """
    cmd = [program, *args]
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
        )
    except OSError as exc:
        raise ProcessStartError(f"Could not start '{program}': {exc}") from exc

    while True:
        try:
            stdout, stderr = proc.communicate(timeout=_POLL_INTERVAL)
            break
        except subprocess.TimeoutExpired:
            if cancel is not None and cancel.cancelled:
                proc.kill()
                proc.communicate()
                log.info("Cancelled: %s", " ".join(cmd))
                raise OperationCancelled()

    command = " ".join(cmd)
    if stdout.strip():
        log.info("Command %s output: %s", command, stdout.strip())
    if stderr.strip():
        log.warning("Command %s error: %s", command, stderr.strip())
    if proc.returncode != 0:
        log.warning("Command %s exited with code %d", command, proc.returncode)
    else:
        log.info("Command %s completed", command)

    return ProcessResult(exit_code=proc.returncode, stdout=stdout, stderr=stderr)

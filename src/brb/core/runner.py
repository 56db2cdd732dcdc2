"""
Runner — executes the wrapped command with inherited stdio.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from brb.notifications.events import SPAWN_FAILURE_EXIT_CODE

logger = logging.getLogger(__name__)

NO_COMMAND_EXIT_CODE = 2


@dataclass
class RunResult:
    """Captured result from executing a wrapped command."""

    command: list[str]
    started_at: datetime
    finished_at: datetime
    duration_ms: int
    exit_code: int
    spawn_error: str | None = field(default=None)


def _wait(proc: subprocess.Popen) -> int:
    # Ctrl-C reaches the child too; let it decide and keep waiting
    while True:
        try:
            return proc.wait()
        except KeyboardInterrupt:
            logger.debug("Interrupted; waiting for child %s to exit", proc.pid)


def run_command(command: list[str]) -> RunResult:
    """Run *command* to completion and return its timing and exit code."""
    started_at = datetime.now(timezone.utc)
    started = time.monotonic()

    def result(exit_code: int, spawn_error: str | None = None) -> RunResult:
        return RunResult(
            command=list(command),
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            duration_ms=int((time.monotonic() - started) * 1000),
            exit_code=exit_code,
            spawn_error=spawn_error,
        )

    if not command:
        return result(NO_COMMAND_EXIT_CODE, "no command provided")

    try:
        proc = subprocess.Popen(command)
    except OSError as exc:
        return result(SPAWN_FAILURE_EXIT_CODE, f"failed to start `{command[0]}`: {exc}")

    returncode = _wait(proc)
    # killed by a signal: report a plain failure
    return result(returncode if returncode >= 0 else 1)

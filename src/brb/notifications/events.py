"""
Completion events — the data flowing through the notification system.

A CompletionEvent is built once after the wrapped command finishes and
is shared read-only by every channel delivery. Its JSON form is the wire
contract for webhook bodies and custom-notifier stdin.
"""

from __future__ import annotations

import os
import socket
from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

TOOL_NAME = "brb"
UNKNOWN_HOST = "unknown-host"
SPAWN_FAILURE_EXIT_CODE = 127


class EventStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class CompletionEvent(BaseModel):
    """How the wrapped command ran and finished."""

    model_config = ConfigDict(frozen=True)

    tool: str = TOOL_NAME
    status: EventStatus
    command: tuple[str, ...]
    cwd: str
    started_at: str
    finished_at: str
    duration_ms: int = Field(ge=0)
    exit_code: int
    host: str

    def to_json(self) -> str:
        return self.model_dump_json()


def _as_utc(moment: datetime) -> datetime:
    # naive datetimes are taken to be UTC already
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """RFC3339 UTC with millisecond precision, e.g. 2026-01-02T03:04:05.678Z."""
    moment = _as_utc(moment)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def status_for(exit_code: int) -> EventStatus:
    return EventStatus.SUCCESS if exit_code == 0 else EventStatus.FAILURE


def build_event(
    command: list[str] | tuple[str, ...],
    cwd: str,
    started_at: datetime,
    finished_at: datetime,
    exit_code: int,
    host: str = UNKNOWN_HOST,
    duration_ms: int | None = None,
) -> CompletionEvent:
    """Assemble a CompletionEvent from run metadata.

    Pure: the caller supplies the clock readings and the host name.
    A measured *duration_ms* (monotonic) wins over the timestamp delta.
    """
    if duration_ms is None:
        elapsed = _as_utc(finished_at) - _as_utc(started_at)
        duration_ms = elapsed // timedelta(milliseconds=1)
    duration_ms = max(0, duration_ms)

    return CompletionEvent(
        status=status_for(exit_code),
        command=tuple(command),
        cwd=cwd,
        started_at=format_timestamp(started_at),
        finished_at=format_timestamp(finished_at),
        duration_ms=duration_ms,
        exit_code=exit_code,
        host=host or UNKNOWN_HOST,
    )


def resolve_hostname() -> str:
    """Local host name, or the unknown-host sentinel."""
    try:
        name = socket.gethostname()
    except OSError:
        return UNKNOWN_HOST
    return name or UNKNOWN_HOST


def channel_test_event() -> CompletionEvent:
    """Synthetic event used by `brb channels test`."""
    now = datetime.now(timezone.utc)
    return build_event(
        ["brb", "channels", "test"],
        cwd=os.getcwd(),
        started_at=now,
        finished_at=now,
        exit_code=0,
        host=resolve_hostname(),
    )

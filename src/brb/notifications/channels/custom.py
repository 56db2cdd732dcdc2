"""
Custom channel — hand the completion event to any executable.

The notifier receives exactly one JSON event on stdin. Its stdout is
discarded; stderr is captured so failures can be reported.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os

from brb.notifications.channel import NotificationChannel
from brb.notifications.errors import DeliveryError, DeliveryErrorKind
from brb.notifications.events import CompletionEvent

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
MAX_STDERR_CHARS = 200


def _truncate(text: str, limit: int = MAX_STDERR_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class CustomChannel(NotificationChannel):
    """External command notification channel."""

    name: str = "custom"

    def __init__(
        self,
        exec: str,
        *,
        args: list[str] | None = None,
        env: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.exec = exec
        self.args = list(args or [])
        self.env = dict(env or {})
        self.timeout = timeout

    def _environment(self) -> dict[str, str]:
        return {**os.environ, **self.env}

    async def deliver(self, event: CompletionEvent) -> None:
        # bare names go through PATH; anything with a separator is a path
        try:
            proc = await asyncio.create_subprocess_exec(
                self.exec,
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
                env=self._environment(),
            )
        except OSError as exc:
            logger.debug("Could not start %s: %s", self.exec, exc)
            raise DeliveryError(
                DeliveryErrorKind.SPAWN, f"failed to start custom notifier `{self.exec}`"
            ) from exc

        payload = event.to_json().encode()
        try:
            _, stderr = await asyncio.wait_for(
                proc.communicate(input=payload), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            # the child may exit on its own right at the deadline
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise DeliveryError(
                DeliveryErrorKind.EXIT_STATUS,
                f"custom notifier timed out after {self.timeout:g}s",
                code=proc.returncode,
            ) from None

        if proc.returncode == 0:
            return

        detail = stderr.decode(errors="replace").strip()
        if detail:
            message = f"custom notifier failed: {_truncate(detail)}"
        else:
            message = f"custom notifier exited with non-zero status ({proc.returncode})"
        raise DeliveryError(
            DeliveryErrorKind.EXIT_STATUS,
            message,
            code=proc.returncode,
            stderr=_truncate(detail),
        )

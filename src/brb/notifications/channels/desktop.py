"""
Desktop channel — native popup via the platform notifier.

Linux uses `notify-send`, macOS uses `osascript`. Other platforms
(Windows included) are not supported yet.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from brb.notifications.channel import NotificationChannel
from brb.notifications.errors import DeliveryError, DeliveryErrorKind
from brb.notifications.events import CompletionEvent

logger = logging.getLogger(__name__)


def notification_text(event: CompletionEvent) -> tuple[str, str]:
    """Title and body shown in the popup."""
    if event.exit_code == 0:
        title = "brb: success"
    else:
        title = f"brb: failed (exit {event.exit_code})"
    body = f"{' '.join(event.command)} ({event.duration_ms / 1000:.2f}s)"
    return title, body


def _escape_applescript(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def notifier_argv(platform: str, title: str, body: str) -> list[str] | None:
    """Command line for the platform notifier, or None when unsupported."""
    if platform.startswith("linux"):
        return ["notify-send", title, body]
    if platform == "darwin":
        script = (
            f'display notification "{_escape_applescript(body)}" '
            f'with title "{_escape_applescript(title)}"'
        )
        return ["osascript", "-e", script]
    return None


class DesktopChannel(NotificationChannel):
    """Desktop popup notification channel."""

    name: str = "desktop"

    def __init__(self, *, platform: str | None = None) -> None:
        self.platform = platform or sys.platform

    async def deliver(self, event: CompletionEvent) -> None:
        title, body = notification_text(event)
        argv = notifier_argv(self.platform, title, body)
        if argv is None:
            raise DeliveryError(
                DeliveryErrorKind.UNSUPPORTED,
                f"desktop channel is not supported on this platform ({self.platform})",
            )

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise DeliveryError(
                DeliveryErrorKind.UNSUPPORTED,
                f"desktop notifier `{argv[0]}` is not installed",
            ) from None
        except OSError as exc:
            raise DeliveryError(
                DeliveryErrorKind.BACKEND, f"failed to run {argv[0]}: {exc}"
            ) from exc

        _, stderr = await proc.communicate()
        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip()
            logger.debug("%s exited %s: %s", argv[0], proc.returncode, detail)
            raise DeliveryError(
                DeliveryErrorKind.BACKEND,
                "desktop notifier command returned non-zero status",
                code=proc.returncode,
                stderr=detail,
            )

"""
NotificationChannel — abstract base class for all delivery backends.

Each backend (desktop, webhook, custom) inherits from this ABC and
implements `deliver()`, raising DeliveryError on failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from brb.notifications.errors import DeliveryError
from brb.notifications.events import CompletionEvent
from brb.notifications.redact import redact


class NotificationChannel(ABC):
    """Base class for notification channels."""

    name: str = "unnamed"

    @abstractmethod
    async def deliver(self, event: CompletionEvent) -> None:
        """Send a completion event. Raises DeliveryError on failure."""
        ...


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one delivery attempt."""

    channel_id: str
    error: DeliveryError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        """Redacted failure reason, empty on success."""
        if self.error is None:
            return ""
        return redact(str(self.error))

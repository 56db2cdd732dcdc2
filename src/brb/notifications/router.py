"""
NotificationRouter — dispatches a completion event to the selected channels.

Handles selection (explicit `--channel` flags replace the defaults) and
fan-out. Deliveries run concurrently but outcomes are always returned in
selection order, and one channel's failure never affects another.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Sequence

from brb.notifications.channel import DeliveryOutcome, NotificationChannel
from brb.notifications.channels import build_channel
from brb.notifications.config import BrbConfig
from brb.notifications.errors import (
    DeliveryError,
    DeliveryErrorKind,
    UnknownChannelError,
)
from brb.notifications.events import CompletionEvent

logger = logging.getLogger(__name__)


def resolve_selection(
    requested: Sequence[str] | None,
    config: BrbConfig,
) -> list[str]:
    """Pick the channel IDs to notify.

    A non-empty *requested* list replaces `default_channels` entirely.
    Order is preserved and duplicates are kept. Every ID is checked up
    front so nothing is delivered when any of them is unknown.
    """
    selected = list(requested) if requested else list(config.default_channels)
    for channel_id in selected:
        if channel_id not in config.channels:
            raise UnknownChannelError(channel_id)
    return selected


class NotificationRouter:
    """Dispatches events to configured channels."""

    def __init__(self, channels: Mapping[str, NotificationChannel] | None = None) -> None:
        self.channels: dict[str, NotificationChannel] = dict(channels or {})

    @classmethod
    def from_config(cls, config: BrbConfig, *, timeout: float | None = None) -> NotificationRouter:
        return cls({
            channel_id: build_channel(channel_id, definition, timeout=timeout)
            for channel_id, definition in config.channels.items()
        })

    async def dispatch(
        self, event: CompletionEvent, selected: Sequence[str]
    ) -> list[DeliveryOutcome]:
        """Fan-out event to every selected channel concurrently.

        Never raises; returns one outcome per entry of *selected*.
        """
        tasks = [self._safe_deliver(channel_id, event) for channel_id in selected]
        if not tasks:
            return []
        return list(await asyncio.gather(*tasks))

    async def _safe_deliver(self, channel_id: str, event: CompletionEvent) -> DeliveryOutcome:
        """Deliver with error handling so one channel failure doesn't break others."""
        channel = self.channels.get(channel_id)
        if channel is None:
            return DeliveryOutcome(
                channel_id,
                DeliveryError(DeliveryErrorKind.BACKEND, "channel not found in config"),
            )

        try:
            await channel.deliver(event)
        except DeliveryError as exc:
            logger.info("Delivery to channel %s failed (%s)", channel_id, exc.kind.value)
            return DeliveryOutcome(channel_id, exc)
        except Exception as exc:
            logger.exception("Unexpected error delivering to channel %s", channel_id)
            return DeliveryOutcome(
                channel_id, DeliveryError(DeliveryErrorKind.BACKEND, str(exc) or type(exc).__name__)
            )

        logger.debug("Delivered to channel %s", channel_id)
        return DeliveryOutcome(channel_id)

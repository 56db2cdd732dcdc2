"""Delivery backends, one per channel type."""

from __future__ import annotations

from brb.notifications.channel import NotificationChannel
from brb.notifications.channels.custom import CustomChannel
from brb.notifications.channels.desktop import DesktopChannel
from brb.notifications.channels.webhook import WebhookChannel
from brb.notifications.config import (
    CustomChannelConfig,
    DesktopChannelConfig,
    WebhookChannelConfig,
)


def build_channel(
    channel_id: str,
    definition: DesktopChannelConfig | WebhookChannelConfig | CustomChannelConfig,
    *,
    timeout: float | None = None,
) -> NotificationChannel:
    """Instantiate the backend for a validated channel definition."""
    extra = {} if timeout is None else {"timeout": timeout}

    if isinstance(definition, DesktopChannelConfig):
        channel: NotificationChannel = DesktopChannel()
    elif isinstance(definition, WebhookChannelConfig):
        channel = WebhookChannel(
            definition.url,
            method=definition.method,
            headers=dict(definition.headers),
            **extra,
        )
    elif isinstance(definition, CustomChannelConfig):
        channel = CustomChannel(
            definition.exec,
            args=list(definition.args),
            env=dict(definition.env),
            **extra,
        )
    else:
        raise TypeError(f"unsupported channel definition: {definition!r}")

    channel.name = channel_id
    return channel


__all__ = [
    "CustomChannel",
    "DesktopChannel",
    "WebhookChannel",
    "build_channel",
]

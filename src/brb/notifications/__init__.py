"""
Notification system for brb.

Loads channel configuration, builds the completion event, and fans it
out to desktop, webhook and custom-executable channels.
"""

from brb.notifications.channel import DeliveryOutcome, NotificationChannel
from brb.notifications.config import (
    BrbConfig,
    CustomChannelConfig,
    DesktopChannelConfig,
    WebhookChannelConfig,
    dump_config,
    parse_config,
)
from brb.notifications.errors import (
    BrbError,
    ConfigError,
    DeliveryError,
    DeliveryErrorKind,
    InterpolationError,
    ParseError,
    SchemaError,
    UnknownChannelError,
)
from brb.notifications.events import CompletionEvent, EventStatus, build_event
from brb.notifications.router import NotificationRouter, resolve_selection

__all__ = [
    "BrbConfig",
    "BrbError",
    "CompletionEvent",
    "ConfigError",
    "CustomChannelConfig",
    "DeliveryError",
    "DeliveryErrorKind",
    "DeliveryOutcome",
    "DesktopChannelConfig",
    "EventStatus",
    "InterpolationError",
    "NotificationChannel",
    "NotificationRouter",
    "ParseError",
    "SchemaError",
    "UnknownChannelError",
    "WebhookChannelConfig",
    "build_event",
    "dump_config",
    "parse_config",
    "resolve_selection",
]

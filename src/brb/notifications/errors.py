"""
Exception hierarchy for config loading and channel delivery.

Config errors are fatal and abort the invocation before the wrapped
command starts. Delivery errors are per-channel and only ever surface
inside a DeliveryOutcome.
"""

from __future__ import annotations

from enum import Enum


class BrbError(Exception):
    """Base class for all brb errors."""


# ---------------------------------------------------------------------------
# Config errors
# ---------------------------------------------------------------------------


class ConfigError(BrbError):
    """The configuration could not be loaded or is invalid."""


class ConfigNotFoundError(ConfigError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"config file not found: {path} (run `brb init` to create one)")


class ParseError(ConfigError):
    """The config document is not valid YAML or not a mapping."""


class SchemaError(ConfigError):
    """The config document does not match the expected shape."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("invalid config: " + "; ".join(problems))


class InterpolationError(ConfigError):
    """An `${env:NAME}` placeholder is malformed or references an unset variable."""

    def __init__(
        self,
        reason: str,
        *,
        variable: str | None = None,
        channel_id: str | None = None,
        field: str | None = None,
    ) -> None:
        self.reason = reason
        self.variable = variable
        self.channel_id = channel_id
        self.field = field
        super().__init__(str(self))

    def tagged(self, channel_id: str, field: str) -> InterpolationError:
        """Return a copy attributed to the owning channel and field."""
        return InterpolationError(
            self.reason, variable=self.variable, channel_id=channel_id, field=field
        )

    def __str__(self) -> str:
        message = self.reason
        if self.channel_id is not None:
            message = f"channel `{self.channel_id}` field `{self.field}`: {message}"
        return message


class UnknownChannelError(ConfigError):
    """A channel ID is referenced but not defined under `channels`."""

    def __init__(self, channel_id: str, context: str = "selected channel") -> None:
        self.channel_id = channel_id
        super().__init__(f"{context} `{channel_id}` is not defined in channels")


# ---------------------------------------------------------------------------
# Delivery errors
# ---------------------------------------------------------------------------


class DeliveryErrorKind(str, Enum):
    UNSUPPORTED = "unsupported"
    BACKEND = "backend"
    HTTP = "http"
    TRANSPORT = "transport"
    SPAWN = "spawn"
    EXIT_STATUS = "exit_status"


class DeliveryError(BrbError):
    """A single channel failed to deliver an event."""

    def __init__(
        self,
        kind: DeliveryErrorKind,
        message: str,
        *,
        status: int | None = None,
        code: int | None = None,
        stderr: str = "",
    ) -> None:
        self.kind = kind
        self.message = message
        self.status = status  # HTTP status for kind=http
        self.code = code  # child exit code for kind=exit_status
        self.stderr = stderr
        super().__init__(message)

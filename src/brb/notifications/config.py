"""
Configuration models for the notification system.

A config document is parsed in four steps: YAML, schema, environment
interpolation, and referential checks. Loading is all-or-nothing; any
failure raises a ConfigError subclass and no partial config is returned.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from brb.notifications.errors import (
    ParseError,
    SchemaError,
    UnknownChannelError,
)
from brb.notifications.interpolate import interpolate_channels

SUPPORTED_VERSION = 1


class _ChannelBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class DesktopChannelConfig(_ChannelBase):
    """Local desktop popup."""

    type: Literal["desktop"] = "desktop"


class WebhookChannelConfig(_ChannelBase):
    """HTTP request carrying the event as a JSON body."""

    type: Literal["webhook"] = "webhook"
    url: str = Field(min_length=1)
    method: str = "POST"
    headers: dict[str, str] = Field(default_factory=dict)


class CustomChannelConfig(_ChannelBase):
    """Arbitrary executable that receives the event on stdin."""

    type: Literal["custom"] = "custom"
    exec: str = Field(min_length=1)
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)


ChannelConfig = Annotated[
    Union[DesktopChannelConfig, WebhookChannelConfig, CustomChannelConfig],
    Field(discriminator="type"),
]

CHANNEL_TYPES = ("desktop", "webhook", "custom")


class BrbConfig(BaseModel):
    """Top-level notifications configuration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: int = Field(strict=True)
    default_channels: list[str] = Field(min_length=1)
    channels: dict[str, ChannelConfig] = Field(min_length=1)

    @field_validator("version")
    @classmethod
    def _check_version(cls, v: int) -> int:
        if v != SUPPORTED_VERSION:
            raise ValueError(f"unsupported version {v}; expected {SUPPORTED_VERSION}")
        return v

    def is_default(self, channel_id: str) -> bool:
        return channel_id in self.default_channels


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _format_loc(loc: tuple[Any, ...]) -> str:
    parts = [str(p) for p in loc]
    # drop the discriminator pydantic inserts: channels.<id>.<type>.<field>
    if len(parts) >= 3 and parts[0] == "channels" and parts[2] in CHANNEL_TYPES:
        del parts[2]
    return ".".join(parts) or "<root>"


def _validate(document: Mapping[str, Any]) -> BrbConfig:
    try:
        return BrbConfig.model_validate(document)
    except ValidationError as exc:
        problems = []
        for err in exc.errors():
            msg = "unknown field" if err["type"] == "extra_forbidden" else err["msg"]
            problems.append(f"{_format_loc(err['loc'])}: {msg}")
        raise SchemaError(problems) from None


def check_references(config: BrbConfig) -> None:
    """Every default channel must be defined; the first offender is reported."""
    for channel_id in config.default_channels:
        if channel_id not in config.channels:
            raise UnknownChannelError(channel_id, context="default channel")


def parse_config(text: str, environ: Mapping[str, str] | None = None) -> BrbConfig:
    """Parse and validate a YAML config document."""
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ParseError(f"invalid YAML config: {exc}") from None

    if not isinstance(document, dict):
        raise ParseError("invalid YAML config: top level must be a mapping")

    # Schema first so interpolation only ever sees well-formed channels
    _validate(document)

    document = {
        **document,
        "channels": interpolate_channels(document["channels"], environ),
    }
    config = _validate(document)
    check_references(config)
    return config


def dump_config(config: BrbConfig) -> str:
    """Serialise a config back to YAML."""
    return yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False, sort_keys=False)

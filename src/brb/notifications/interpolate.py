"""
Environment interpolation for `${env:NAME}` placeholders.

Applied to the parsed (untyped) config tree before the channel models
are built, so every string field under a channel gets the same treatment.
"""

from __future__ import annotations

import os
import re
from typing import Any, Mapping

from brb.notifications.errors import InterpolationError

_OPEN = "${env:"
_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def interpolate(value: str, environ: Mapping[str, str] | None = None) -> str:
    """Replace every `${env:NAME}` in *value* with the variable's value."""
    env = os.environ if environ is None else environ
    parts: list[str] = []
    rest = value

    while True:
        start = rest.find(_OPEN)
        if start < 0:
            parts.append(rest)
            break

        parts.append(rest[:start])
        placeholder = rest[start + len(_OPEN):]
        end = placeholder.find("}")
        name = placeholder[:end] if end >= 0 else ""
        if not _NAME.fullmatch(name):
            raise InterpolationError(
                f"invalid environment interpolation expression in config value: {value}"
            )
        if name not in env:
            raise InterpolationError(
                f"missing environment variable for interpolation: {name}",
                variable=name,
            )

        parts.append(env[name])
        rest = placeholder[end + 1:]

    return "".join(parts)


class _FieldFailure(Exception):
    def __init__(self, path: str, error: InterpolationError) -> None:
        self.path = path
        self.error = error


def _walk(node: Any, path: str, environ: Mapping[str, str] | None) -> Any:
    if isinstance(node, str):
        try:
            return interpolate(node, environ)
        except InterpolationError as exc:
            raise _FieldFailure(path, exc) from exc
    if isinstance(node, list):
        return [_walk(item, f"{path}[{i}]", environ) for i, item in enumerate(node)]
    if isinstance(node, dict):
        # keys are structural and stay literal
        return {k: _walk(v, f"{path}.{k}", environ) for k, v in node.items()}
    return node


def interpolate_channel(
    channel_id: str,
    definition: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Interpolate every string field of one raw channel definition.

    The `type` tag is copied through untouched. Errors are re-raised
    tagged with the channel ID and the dotted field path
    (e.g. `headers.Authorization`, `args[1]`).
    """
    result: dict[str, Any] = {}
    for field, value in definition.items():
        if field == "type":
            result[field] = value
            continue
        try:
            result[field] = _walk(value, str(field), environ)
        except _FieldFailure as failure:
            raise failure.error.tagged(channel_id, failure.path) from None
    return result


def interpolate_channels(
    channels: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Interpolate all raw channel definitions, in source order."""
    return {
        channel_id: interpolate_channel(channel_id, definition, environ)
        if isinstance(definition, Mapping)
        else definition
        for channel_id, definition in channels.items()
    }

"""
Core configuration and utilities for brb.

Provides:
- Config file location (BRB_CONFIG override, else the user config dir)
- Config loading and first-run initialisation
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import click

from brb.notifications.config import BrbConfig, parse_config
from brb.notifications.errors import ConfigError, ConfigNotFoundError


# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

CONFIG_ENV_VAR = "BRB_CONFIG"
CONFIG_FILE_NAME = "config.yml"

DEFAULT_CONFIG_YAML = """\
# brb configuration
#
# String values under a channel may reference environment variables
# with ${env:NAME}.
version: 1

default_channels: [desktop]

channels:
  desktop:
    type: desktop

  # ci-webhook:
  #   type: webhook
  #   url: https://example.com/hooks/brb
  #   method: POST
  #   headers:
  #     Authorization: Bearer ${env:BRB_WEBHOOK_TOKEN}

  # log-script:
  #   type: custom
  #   exec: /usr/local/bin/brb-notify.sh
  #   args: [--quiet]
  #   env:
  #     BRB_CUSTOM_LOG_FILE: /tmp/brb-custom-channel.log
"""


def config_file_path() -> Path:
    """Absolute path of the global config file."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser().resolve()
    return Path(click.get_app_dir("brb")) / CONFIG_FILE_NAME


# ---------------------------------------------------------------------------
# Config loading/initialisation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoadedConfig:
    """Validated config plus the file it came from."""

    path: Path
    config: BrbConfig


def load_config(path: Path | None = None) -> LoadedConfig:
    """Read and validate the config file. Raises ConfigError."""
    path = path or config_file_path()
    if not path.exists():
        raise ConfigNotFoundError(str(path))
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to read config file: {exc}") from exc
    return LoadedConfig(path=path, config=parse_config(raw))


def init_config(path: Path | None = None) -> tuple[bool, Path]:
    """Write the default config unless one exists. Returns (created, path)."""
    path = path or config_file_path()
    if path.exists():
        return False, path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
    return True, path


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_YAML",
    "LoadedConfig",
    "config_file_path",
    "init_config",
    "load_config",
]

"""
CLI — run a command and notify when it completes.

Commands:
    brb [--channel ID]... <command> [args...]   — Run a command, then notify
    brb init                                   — Create the default config
    brb channels list                          — List configured channels
    brb channels validate                      — Validate the config file
    brb channels test <id>                     — Send a test notification
    brb config path                            — Print the config file path
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape

from brb import __version__
from brb.notifications.errors import BrbError

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

RUN_COMMAND = "run"


class _RunByDefaultGroup(click.Group):
    """Treat anything that is not a subcommand as a command to wrap."""

    _GROUP_FLAGS = ("-v", "--verbose")

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        i = 0
        while i < len(args) and args[i] in self._GROUP_FLAGS:
            i += 1
        reserved = set(self.commands) | set(ctx.help_option_names) | {"-V", "--version"}
        if i < len(args) and args[i] not in reserved:
            args = [*args[:i], RUN_COMMAND, *args[i:]]
        return super().parse_args(ctx, args)


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]brb:[/red] {escape(message)}")
    sys.exit(1)


@click.group(
    cls=_RunByDefaultGroup,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(__version__, "-V", "--version", prog_name="brb")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """brb — run a command and notify when it completes."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


def _print_summary(exit_code: int, outcomes) -> None:
    sent = sum(1 for o in outcomes if o.success)
    label = "command succeeded" if exit_code == 0 else "command failed"
    line = f"brb: {label} (exit {exit_code}); notifications sent {sent}/{len(outcomes)}"

    failed = [f"{o.channel_id} ({o.message})" for o in outcomes if not o.success]
    if failed:
        line += "; failed: " + ", ".join(failed)
        err_console.print(f"[yellow]{escape(line)}[/yellow]")
    else:
        err_console.print(escape(line))


@main.command(
    name=RUN_COMMAND,
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.option("--channel", "channels", multiple=True, metavar="ID",
              help="Notify this channel instead of default_channels (repeatable).")
@click.option("--timeout", type=float, default=None,
              help="Per-delivery timeout in seconds for webhook and custom channels.")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
def run(channels, timeout, command):
    """Run COMMAND and notify the selected channels when it exits."""
    from brb.core import load_config
    from brb.core.runner import run_command
    from brb.notifications.events import build_event, resolve_hostname
    from brb.notifications.router import NotificationRouter, resolve_selection

    # Config and selection problems abort before the command starts
    try:
        loaded = load_config()
        selected = resolve_selection(channels, loaded.config)
    except BrbError as exc:
        _fail(str(exc))

    result = run_command(list(command))
    if result.spawn_error:
        err_console.print(f"[red]brb:[/red] {escape(result.spawn_error)}")

    event = build_event(
        result.command,
        cwd=os.getcwd(),
        started_at=result.started_at,
        finished_at=result.finished_at,
        exit_code=result.exit_code,
        host=resolve_hostname(),
        duration_ms=result.duration_ms,
    )
    router = NotificationRouter.from_config(loaded.config, timeout=timeout)
    outcomes = asyncio.run(router.dispatch(event, selected))
    _print_summary(result.exit_code, outcomes)

    sys.exit(result.exit_code)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


@main.command()
def init() -> None:
    """Create the default config file if it does not exist."""
    from brb.core import init_config

    try:
        created, path = init_config()
    except OSError as exc:
        _fail(f"failed to write config file: {exc}")

    if created:
        console.print(f"[green]>[/green] brb: created config at {escape(str(path))}")
    else:
        console.print(f"brb: config already exists at {escape(str(path))}")


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------


@main.group(invoke_without_command=True)
@click.pass_context
def channels(ctx: click.Context) -> None:
    """Manage notification channels."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(channels_list)


def _load():
    from brb.core import load_config

    try:
        return load_config()
    except BrbError as exc:
        _fail(str(exc))


@channels.command(name="list")
def channels_list():
    """List configured channels."""
    loaded = _load()
    console.print(f"Config: {escape(str(loaded.path))}")
    console.print("Channels:")
    for channel_id, definition in loaded.config.channels.items():
        marker = " [bold](default)[/bold]" if loaded.config.is_default(channel_id) else ""
        console.print(f"- {escape(channel_id)} \\[{definition.type}]{marker}")


@channels.command(name="validate")
def channels_validate():
    """Load the config and report whether it is valid."""
    loaded = _load()
    console.print(f"[green]>[/green] brb: config is valid ({escape(str(loaded.path))})")


@channels.command(name="test")
@click.argument("channel_id")
@click.option("--timeout", type=float, default=None, help="Delivery timeout in seconds.")
def channels_test(channel_id, timeout):
    """Send a test notification to one channel."""
    from brb.notifications.events import channel_test_event
    from brb.notifications.router import NotificationRouter, resolve_selection

    loaded = _load()
    try:
        selected = resolve_selection([channel_id], loaded.config)
    except BrbError as exc:
        _fail(str(exc))

    router = NotificationRouter.from_config(loaded.config, timeout=timeout)
    outcome = asyncio.run(router.dispatch(channel_test_event(), selected))[0]

    if outcome.success:
        console.print(f"[green]>[/green] brb: test notification delivered on `{escape(channel_id)}`")
    else:
        _fail(f"test notification failed on `{channel_id}`: {outcome.message}")


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@main.group(invoke_without_command=True)
@click.pass_context
def config(ctx: click.Context) -> None:
    """Inspect the config file."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(config_path)


@config.command(name="path")
def config_path():
    """Print the config file path."""
    from brb.core import config_file_path

    click.echo(str(config_file_path()))


if __name__ == "__main__":
    main()

"""Shared helpers for CLI commands."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import NoReturn

import typer

from tagship.core.errors import ErrorCode
from tagship.core.result import Err
from tagship.release.event import event_from_args, event_from_ci_env
from tagship.release.model import ReleaseEvent

CONFIG_OPTION_HELP = "Path to tagship.toml (default: $TAGSHIP_CONFIG or ./tagship.toml)"


def exit_with(err: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {err}", err=True)
    raise typer.Exit(code=int(code))


def resolve_events(
    tags: list[str],
    *,
    ref: str | None,
    from_env: bool,
    env: Mapping[str, str],
) -> list[ReleaseEvent]:
    """Events from explicit tags, or from the CI environment with --from-env."""
    if from_env:
        if tags:
            exit_with("--from-env cannot be combined with explicit tags", code=ErrorCode.USER_ERROR)
        event = event_from_ci_env(env)
        if isinstance(event, Err):
            exit_with(event.error, code=ErrorCode.USER_ERROR)
        if ref is not None:
            return [ReleaseEvent(tag=event.value.tag, ref=ref)]
        return [event.value]

    if not tags:
        exit_with("expected at least one TAG (or --from-env)", code=ErrorCode.USER_ERROR)

    events: list[ReleaseEvent] = []
    for tag in tags:
        event = event_from_args(tag, ref=ref)
        if isinstance(event, Err):
            exit_with(f"invalid tag '{tag}': {event.error}", code=ErrorCode.USER_ERROR)
        events.append(event.value)
    return events


def config_option_path(config: Path | None) -> Path | None:
    return config.expanduser() if config is not None else None

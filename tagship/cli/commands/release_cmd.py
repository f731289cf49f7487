from __future__ import annotations

from pathlib import Path

import typer

from tagship.cli.commands._helpers import (
    CONFIG_OPTION_HELP,
    config_option_path,
    exit_with,
    resolve_events,
)
from tagship.cli.context import CLIContext, build_context, build_orchestrator
from tagship.core.errors import ErrorCode, worst_code
from tagship.output.errors import attempt_exit_code, print_attempt_result


def release(
    tags: list[str] | None = typer.Argument(None, help="Pushed tag(s), e.g. libfoo-v2.3.0"),
    ref: str | None = typer.Option(None, "--ref", help="Commit the tag points to"),
    from_env: bool = typer.Option(
        False, "--from-env", help="Read tag and commit from GITHUB_REF / GITHUB_SHA"
    ),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, help="Concurrent attempts (one per tag)"),
    config: Path | None = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Verify, dry-run and publish the package each tag targets."""
    ctx = build_context(config_option_path(config))
    _run(ctx, tags or [], ref=ref, from_env=from_env, jobs=jobs, verify_only=False)


def verify(
    tags: list[str] | None = typer.Argument(None, help="Tag(s) to verify"),
    ref: str | None = typer.Option(None, "--ref", help="Commit the tag points to"),
    from_env: bool = typer.Option(
        False, "--from-env", help="Read tag and commit from GITHUB_REF / GITHUB_SHA"
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Match, validate and dry-run only (never publishes)."""
    ctx = build_context(config_option_path(config))
    _run(ctx, tags or [], ref=ref, from_env=from_env, jobs=1, verify_only=True)


def _run(
    ctx: CLIContext,
    tags: list[str],
    *,
    ref: str | None,
    from_env: bool,
    jobs: int,
    verify_only: bool,
) -> None:
    if not ctx.config.packages:
        exit_with(f"no packages configured in {ctx.config_path}", code=ErrorCode.USER_ERROR)

    events = resolve_events(tags, ref=ref, from_env=from_env, env=ctx.env)
    orchestrator = build_orchestrator(ctx, verify_only=verify_only)
    attempts = orchestrator.run_many(events, jobs=jobs)

    ctx.console.header("Summary")
    codes: list[ErrorCode] = []
    for attempt in attempts:
        if attempt.result is not None:
            print_attempt_result(attempt.event.tag, attempt.result, ctx.console)
        codes.append(attempt_exit_code(attempt.result))

    code = worst_code(codes)
    if code.is_error:
        raise typer.Exit(code=int(code))

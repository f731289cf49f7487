from __future__ import annotations

from pathlib import Path

import typer

from tagship.cli.commands._helpers import CONFIG_OPTION_HELP, config_option_path
from tagship.cli.context import build_context
from tagship.core.errors import ErrorCode
from tagship.core.result import Err
from tagship.output.console import Style
from tagship.release.matcher import match_tag, tag_suffix


def match(
    tag: str = typer.Argument(..., help="Tag to resolve"),
    config: Path | None = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Show which package a tag targets (no registry calls)."""
    ctx = build_context(config_option_path(config))

    matched = match_tag(tag, ctx.config.packages)
    if isinstance(matched, Err):
        ctx.console.error(matched.error.message)
        raise typer.Exit(code=int(ErrorCode.ABORTED))

    pkg = matched.value
    ctx.console.success(f"{tag} -> {pkg.name}")
    ctx.console.print(f"location: {pkg.location}", Style.DIM)
    ctx.console.print(f"tag version: {tag_suffix(tag, pkg)}", Style.DIM)
    ctx.console.print(f"version check: {pkg.version_check}", Style.DIM)

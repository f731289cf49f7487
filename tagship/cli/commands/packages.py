from __future__ import annotations

from pathlib import Path

import typer

from tagship.cli.commands._helpers import CONFIG_OPTION_HELP, config_option_path
from tagship.cli.context import build_context
from tagship.core.result import Err
from tagship.output.console import Style
from tagship.release.manifest import WorkingTree, read_declared_version


def packages(
    config: Path | None = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """List configured packages and their checked-out versions."""
    ctx = build_context(config_option_path(config))
    console = ctx.console

    console.print(f"config: {ctx.config_path}", Style.DIM)
    console.print(f"registry: {ctx.config.registry.kind}", Style.DIM)
    if not ctx.config.packages:
        console.warning("no packages configured")
        return

    source = WorkingTree(root=ctx.config.root)
    for pkg in ctx.config.packages:
        declared = read_declared_version(source, pkg.location)
        version = declared.error.reason if isinstance(declared, Err) else declared.value
        console.header(pkg.name)
        console.print(f"tag prefix: {pkg.tag_prefix}")
        console.print(f"location: {pkg.location}")
        console.print(f"version check: {pkg.version_check}")
        style = Style.WARNING if isinstance(declared, Err) else Style.DEFAULT
        console.print(f"version: {version}", style)

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import typer

from tagship.core.config import Config, default_config_path, load_config
from tagship.core.errors import ErrorCode
from tagship.core.result import Err
from tagship.output.console import ConsoleProtocol, RichConsole
from tagship.release.credentials import EnvCredentialProvider, package_token_env
from tagship.release.manifest import manifest_source
from tagship.release.orchestrator import ReleaseOrchestrator
from tagship.release.registry import Registry, ensure_registry_tool, registry_from_config


@dataclass(frozen=True, slots=True)
class CLIContext:
    config_path: Path
    config: Config
    console: ConsoleProtocol
    env: Mapping[str, str]


def build_context(config_path: Path | None = None) -> CLIContext:
    path = config_path if config_path is not None else default_config_path()
    config_result = load_config(path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(
        config_path=path,
        config=config_result.value,
        console=RichConsole(),
        env=os.environ,
    )


def build_registry(ctx: CLIContext) -> Registry:
    tool = ensure_registry_tool(ctx.config.registry)
    if isinstance(tool, Err):
        typer.echo(f"error: {tool.error}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    write_envs = (
        ctx.config.credentials.write_env,
        *(package_token_env(pkg.name) for pkg in ctx.config.packages),
    )
    return registry_from_config(
        ctx.config.registry, write_token_envs=write_envs, console=ctx.console
    )


def build_orchestrator(ctx: CLIContext, *, verify_only: bool = False) -> ReleaseOrchestrator:
    root = ctx.config.root
    return ReleaseOrchestrator(
        packages=ctx.config.packages,
        registry=build_registry(ctx),
        credentials=EnvCredentialProvider(ctx.config.credentials, env=ctx.env),
        manifest_source=lambda ref: manifest_source(root, ref),
        package_root=root,
        console=ctx.console,
        verify_only=verify_only,
    )

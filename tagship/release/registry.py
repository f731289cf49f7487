"""Registry collaborator: dry-run publish and real publish.

The orchestrator talks to a ``Registry``. ``CargoRegistry`` drives
``cargo publish``; tokens reach cargo through the child environment only.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Protocol

from tagship.core.config import DEFAULT_REGISTRY_TIMEOUT_SECONDS, RegistryConfig
from tagship.core.result import Err, Ok, Result
from tagship.output.console import ConsoleProtocol, Style
from tagship.platform.process import ProcessError
from tagship.platform.process import run as run_process
from tagship.release.credentials import Credential
from tagship.release.errors import (
    AlreadyPublished,
    DryRunError,
    NetworkError,
    PublishError,
    RegistryRejected,
    Timeout,
)
from tagship.release.model import DryRunOk, PublishOk

CARGO_TOKEN_ENV = "CARGO_REGISTRY_TOKEN"

_NETWORK_MARKERS = (
    "operation timed out",
    "timeout was reached",
    "connection reset",
    "connection refused",
    "could not resolve host",
    "failed to resolve",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
    "network is unreachable",
    "http 429",
    "http 500",
    "http 502",
    "http 503",
    "http 504",
    "status 429",
    "status 502",
    "status 503",
    "status 504",
    "spurious network error",
)

_ALREADY_PUBLISHED_MARKERS = (
    "already uploaded",
    "already exists",
)


class Registry(Protocol):
    def dry_run_publish(
        self, location: Path, scoped_credential: Credential | None = None
    ) -> Result[DryRunOk, DryRunError]: ...

    def publish(
        self, location: Path, write_credential: Credential
    ) -> Result[PublishOk, PublishError]: ...


def is_network_error(error: ProcessError) -> bool:
    text = error.output.lower()
    return any(marker in text for marker in _NETWORK_MARKERS)


def is_already_published(error: ProcessError) -> bool:
    text = error.output.lower()
    return any(marker in text for marker in _ALREADY_PUBLISHED_MARKERS)


def classify_dry_run_error(error: ProcessError) -> DryRunError:
    message = error.output or str(error)
    if error.timed_out:
        return Timeout(message=message)
    if is_network_error(error):
        return NetworkError(message=message)
    return RegistryRejected(message=message)


def classify_publish_error(error: ProcessError) -> PublishError:
    message = error.output or str(error)
    if error.timed_out:
        return Timeout(message=message)
    # Checked before network markers: the rejection text can mention HTTP codes.
    if is_already_published(error):
        return AlreadyPublished(message=message)
    if is_network_error(error):
        return NetworkError(message=message)
    return RegistryRejected(message=message)


class CargoRegistry:
    """crates.io (or an alternate cargo registry) through the cargo CLI."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_REGISTRY_TIMEOUT_SECONDS,
        extra_args: tuple[str, ...] = (),
        write_token_envs: tuple[str, ...] = (CARGO_TOKEN_ENV,),
        console: ConsoleProtocol | None = None,
    ) -> None:
        self._timeout = timeout
        self._extra_args = extra_args
        # Never inherited by child processes; the token is handed over explicitly.
        self._write_token_envs = tuple(dict.fromkeys((CARGO_TOKEN_ENV, *write_token_envs)))
        self._console = console

    @classmethod
    def from_config(
        cls,
        config: RegistryConfig,
        *,
        write_token_envs: tuple[str, ...] = (),
        console: ConsoleProtocol | None = None,
    ) -> CargoRegistry:
        return cls(
            timeout=config.timeout_seconds,
            extra_args=config.extra_args,
            write_token_envs=write_token_envs,
            console=console,
        )

    def _command(self, crate_dir: Path, *, dry_run: bool) -> list[str]:
        cmd = ["cargo", "publish", "--manifest-path", str(crate_dir / "Cargo.toml")]
        if dry_run:
            cmd.append("--dry-run")
        cmd.extend(self._extra_args)
        return cmd

    def _run(
        self, location: Path, credential: Credential | None, *, dry_run: bool
    ) -> Result[str, ProcessError]:
        # cwd and --manifest-path both use the absolute crate directory.
        crate_dir = location.resolve()
        cmd = self._command(crate_dir, dry_run=dry_run)
        if self._console is not None:
            self._console.print(" ".join(cmd), Style.DIM)
        extra_env = {CARGO_TOKEN_ENV: credential.reveal()} if credential is not None else None
        return run_process(
            cmd,
            cwd=crate_dir,
            extra_env=extra_env,
            timeout=self._timeout,
            scrub_env=self._write_token_envs,
        )

    def dry_run_publish(
        self, location: Path, scoped_credential: Credential | None = None
    ) -> Result[DryRunOk, DryRunError]:
        result = self._run(location, scoped_credential, dry_run=True)
        if isinstance(result, Err):
            return Err(classify_dry_run_error(result.error))
        return Ok(DryRunOk(output=result.value))

    def publish(
        self, location: Path, write_credential: Credential
    ) -> Result[PublishOk, PublishError]:
        result = self._run(location, write_credential, dry_run=False)
        if isinstance(result, Err):
            return Err(classify_publish_error(result.error))
        return Ok(PublishOk(output=result.value))


def ensure_registry_tool(config: RegistryConfig) -> Result[None, str]:
    """Check the CLI driving the configured registry is on PATH."""
    tool = config.kind
    if shutil.which(tool) is None:
        return Err(f"{tool}: missing (install the Rust toolchain: https://rustup.rs/)")
    return Ok(None)


def registry_from_config(
    config: RegistryConfig,
    *,
    write_token_envs: tuple[str, ...] = (),
    console: ConsoleProtocol | None = None,
) -> Registry:
    match config.kind:
        case "cargo":
            return CargoRegistry.from_config(
                config, write_token_envs=write_token_envs, console=console
            )
        case _:
            raise AssertionError(f"unexpected registry kind: {config.kind}")

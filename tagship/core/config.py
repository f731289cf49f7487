"""Typed configuration loading and access.

This module provides dataclasses for the tagship.toml structure with
validation. One ``[[packages]]`` entry describes one publishable unit; the
same generic release pipeline runs for all of them.

Example:
    [registry]
    kind = "cargo"
    timeout_seconds = 600

    [credentials]
    write_env = "CARGO_REGISTRY_TOKEN"

    [[packages]]
    name = "lsp-positions"
    location = "lsp-positions"
    version_check = "blocking"
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, cast

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_float, get_list, get_str, get_str_list, get_table

__all__ = [
    "Config",
    "ConfigError",
    "CredentialsConfig",
    "PackageConfig",
    "RegistryConfig",
    "RegistryKind",
    "VersionCheckMode",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_REGISTRY_TIMEOUT_SECONDS",
    "default_config_path",
    "load_config",
]

VersionCheckMode = Literal["advisory", "blocking"]
RegistryKind = Literal["cargo"]

DEFAULT_CONFIG_FILE = "tagship.toml"
CONFIG_ENV_VAR = "TAGSHIP_CONFIG"

DEFAULT_REGISTRY_TIMEOUT_SECONDS = 600.0
DEFAULT_WRITE_ENV = "CARGO_REGISTRY_TOKEN"

_VERSION_CHECK_MODES: tuple[VersionCheckMode, ...] = ("advisory", "blocking")
_REGISTRY_KINDS: tuple[RegistryKind, ...] = ("cargo",)


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class PackageConfig:
    """Per-package release configuration.

    Attributes:
        name: Package identifier.
        tag_prefix: Prefix a tag must start with to target this package.
        location: Package directory, relative to the config file directory.
        version_check: Whether a tag/manifest version mismatch only warns
            (advisory) or aborts the attempt (blocking).
    """

    name: str
    tag_prefix: str
    location: str
    version_check: VersionCheckMode


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    kind: RegistryKind = "cargo"
    timeout_seconds: float = DEFAULT_REGISTRY_TIMEOUT_SECONDS
    extra_args: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CredentialsConfig:
    """Environment variables holding registry tokens.

    ``scoped_env`` names an optional read-only token passed to dry runs; the
    write token is never used there.
    """

    write_env: str = DEFAULT_WRITE_ENV
    scoped_env: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    packages: tuple[PackageConfig, ...] = ()
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)
    root: Path = field(default_factory=Path)

    @classmethod
    def from_dict(cls, data: Mapping[str, object], *, root: Path) -> Result[Config, str]:
        """Create Config from a mapping (parsed TOML)."""
        registry = _parse_registry(get_table(data, "registry") or {})
        if isinstance(registry, Err):
            return registry

        creds: StrDict = get_table(data, "credentials") or {}
        credentials = CredentialsConfig(
            write_env=get_str(creds, "write_env") or DEFAULT_WRITE_ENV,
            scoped_env=get_str(creds, "scoped_env"),
        )
        if credentials.scoped_env == credentials.write_env:
            return Err("credentials.scoped_env must differ from credentials.write_env")

        raw_packages = get_list(data, "packages")
        if raw_packages is None:
            return Err("missing [[packages]] entries")

        packages: list[PackageConfig] = []
        seen: set[str] = set()
        for i, raw in enumerate(raw_packages):
            table = as_str_dict(raw)
            if table is None:
                return Err(f"packages[{i}] must be a table")
            pkg = _parse_package(table, index=i)
            if isinstance(pkg, Err):
                return pkg
            if pkg.value.name in seen:
                return Err(f"duplicate package name: {pkg.value.name}")
            seen.add(pkg.value.name)
            packages.append(pkg.value)

        return Ok(
            cls(
                packages=tuple(packages),
                registry=registry.value,
                credentials=credentials,
                root=root,
            )
        )


def _parse_registry(table: StrDict) -> Result[RegistryConfig, str]:
    kind = get_str(table, "kind") or "cargo"
    if kind not in _REGISTRY_KINDS:
        return Err(f"unsupported registry kind: {kind} (expected one of: cargo)")

    timeout = get_float(table, "timeout_seconds")
    if timeout is None:
        timeout = DEFAULT_REGISTRY_TIMEOUT_SECONDS
    if timeout <= 0:
        return Err("registry.timeout_seconds must be positive")

    extra_args: list[str] = []
    if "extra_args" in table:
        parsed = get_str_list(table, "extra_args")
        if parsed is None:
            return Err("registry.extra_args must be a list of strings")
        extra_args = parsed

    return Ok(
        RegistryConfig(
            kind=cast(RegistryKind, kind),
            timeout_seconds=timeout,
            extra_args=tuple(extra_args),
        )
    )


def _parse_package(table: StrDict, *, index: int) -> Result[PackageConfig, str]:
    name = get_str(table, "name")
    if name is None:
        return Err(f"packages[{index}].name is required")

    # The check mode has no default: operators must pick one explicitly.
    mode = get_str(table, "version_check")
    if mode is None:
        return Err(f"{name}: version_check is required (advisory | blocking)")
    if mode not in _VERSION_CHECK_MODES:
        return Err(f"{name}: invalid version_check '{mode}' (expected advisory | blocking)")

    tag_prefix = table.get("tag_prefix", f"{name}-v")
    if not isinstance(tag_prefix, str) or not tag_prefix.strip():
        return Err(f"{name}: tag_prefix must be a non-empty string")

    return Ok(
        PackageConfig(
            name=name,
            tag_prefix=tag_prefix.strip(),
            location=get_str(table, "location") or name,
            version_check=cast(VersionCheckMode, mode),
        )
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and validate configuration from a TOML file.

    Package locations are relative to the (absolute) directory holding the file.

    Args:
        path: Path to tagship.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    config = Config.from_dict(result.value, root=path.resolve().parent)
    if isinstance(config, Err):
        return Err(ConfigError(f"Invalid config: {config.error}", path=path))
    return config


def default_config_path(env: Mapping[str, str] | None = None) -> Path:
    """Config path from $TAGSHIP_CONFIG, else ./tagship.toml."""
    environ = os.environ if env is None else env
    override = environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_FILE

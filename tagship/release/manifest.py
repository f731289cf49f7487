"""Declared package version, read from the package's own manifest.

Supported manifests, checked in this order inside the package location:
- Cargo.toml: ``[package].version`` (``version.workspace = true`` resolves
  against ``[workspace.package].version`` of an enclosing Cargo.toml)
- pyproject.toml: ``[project].version``
- package.json: ``version``

The manifest is read at the attempt's ref through git when one is given, so
the comparison uses what the tag actually points at rather than whatever is
checked out.
"""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol

from tagship.core.result import Err, Ok, Result
from tagship.core.structured import StrDict, as_str_dict, get_bool, get_str, get_table
from tagship.git.repository import Repository
from tagship.release.errors import ManifestUnreadable

MANIFEST_FILES: tuple[str, ...] = ("Cargo.toml", "pyproject.toml", "package.json")


class ManifestSource(Protocol):
    def describe(self) -> str: ...

    def read_text(self, rel_path: str) -> Result[str, str]: ...


@dataclass(frozen=True, slots=True)
class WorkingTree:
    """Files as currently checked out under ``root``."""

    root: Path

    def describe(self) -> str:
        return "working tree"

    def read_text(self, rel_path: str) -> Result[str, str]:
        path = self.root / rel_path
        try:
            return Ok(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return Err(f"not found: {rel_path}")
        except (OSError, UnicodeDecodeError) as e:
            return Err(str(e))


@dataclass(frozen=True, slots=True)
class GitRevision:
    """Files as committed at ``ref``."""

    repo: Repository
    ref: str

    def describe(self) -> str:
        return f"ref {self.ref}"

    def read_text(self, rel_path: str) -> Result[str, str]:
        return self.repo.show_file(self.ref, rel_path).map_err(lambda e: e.message)


def manifest_source(root: Path, ref: str | None) -> ManifestSource:
    if ref is None:
        return WorkingTree(root=root)
    return GitRevision(repo=Repository(root), ref=ref)


def read_declared_version(
    source: ManifestSource, location: str
) -> Result[str, ManifestUnreadable]:
    """Return the version declared by the manifest found at ``location``."""
    base = PurePosixPath(location)
    for name in MANIFEST_FILES:
        rel = str(base / name)
        text = source.read_text(rel)
        if isinstance(text, Err):
            continue

        match name:
            case "Cargo.toml":
                version = _cargo_version(source, base, text.value)
            case "pyproject.toml":
                version = _pyproject_version(text.value)
            case _:
                version = _package_json_version(text.value)

        if isinstance(version, Err):
            return Err(ManifestUnreadable(path=rel, reason=version.error))
        return version

    return Err(
        ManifestUnreadable(
            path=str(base),
            reason=f"no manifest ({', '.join(MANIFEST_FILES)}) in {source.describe()}",
        )
    )


def _load_toml(text: str) -> Result[StrDict, str]:
    try:
        data = as_str_dict(tomllib.loads(text))
    except tomllib.TOMLDecodeError as e:
        return Err(f"invalid TOML: {e}")
    if data is None:
        return Err("manifest root must be a table")
    return Ok(data)


def _cargo_version(source: ManifestSource, base: PurePosixPath, text: str) -> Result[str, str]:
    data = _load_toml(text)
    if isinstance(data, Err):
        return data

    package = get_table(data.value, "package")
    if package is None:
        return Err("missing [package] table")

    version = get_str(package, "version")
    if version is not None:
        return Ok(version)

    inherited = get_table(package, "version")
    if inherited is not None and get_bool(inherited, "workspace"):
        return _cargo_workspace_version(source, base)
    return Err("missing [package].version")


def _cargo_workspace_version(source: ManifestSource, base: PurePosixPath) -> Result[str, str]:
    for parent in (base, *base.parents):
        text = source.read_text(str(parent / "Cargo.toml"))
        if isinstance(text, Err):
            continue
        data = _load_toml(text.value)
        if isinstance(data, Err):
            return data
        workspace = get_table(data.value, "workspace")
        if workspace is None:
            continue
        version = get_str(get_table(workspace, "package") or {}, "version")
        if version is None:
            return Err("workspace Cargo.toml has no [workspace.package].version")
        return Ok(version)
    return Err("version.workspace = true but no enclosing workspace Cargo.toml")


def _pyproject_version(text: str) -> Result[str, str]:
    data = _load_toml(text)
    if isinstance(data, Err):
        return data
    project = get_table(data.value, "project")
    if project is None:
        return Err("missing [project] table")
    version = get_str(project, "version")
    if version is None:
        return Err("missing [project].version (dynamic versions are not supported)")
    return Ok(version)


def _package_json_version(text: str) -> Result[str, str]:
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(f"invalid JSON: {e}")
    data = as_str_dict(obj)
    if data is None:
        return Err("package.json root must be an object")
    version = get_str(data, "version")
    if version is None:
        return Err("missing version")
    return Ok(version)

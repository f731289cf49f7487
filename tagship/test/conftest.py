"""Shared fakes for release tests.

FakeRegistry and FakeCredentials append to one ``calls`` list so tests can
assert on the exact order of collaborator calls within an attempt.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from tagship.core.config import PackageConfig, VersionCheckMode
from tagship.core.result import Err, Ok, Result
from tagship.output.console import MockConsole
from tagship.release.credentials import Credential
from tagship.release.errors import CredentialUnavailable, DryRunError, PublishError
from tagship.release.manifest import WorkingTree
from tagship.release.model import DryRunOk, PublishOk
from tagship.release.orchestrator import ReleaseOrchestrator


def _calls() -> list[str]:
    return []


@dataclass
class FakeRegistry:
    calls: list[str] = field(default_factory=_calls)
    dry_run_result: Result[DryRunOk, DryRunError] = field(default_factory=lambda: Ok(DryRunOk()))
    publish_result: Result[PublishOk, PublishError] | None = None
    seen_credentials: list[Credential | None] = field(default_factory=list)
    locations: list[Path] = field(default_factory=list)

    def dry_run_publish(
        self, location: Path, scoped_credential: Credential | None = None
    ) -> Result[DryRunOk, DryRunError]:
        self.calls.append(f"dry_run:{location.name}")
        self.locations.append(location)
        self.seen_credentials.append(scoped_credential)
        return self.dry_run_result

    def publish(
        self, location: Path, write_credential: Credential
    ) -> Result[PublishOk, PublishError]:
        self.calls.append(f"publish:{location.name}")
        self.locations.append(location)
        self.seen_credentials.append(write_credential)
        if self.publish_result is not None:
            return self.publish_result
        return Ok(PublishOk())


@dataclass
class FakeCredentials:
    calls: list[str] = field(default_factory=_calls)
    token: str | None = "write-token"
    scoped_token: str | None = None

    def fetch_write_credential(self, package: str) -> Result[Credential, CredentialUnavailable]:
        self.calls.append(f"credential:{package}")
        if self.token is None:
            return Err(CredentialUnavailable(package=package, reason="not configured"))
        return Ok(Credential(self.token, source="fake"))

    def fetch_scoped_credential(self, package: str) -> Credential | None:
        if self.scoped_token is None:
            return None
        return Credential(self.scoped_token, source="fake-scoped")


def make_package(
    name: str,
    *,
    version_check: VersionCheckMode = "blocking",
    tag_prefix: str | None = None,
    location: str | None = None,
) -> PackageConfig:
    return PackageConfig(
        name=name,
        tag_prefix=tag_prefix if tag_prefix is not None else f"{name}-v",
        location=location or name,
        version_check=version_check,
    )


def write_cargo_manifest(root: Path, location: str, version: str) -> None:
    crate = root / location
    crate.mkdir(parents=True, exist_ok=True)
    (crate / "Cargo.toml").write_text(
        f'[package]\nname = "{location}"\nversion = "{version}"\nedition = "2021"\n',
        encoding="utf-8",
    )


@dataclass
class Harness:
    root: Path
    calls: list[str]
    registry: FakeRegistry
    credentials: FakeCredentials
    console: MockConsole

    def package(
        self,
        name: str,
        *,
        version_check: VersionCheckMode = "blocking",
        tag_prefix: str | None = None,
        version: str | None = None,
    ) -> PackageConfig:
        """Configured package; with ``version`` its Cargo.toml is written too."""
        pkg = make_package(name, version_check=version_check, tag_prefix=tag_prefix)
        if version is not None:
            write_cargo_manifest(self.root, pkg.location, version)
        return pkg

    def orchestrator(
        self, packages: list[PackageConfig], *, verify_only: bool = False
    ) -> ReleaseOrchestrator:
        return ReleaseOrchestrator(
            packages=packages,
            registry=self.registry,
            credentials=self.credentials,
            manifest_source=lambda ref: WorkingTree(root=self.root),
            package_root=self.root,
            console=self.console,
            verify_only=verify_only,
        )


@pytest.fixture
def harness(tmp_path: Path) -> Harness:
    calls: list[str] = []
    return Harness(
        root=tmp_path,
        calls=calls,
        registry=FakeRegistry(calls=calls),
        credentials=FakeCredentials(calls=calls),
        console=MockConsole(),
    )


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()

"""Error taxonomy of a release attempt.

Errors are plain values carried in ``Err(...)``. Each has a stable ``kind``
used for reporting and a ``message`` holding the raw collaborator text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


# Matching


@dataclass(frozen=True, slots=True)
class NoMatch:
    kind: ClassVar[str] = "no_match"

    tag: str
    known_prefixes: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        if not self.known_prefixes:
            return f"no configured package for tag '{self.tag}'"
        return (
            f"no configured package for tag '{self.tag}' "
            f"(known prefixes: {', '.join(self.known_prefixes)})"
        )


@dataclass(frozen=True, slots=True)
class AmbiguousMatch:
    kind: ClassVar[str] = "ambiguous_match"

    tag: str
    candidates: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"tag '{self.tag}' matches several packages: {', '.join(self.candidates)}"


MatchError = NoMatch | AmbiguousMatch


# Validation


@dataclass(frozen=True, slots=True)
class VersionMismatch:
    kind: ClassVar[str] = "version_mismatch"

    tag_version: str
    declared_version: str

    @property
    def message(self) -> str:
        return (
            f"tag version {self.tag_version} does not match "
            f"manifest version {self.declared_version}"
        )


@dataclass(frozen=True, slots=True)
class ManifestUnreadable:
    kind: ClassVar[str] = "manifest_unreadable"

    path: str
    reason: str

    @property
    def message(self) -> str:
        return f"cannot read version from {self.path}: {self.reason}"


ValidationError = VersionMismatch | ManifestUnreadable


# Registry


@dataclass(frozen=True, slots=True)
class RegistryRejected:
    kind: ClassVar[str] = "registry_rejected"

    message: str


@dataclass(frozen=True, slots=True)
class Timeout:
    kind: ClassVar[str] = "timeout"

    message: str


@dataclass(frozen=True, slots=True)
class NetworkError:
    kind: ClassVar[str] = "network_error"

    message: str


@dataclass(frozen=True, slots=True)
class AlreadyPublished:
    kind: ClassVar[str] = "already_published"

    message: str


@dataclass(frozen=True, slots=True)
class CredentialUnavailable:
    kind: ClassVar[str] = "credential_unavailable"

    package: str
    reason: str

    @property
    def message(self) -> str:
        return f"no write credential for {self.package}: {self.reason}"


DryRunError = RegistryRejected | Timeout | NetworkError

PublishError = AlreadyPublished | RegistryRejected | Timeout | NetworkError | CredentialUnavailable

StageError = MatchError | ValidationError | DryRunError | PublishError

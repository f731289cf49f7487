from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

from tagship.core.config import PackageConfig, VersionCheckMode


class AttemptState(StrEnum):
    MATCHING = "matching"
    VALIDATING = "validating"
    DRY_RUNNING = "dry_running"
    PUBLISHING = "publishing"
    SUCCEEDED = "succeeded"
    ABORTED = "aborted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({AttemptState.SUCCEEDED, AttemptState.ABORTED, AttemptState.FAILED})

StageStatus = Literal["ok", "warning", "error"]


@dataclass(frozen=True, slots=True)
class ReleaseEvent:
    """A pushed tag. ``ref`` is the commit it points at (None: working tree)."""

    tag: str
    ref: str | None = None


@dataclass(frozen=True, slots=True)
class PackageDescriptor:
    """A package snapshot taken for one attempt."""

    name: str
    tag_prefix: str
    location: str
    version_check: VersionCheckMode
    declared_version: str

    @classmethod
    def from_config(cls, pkg: PackageConfig, *, declared_version: str) -> PackageDescriptor:
        return cls(
            name=pkg.name,
            tag_prefix=pkg.tag_prefix,
            location=pkg.location,
            version_check=pkg.version_check,
            declared_version=declared_version,
        )


@dataclass(frozen=True, slots=True)
class StageOutcome:
    stage: AttemptState
    status: StageStatus
    message: str


@dataclass(frozen=True, slots=True)
class DryRunOk:
    output: str = ""


@dataclass(frozen=True, slots=True)
class PublishOk:
    """``published_version`` is None when the registry does not report it."""

    published_version: str | None = None
    output: str = ""


# Terminal results


@dataclass(frozen=True, slots=True)
class Succeeded:
    package: str
    version: str
    note: str | None = None


@dataclass(frozen=True, slots=True)
class Aborted:
    package: str | None
    stage: AttemptState
    reason: str
    message: str


@dataclass(frozen=True, slots=True)
class Failed:
    package: str
    stage: AttemptState
    reason: str
    message: str


AttemptResult = Succeeded | Aborted | Failed


def _empty_log() -> list[StageOutcome]:
    return []


@dataclass(slots=True)
class ReleaseAttempt:
    """Mutable run-time record of one event being released.

    Lives for a single run and is discarded afterwards.
    """

    event: ReleaseEvent
    state: AttemptState = AttemptState.MATCHING
    package: PackageDescriptor | None = None
    tag_version: str | None = None
    dry_run_ok: bool = False
    result: AttemptResult | None = None
    log: list[StageOutcome] = field(default_factory=_empty_log)

    def record(self, status: StageStatus, message: str) -> None:
        self.log.append(StageOutcome(stage=self.state, status=status, message=message))

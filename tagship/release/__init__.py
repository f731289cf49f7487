"""Tag-triggered release pipeline.

- matcher: which configured package a tag targets
- manifest / version: declared version and the tag/manifest comparison
- registry / credentials: external collaborators behind protocols
- orchestrator: the attempt state machine tying the stages together

Nothing in this package imports the CLI, typer or rich.
"""

from __future__ import annotations

from tagship.release.model import (
    Aborted,
    AttemptResult,
    AttemptState,
    Failed,
    PackageDescriptor,
    ReleaseAttempt,
    ReleaseEvent,
    Succeeded,
)
from tagship.release.orchestrator import ReleaseOrchestrator

__all__ = [
    "Aborted",
    "AttemptResult",
    "AttemptState",
    "Failed",
    "PackageDescriptor",
    "ReleaseAttempt",
    "ReleaseEvent",
    "ReleaseOrchestrator",
    "Succeeded",
]

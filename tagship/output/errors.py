"""Attempt outcome presentation.

Centralized rendering of terminal results and exit code mapping.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tagship.core.errors import ErrorCode
from tagship.output.console import Style
from tagship.release.model import Aborted, AttemptResult, Failed, Succeeded

if TYPE_CHECKING:
    from tagship.output.console import ConsoleProtocol

__all__ = ["print_attempt_result", "attempt_exit_code"]


def print_attempt_result(tag: str, result: AttemptResult, console: ConsoleProtocol) -> None:
    """One summary line per attempt, with stage and raw collaborator message."""
    match result:
        case Succeeded(package=package, version=version, note=None):
            console.success(f"{tag}: {package} {version}")
        case Succeeded(package=package, version=version, note=note):
            console.success(f"{tag}: {package} {version}")
            console.print(f"note: {note}", Style.DIM)
        case Aborted(package=package, stage=stage, reason=reason, message=message):
            target = package or "no package"
            console.warning(f"{tag}: {target} aborted at {stage.value} ({reason})")
            console.print(message, Style.DIM)
        case Failed(package=package, stage=stage, reason=reason, message=message):
            console.error(f"{tag}: {package} failed at {stage.value} ({reason})")
            console.print(message, Style.DIM)


def attempt_exit_code(result: AttemptResult | None) -> ErrorCode:
    match result:
        case Succeeded():
            return ErrorCode.OK
        case Aborted():
            return ErrorCode.ABORTED
        case Failed():
            return ErrorCode.FAILED
        case None:
            return ErrorCode.FAILED

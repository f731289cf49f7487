"""Subprocess execution with Result-based error handling.

Registry and git collaborators are external CLIs. This wrapper runs them with
a bounded timeout and captured output, and reports failures as ProcessError
values instead of exceptions.

Usage:
    result = run(["cargo", "publish", "--dry-run"], cwd=crate_dir, timeout=600)
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error) if error.timed_out:
            print("registry call timed out")
        case Err(error):
            print(error.stderr)
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from tagship.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code of the process, -1 when it never completed.
        stdout: Standard output (may be empty).
        stderr: Standard error, or a description when the process did not run.
        timed_out: True when the process was killed after the timeout.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def output(self) -> str:
        """stderr and stdout combined, stripped."""
        return "\n".join(part for part in (self.stderr.strip(), self.stdout.strip()) if part)

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        if self.timed_out:
            return f"{cmd_str} timed out"
        return f"{cmd_str} failed (exit {self.returncode})"


def _decode(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def run(
    cmd: list[str],
    cwd: Path,
    extra_env: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
    scrub_env: tuple[str, ...] = (),
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        extra_env: Variables added on top of the current environment. Secrets
            go here, never into ``cmd``.
        timeout: Maximum seconds to wait (None for no limit).
        scrub_env: Variables removed from the inherited environment before
            ``extra_env`` is applied.

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    env: dict[str, str] | None = None
    if extra_env or scrub_env:
        env = {k: v for k, v in os.environ.items() if k not in scrub_env}
        env.update(extra_env or {})

    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=_decode(e.stdout),
                stderr=f"Command timed out after {timeout}s",
                timed_out=True,
            )
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)

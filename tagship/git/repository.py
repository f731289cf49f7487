"""Read-only git access.

The release pipeline only needs to know what a manifest file contained at
the tagged commit. Nothing here mutates the repository.

Usage:
    repo = Repository(Path("."))
    match repo.show_file("lsp-positions-v0.3.1", "lsp-positions/Cargo.toml"):
        case Ok(text):
            print(text)
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tagship.core.result import Err, Ok, Result
from tagship.platform.process import ProcessError
from tagship.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0

__all__ = [
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class Repository:
    """A git working tree.

    Attributes:
        path: Directory inside the working tree. Paths passed to
            show_file are relative to it.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def show_file(self, ref: str, rel_path: str) -> Result[str, GitError]:
        """Return the content of a file as of a ref.

        Args:
            ref: Any revision git understands.
            rel_path: Path relative to ``self.path``.
        """
        rel = Path(rel_path).as_posix()
        result = self._run(["show", f"{ref}:./{rel}"])
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command="show",
                        message=e.stderr.strip() or f"cannot read {rel} at {ref}",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(["git", *args], cwd=self.path, timeout=_GIT_TIMEOUT_SECONDS)

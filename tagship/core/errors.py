"""Exit codes for the tagship CLI.

Calling automation relies on these values to tell "this tag is not for us"
apart from "the release broke", so they must remain stable:
- 0: Succeeded (published, already published, or verified)
- 1: User error (bad arguments, invalid config)
- 2: Environment error (missing tooling)
- 3: Aborted (no matching package, ambiguous tag, version mismatch)
- 4: Failed (dry run or publish failed)
"""

from enum import IntEnum

__all__ = ["ErrorCode", "worst_code"]


class ErrorCode(IntEnum):
    """Process exit codes."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    ABORTED = 3
    FAILED = 4

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK


# Severity used when several attempts are summarized into one exit code.
_SEVERITY = {
    ErrorCode.OK: 0,
    ErrorCode.ABORTED: 1,
    ErrorCode.FAILED: 2,
    ErrorCode.ENV_ERROR: 3,
    ErrorCode.USER_ERROR: 4,
}


def worst_code(codes: list[ErrorCode]) -> ErrorCode:
    """Return the most severe code (OK for an empty list)."""
    if not codes:
        return ErrorCode.OK
    return max(codes, key=lambda c: _SEVERITY[c])

from __future__ import annotations

import re
from dataclasses import dataclass

# MAJOR.MINOR.PATCH with optional -prerelease and +build metadata.
_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            out += f"-{self.prerelease}"
        if self.build:
            out += f"+{self.build}"
        return out


@dataclass(frozen=True, slots=True)
class VersionCheck:
    passed: bool
    tag_version: str
    declared_version: str


def normalize_version(value: str) -> str:
    """Trim whitespace and drop a single leading ``v``."""
    s = value.strip()
    if s[:1] in {"v", "V"}:
        s = s[1:]
    return s.strip()


def parse_semver(value: str) -> SemVer | None:
    m = _SEMVER_RE.match(normalize_version(value))
    if m is None:
        return None
    return SemVer(
        major=int(m.group(1)),
        minor=int(m.group(2)),
        patch=int(m.group(3)),
        prerelease=m.group(4),
        build=m.group(5),
    )


def validate_version(tag_version: str, declared_version: str) -> VersionCheck:
    """Compare the tag's version with the manifest's, exactly.

    No range or compatibility semantics: ``1.2`` does not equal ``1.2.0``.
    """
    tag_v = normalize_version(tag_version)
    declared_v = normalize_version(declared_version)
    return VersionCheck(
        passed=bool(tag_v) and tag_v == declared_v,
        tag_version=tag_v,
        declared_version=declared_v,
    )

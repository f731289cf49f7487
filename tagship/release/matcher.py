from __future__ import annotations

from collections.abc import Sequence

from tagship.core.config import PackageConfig
from tagship.core.result import Err, Ok, Result
from tagship.release.errors import AmbiguousMatch, MatchError, NoMatch


def prefix_matches(tag: str, prefix: str) -> bool:
    """True when ``prefix`` starts ``tag`` and leaves a non-empty suffix."""
    return bool(prefix) and tag.startswith(prefix) and len(tag) > len(prefix)


def match_tag(tag: str, packages: Sequence[PackageConfig]) -> Result[PackageConfig, MatchError]:
    """Find the single package a tag targets.

    Overlapping prefixes are never resolved by guessing: if two packages
    accept the tag, the match is ambiguous.
    """
    tag = tag.strip()
    hits = [pkg for pkg in packages if prefix_matches(tag, pkg.tag_prefix)]

    if not hits:
        return Err(NoMatch(tag=tag, known_prefixes=tuple(p.tag_prefix for p in packages)))
    if len(hits) > 1:
        return Err(AmbiguousMatch(tag=tag, candidates=tuple(p.name for p in hits)))
    return Ok(hits[0])


def tag_suffix(tag: str, pkg: PackageConfig) -> str:
    """The version part of a tag already matched to ``pkg``."""
    tag = tag.strip()
    if not prefix_matches(tag, pkg.tag_prefix):
        raise AssertionError(f"tag {tag!r} does not start with {pkg.tag_prefix!r}")
    return tag[len(pkg.tag_prefix) :]

from __future__ import annotations

from collections.abc import Mapping

from tagship.core.result import Err, Ok, Result
from tagship.release.model import ReleaseEvent

_TAG_REF_PREFIX = "refs/tags/"


def event_from_args(tag: str, *, ref: str | None = None) -> Result[ReleaseEvent, str]:
    tag = tag.strip()
    if tag.startswith(_TAG_REF_PREFIX):
        tag = tag[len(_TAG_REF_PREFIX) :]
    if not tag:
        return Err("empty tag")
    ref = ref.strip() if ref is not None else None
    return Ok(ReleaseEvent(tag=tag, ref=ref or None))


def event_from_ci_env(env: Mapping[str, str]) -> Result[ReleaseEvent, str]:
    """Build the event of a GitHub Actions tag-push run.

    Uses GITHUB_REF (refs/tags/<tag>) and GITHUB_SHA; GITHUB_REF_NAME is only a
    fallback when GITHUB_REF is absent and GITHUB_REF_TYPE says "tag".
    """
    full_ref = env.get("GITHUB_REF", "").strip()
    sha = env.get("GITHUB_SHA", "").strip() or None

    if full_ref:
        if not full_ref.startswith(_TAG_REF_PREFIX):
            return Err(f"not a tag push: GITHUB_REF={full_ref}")
        return event_from_args(full_ref, ref=sha)

    if env.get("GITHUB_REF_TYPE", "").strip() == "tag":
        name = env.get("GITHUB_REF_NAME", "").strip()
        if name:
            return event_from_args(name, ref=sha)

    return Err("no tag found in environment (expected GITHUB_REF=refs/tags/<tag>)")

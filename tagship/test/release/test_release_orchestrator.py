from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tagship.core.result import Err, Ok
from tagship.release.errors import (
    AlreadyPublished,
    CredentialUnavailable,
    NetworkError,
    RegistryRejected,
    Timeout,
)
from tagship.release.model import (
    Aborted,
    AttemptState,
    Failed,
    PublishOk,
    ReleaseEvent,
    Succeeded,
)

if TYPE_CHECKING:
    from conftest import Harness


def test_matching_tag_publishes_after_dry_run(harness: Harness) -> None:
    pkg = harness.package("libfoo", version="2.3.0")
    harness.registry.publish_result = Ok(PublishOk(published_version="2.3.0"))

    attempt = harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert attempt.result == Succeeded(package="libfoo", version="2.3.0")
    assert attempt.state == AttemptState.SUCCEEDED
    assert harness.calls == ["dry_run:libfoo", "credential:libfoo", "publish:libfoo"]
    assert [o.stage for o in attempt.log] == [
        AttemptState.MATCHING,
        AttemptState.VALIDATING,
        AttemptState.DRY_RUNNING,
        AttemptState.PUBLISHING,
    ]


def test_published_version_defaults_to_manifest_version(harness: Harness) -> None:
    pkg = harness.package("libfoo", version="2.3.0")

    attempt = harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert attempt.result == Succeeded(package="libfoo", version="2.3.0")


@pytest.mark.parametrize("tag", ["libbar-v1.0.0", "libfoo-v", "v1.0.0", "libfoo-2.3.0", ""])
def test_unmatched_tag_aborts_without_registry_calls(harness: Harness, tag: str) -> None:
    pkg = harness.package("libfoo", version="2.3.0")

    attempt = harness.orchestrator([pkg]).run(ReleaseEvent(tag=tag))

    assert isinstance(attempt.result, Aborted)
    assert attempt.result.reason == "no_match"
    assert attempt.result.stage == AttemptState.MATCHING
    assert attempt.result.package is None
    assert harness.calls == []


def test_ambiguous_tag_aborts_without_registry_calls(harness: Harness) -> None:
    foo = harness.package("foo", tag_prefix="foo-", version="1.0.0")
    foo_bar = harness.package("foo-bar", tag_prefix="foo-bar-v", version="1.0.0")

    attempt = harness.orchestrator([foo, foo_bar]).run(ReleaseEvent(tag="foo-bar-v1.0.0"))

    assert isinstance(attempt.result, Aborted)
    assert attempt.result.reason == "ambiguous_match"
    assert "foo" in attempt.result.message
    assert "foo-bar" in attempt.result.message
    assert harness.calls == []


def test_blocking_version_mismatch_aborts_without_registry_calls(harness: Harness) -> None:
    pkg = harness.package("libfoo", version="2.4.0", version_check="blocking")

    attempt = harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert isinstance(attempt.result, Aborted)
    assert attempt.result.reason == "version_mismatch"
    assert attempt.result.stage == AttemptState.VALIDATING
    assert "2.3.0" in attempt.result.message
    assert "2.4.0" in attempt.result.message
    assert harness.calls == []


def test_advisory_version_mismatch_warns_and_continues(harness: Harness) -> None:
    pkg = harness.package("libfoo", version="2.4.0", version_check="advisory")

    attempt = harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert isinstance(attempt.result, Succeeded)
    assert harness.calls == ["dry_run:libfoo", "credential:libfoo", "publish:libfoo"]
    assert harness.console.has_warning()
    assert harness.console.find("does not match manifest version 2.4.0")
    validating = [o for o in attempt.log if o.stage == AttemptState.VALIDATING]
    assert [o.status for o in validating] == ["warning"]


def test_tag_version_is_normalized_before_comparison(harness: Harness) -> None:
    pkg = harness.package("libfoo", tag_prefix="libfoo-", version=" 2.3.0 ")

    attempt = harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert isinstance(attempt.result, Succeeded)


@pytest.mark.parametrize(
    "error",
    [
        RegistryRejected(message="error: missing field `license`"),
        Timeout(message="Command timed out after 600.0s"),
        NetworkError(message="HTTP 503 Service Unavailable"),
    ],
)
def test_dry_run_failure_never_reaches_publish(harness: Harness, error: object) -> None:
    pkg = harness.package("libfoo", version="2.3.0")
    harness.registry.dry_run_result = Err(error)  # type: ignore[arg-type]

    attempt = harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert isinstance(attempt.result, Failed)
    assert attempt.result.stage == AttemptState.DRY_RUNNING
    assert attempt.result.reason == error.kind  # type: ignore[attr-defined]
    assert attempt.result.message == error.message  # type: ignore[attr-defined]
    assert harness.calls == ["dry_run:libfoo"]


def test_already_published_is_success_with_note(harness: Harness) -> None:
    pkg = harness.package("libfoo", version="2.3.0")
    harness.registry.publish_result = Err(
        AlreadyPublished(message="crate version `2.3.0` is already uploaded")
    )

    attempt = harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert isinstance(attempt.result, Succeeded)
    assert attempt.result.version == "2.3.0"
    assert attempt.result.note is not None
    assert "already uploaded" in attempt.result.note
    assert not harness.console.has_error()


def test_publish_rejection_fails_with_stage_and_raw_message(harness: Harness) -> None:
    pkg = harness.package("libfoo", version="2.3.0")
    harness.registry.publish_result = Err(RegistryRejected(message="403 Forbidden: bad token"))

    attempt = harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert attempt.result == Failed(
        package="libfoo",
        stage=AttemptState.PUBLISHING,
        reason="registry_rejected",
        message="403 Forbidden: bad token",
    )


def test_missing_credential_fails_before_publish(harness: Harness) -> None:
    pkg = harness.package("libfoo", version="2.3.0")
    harness.credentials.token = None

    attempt = harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert isinstance(attempt.result, Failed)
    assert attempt.result.stage == AttemptState.PUBLISHING
    assert attempt.result.reason == CredentialUnavailable.kind
    assert harness.calls == ["dry_run:libfoo", "credential:libfoo"]


def test_write_credential_never_reaches_dry_run(harness: Harness) -> None:
    pkg = harness.package("libfoo", version="2.3.0")
    harness.credentials.scoped_token = "read-only"

    harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    dry_run_cred, publish_cred = harness.registry.seen_credentials
    assert dry_run_cred is not None
    assert dry_run_cred.reveal() == "read-only"
    assert publish_cred is not None
    assert publish_cred.reveal() == "write-token"


def test_credential_is_not_printed(harness: Harness) -> None:
    pkg = harness.package("libfoo", version="2.3.0")

    harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert "write-token" not in harness.console.text


def test_verify_only_stops_after_dry_run(harness: Harness) -> None:
    pkg = harness.package("libfoo", version="2.3.0")

    attempt = harness.orchestrator([pkg], verify_only=True).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert isinstance(attempt.result, Succeeded)
    assert attempt.result.note is not None
    assert harness.calls == ["dry_run:libfoo"]


def test_unreadable_manifest_aborts_without_registry_calls(harness: Harness) -> None:
    pkg = harness.package("libfoo")

    attempt = harness.orchestrator([pkg]).run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert isinstance(attempt.result, Aborted)
    assert attempt.result.reason == "manifest_unreadable"
    assert attempt.result.package == "libfoo"
    assert harness.calls == []


def test_publish_only_after_successful_dry_run_in_same_attempt(harness: Harness) -> None:
    pkg = harness.package("libfoo", version="2.3.0")
    orchestrator = harness.orchestrator([pkg])

    ok = orchestrator.run(ReleaseEvent(tag="libfoo-v2.3.0"))
    harness.registry.dry_run_result = Err(RegistryRejected(message="broken"))
    failed = orchestrator.run(ReleaseEvent(tag="libfoo-v2.3.0"))

    assert isinstance(ok.result, Succeeded)
    assert isinstance(failed.result, Failed)
    # Each publish is immediately preceded by a dry run and a credential fetch.
    for i, call in enumerate(harness.calls):
        if call.startswith("publish:"):
            assert harness.calls[i - 2].startswith("dry_run:")
    assert harness.calls.count("publish:libfoo") == 1


def test_run_many_keeps_input_order_and_isolates_attempts(harness: Harness) -> None:
    foo = harness.package("libfoo", version="2.3.0")
    bar = harness.package("libbar", version="0.1.0")
    events = [
        ReleaseEvent(tag="libbar-v0.1.0"),
        ReleaseEvent(tag="nothing-v1.0.0"),
        ReleaseEvent(tag="libfoo-v2.3.0"),
    ]

    attempts = harness.orchestrator([foo, bar]).run_many(events, jobs=3)

    assert [a.event for a in attempts] == events
    assert attempts[0].result == Succeeded(package="libbar", version="0.1.0")
    assert isinstance(attempts[1].result, Aborted)
    assert attempts[2].result == Succeeded(package="libfoo", version="2.3.0")
    assert sorted(harness.calls) == sorted(
        [
            "dry_run:libbar",
            "credential:libbar",
            "publish:libbar",
            "dry_run:libfoo",
            "credential:libfoo",
            "publish:libfoo",
        ]
    )

"""Release orchestrator.

One attempt walks ``matching -> validating -> dry_running -> publishing`` and
ends in ``succeeded``, ``aborted`` or ``failed``. The publishing handler only
runs after a dry run of the same attempt succeeded; nothing is retried.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from tagship.core.config import PackageConfig
from tagship.core.result import Err
from tagship.output.console import ConsoleProtocol
from tagship.release.credentials import CredentialProvider
from tagship.release.errors import AlreadyPublished, StageError, VersionMismatch
from tagship.release.fsm import FINISH, StepOutcome, advance, run_state_machine
from tagship.release.manifest import ManifestSource, read_declared_version
from tagship.release.matcher import match_tag, tag_suffix
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
from tagship.release.registry import Registry
from tagship.release.version import parse_semver, validate_version

SourceFactory = Callable[[str | None], ManifestSource]

VERIFY_ONLY_NOTE = "dry run only, nothing published"


class ReleaseOrchestrator:
    """Runs release attempts against injected collaborators.

    Args:
        packages: Configured packages the tag is matched against.
        registry: Dry-run and publish collaborator.
        credentials: Write (and optional scoped) credential capability.
        manifest_source: Builds the manifest reader for an event's ref.
        package_root: Directory package locations are relative to.
        console: Progress output.
        verify_only: Stop after a successful dry run; never fetch the
            write credential.
    """

    def __init__(
        self,
        *,
        packages: Sequence[PackageConfig],
        registry: Registry,
        credentials: CredentialProvider,
        manifest_source: SourceFactory,
        package_root: Path,
        console: ConsoleProtocol,
        verify_only: bool = False,
    ) -> None:
        self._packages = tuple(packages)
        self._registry = registry
        self._credentials = credentials
        self._manifest_source = manifest_source
        self._package_root = package_root
        self._console = console
        self._verify_only = verify_only

    def run(self, event: ReleaseEvent) -> ReleaseAttempt:
        attempt = ReleaseAttempt(event=event)
        self._console.header(f"Release {event.tag}" + (f" @ {event.ref}" if event.ref else ""))

        handlers = {
            AttemptState.MATCHING.value: self._matching,
            AttemptState.VALIDATING.value: self._validating,
            AttemptState.DRY_RUNNING.value: self._dry_running,
            AttemptState.PUBLISHING.value: self._publishing,
            **{state.value: _finish for state in AttemptState if state.is_terminal},
        }
        done = run_state_machine(
            initial_state=attempt,
            get_step=lambda a: a.state.value,
            handlers=handlers,
        )
        if isinstance(done, Err):
            raise AssertionError(done.error)
        return done.value

    def run_many(self, events: Sequence[ReleaseEvent], *, jobs: int = 1) -> list[ReleaseAttempt]:
        """One independent attempt per event, results in input order.

        With ``jobs > 1`` attempts run on a thread pool; stages inside an
        attempt stay sequential.
        """
        if jobs <= 1 or len(events) <= 1:
            return [self.run(event) for event in events]
        with ThreadPoolExecutor(max_workers=jobs) as executor:
            return list(executor.map(self.run, events))

    # Stage handlers

    def _matching(self, attempt: ReleaseAttempt) -> StepOutcome[ReleaseAttempt]:
        matched = match_tag(attempt.event.tag, self._packages)
        if isinstance(matched, Err):
            return self._abort(attempt, None, matched.error)
        pkg = matched.value

        source = self._manifest_source(attempt.event.ref)
        declared = read_declared_version(source, pkg.location)
        if isinstance(declared, Err):
            return self._abort(attempt, pkg.name, declared.error)

        attempt.package = PackageDescriptor.from_config(pkg, declared_version=declared.value)
        attempt.tag_version = tag_suffix(attempt.event.tag, pkg)
        message = f"{pkg.name} ({pkg.location}) declares {declared.value}"
        attempt.record("ok", message)
        self._console.info(f"package: {message}")

        attempt.state = AttemptState.VALIDATING
        return advance(attempt)

    def _validating(self, attempt: ReleaseAttempt) -> StepOutcome[ReleaseAttempt]:
        pkg = _require_package(attempt)
        tag_version = attempt.tag_version or ""

        if parse_semver(tag_version) is None:
            self._console.warning(f"tag version '{tag_version}' is not a semantic version")

        check = validate_version(tag_version, pkg.declared_version)
        if check.passed:
            attempt.record("ok", f"tag version {check.tag_version} matches manifest")
            self._console.info(f"version: {check.tag_version} matches manifest")
        else:
            mismatch = VersionMismatch(
                tag_version=check.tag_version, declared_version=check.declared_version
            )
            if pkg.version_check == "blocking":
                return self._abort(attempt, pkg.name, mismatch)
            attempt.record("warning", mismatch.message)
            self._console.warning(f"{mismatch.message} (advisory check, continuing)")

        attempt.state = AttemptState.DRY_RUNNING
        return advance(attempt)

    def _dry_running(self, attempt: ReleaseAttempt) -> StepOutcome[ReleaseAttempt]:
        pkg = _require_package(attempt)
        self._console.info(f"dry run: {pkg.name}")

        scoped = self._credentials.fetch_scoped_credential(pkg.name)
        result = self._registry.dry_run_publish(self._location(pkg), scoped)
        del scoped
        if isinstance(result, Err):
            return self._fail(attempt, pkg, result.error)

        attempt.dry_run_ok = True
        attempt.record("ok", "dry run succeeded")

        if self._verify_only:
            self._console.success(
                f"{pkg.name} {pkg.declared_version} verified ({VERIFY_ONLY_NOTE})"
            )
            return self._finish_with(
                attempt,
                Succeeded(package=pkg.name, version=pkg.declared_version, note=VERIFY_ONLY_NOTE),
            )

        attempt.state = AttemptState.PUBLISHING
        return advance(attempt)

    def _publishing(self, attempt: ReleaseAttempt) -> StepOutcome[ReleaseAttempt]:
        pkg = _require_package(attempt)
        if not attempt.dry_run_ok:
            raise AssertionError(f"publish of {pkg.name} without a successful dry run")

        credential = self._credentials.fetch_write_credential(pkg.name)
        if isinstance(credential, Err):
            return self._fail(attempt, pkg, credential.error)

        self._console.info(f"publish: {pkg.name} {pkg.declared_version}")
        result = self._registry.publish(self._location(pkg), credential.value)
        del credential

        if isinstance(result, Err):
            error = result.error
            if isinstance(error, AlreadyPublished):
                note = f"already published: {error.message}"
                attempt.record("warning", note)
                self._console.warning(f"{pkg.name} {pkg.declared_version} was already published")
                return self._finish_with(
                    attempt,
                    Succeeded(package=pkg.name, version=pkg.declared_version, note=note),
                )
            return self._fail(attempt, pkg, error)

        version = result.value.published_version or pkg.declared_version
        attempt.record("ok", f"published {version}")
        self._console.success(f"published {pkg.name} {version}")
        return self._finish_with(attempt, Succeeded(package=pkg.name, version=version))

    # Helpers

    def _location(self, pkg: PackageDescriptor) -> Path:
        return self._package_root / pkg.location

    def _abort(
        self, attempt: ReleaseAttempt, package: str | None, error: StageError
    ) -> StepOutcome[ReleaseAttempt]:
        attempt.record("error", error.message)
        self._console.error(error.message)
        return self._finish_with(
            attempt,
            Aborted(
                package=package, stage=attempt.state, reason=error.kind, message=error.message
            ),
        )

    def _fail(
        self, attempt: ReleaseAttempt, pkg: PackageDescriptor, error: StageError
    ) -> StepOutcome[ReleaseAttempt]:
        stage = attempt.state
        attempt.record("error", f"{error.kind}: {error.message}")
        self._console.error(f"{pkg.name}: {stage.value} failed ({error.kind})")
        self._console.print(error.message)
        return self._finish_with(
            attempt,
            Failed(package=pkg.name, stage=stage, reason=error.kind, message=error.message),
        )

    def _finish_with(
        self, attempt: ReleaseAttempt, result: AttemptResult
    ) -> StepOutcome[ReleaseAttempt]:
        attempt.result = result
        match result:
            case Succeeded():
                attempt.state = AttemptState.SUCCEEDED
            case Aborted():
                attempt.state = AttemptState.ABORTED
            case Failed():
                attempt.state = AttemptState.FAILED
        return advance(attempt)


def _finish(attempt: ReleaseAttempt) -> StepOutcome[ReleaseAttempt]:
    return FINISH


def _require_package(attempt: ReleaseAttempt) -> PackageDescriptor:
    if attempt.package is None:
        raise AssertionError(f"{attempt.state.value} reached without a matched package")
    return attempt.package

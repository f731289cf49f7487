"""Registry credentials.

The orchestrator only sees the ``CredentialProvider`` capability; where tokens
actually live (CI secrets exposed as environment variables here) is an
implementation detail of the provider.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from typing import Protocol

from tagship.core.config import CredentialsConfig
from tagship.core.result import Err, Ok, Result
from tagship.release.errors import CredentialUnavailable

PACKAGE_TOKEN_ENV_PREFIX = "TAGSHIP_TOKEN_"


class Credential:
    """Opaque secret. Never printed, never persisted."""

    __slots__ = ("_secret", "source")

    def __init__(self, secret: str, *, source: str) -> None:
        self._secret = secret
        self.source = source

    def reveal(self) -> str:
        return self._secret

    def __repr__(self) -> str:
        return f"Credential(source={self.source!r}, secret=***)"

    __str__ = __repr__

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Credential) and other._secret == self._secret

    def __hash__(self) -> int:
        return hash(self._secret)


class CredentialProvider(Protocol):
    def fetch_write_credential(self, package: str) -> Result[Credential, CredentialUnavailable]: ...

    def fetch_scoped_credential(self, package: str) -> Credential | None: ...


def package_token_env(package: str) -> str:
    """TAGSHIP_TOKEN_<NAME>, e.g. TAGSHIP_TOKEN_LSP_POSITIONS."""
    return PACKAGE_TOKEN_ENV_PREFIX + re.sub(r"[^A-Za-z0-9]", "_", package).upper()


class EnvCredentialProvider:
    """Reads tokens from the environment at the moment they are requested."""

    def __init__(self, config: CredentialsConfig, env: Mapping[str, str] | None = None) -> None:
        self._config = config
        self._env = env

    def _environ(self) -> Mapping[str, str]:
        return os.environ if self._env is None else self._env

    def fetch_write_credential(self, package: str) -> Result[Credential, CredentialUnavailable]:
        environ = self._environ()
        for name in (package_token_env(package), self._config.write_env):
            value = environ.get(name, "").strip()
            if value:
                return Ok(Credential(value, source=name))
        return Err(
            CredentialUnavailable(
                package=package,
                reason=f"set {package_token_env(package)} or {self._config.write_env}",
            )
        )

    def fetch_scoped_credential(self, package: str) -> Credential | None:
        name = self._config.scoped_env
        if name is None:
            return None
        value = self._environ().get(name, "").strip()
        if not value:
            return None
        return Credential(value, source=name)

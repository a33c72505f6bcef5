"""Bearer token providers.

Tokens come from ``GHWATCH_GITHUB_TOKEN`` or from the JSON credential file
written by earlier releases (``~/.config/github-watch`` by default). The file
also records the login, which saves an identity lookup at startup.
"""

from __future__ import annotations

import dataclasses
import os
import typing as typ
from pathlib import Path

import msgspec

from ghwatch.errors import ConfigError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

TOKEN_ENV_VAR = "GHWATCH_GITHUB_TOKEN"
CREDENTIALS_FILE_ENV_VAR = "GHWATCH_CREDENTIALS_FILE"
DEFAULT_CREDENTIALS_FILE = Path("~/.config/github-watch")


@dataclasses.dataclass(frozen=True, slots=True)
class Credentials:
    """A bearer token and, when known, the login it belongs to."""

    token: str
    login: str | None = None


@typ.runtime_checkable
class CredentialProvider(typ.Protocol):
    """Source of GitHub credentials."""

    def load(self) -> Credentials | None:
        """Return credentials, or ``None`` when this source has none."""
        ...


class _CredentialFile(msgspec.Struct, frozen=True):
    token: str
    login: str | None = None


def _checked_token(token: str) -> str:
    stripped = token.strip()
    if not stripped:
        raise ConfigError.empty_token()
    return stripped


class EnvCredentialProvider:
    """Read the token from ``GHWATCH_GITHUB_TOKEN``."""

    def __init__(self, environ: cabc.Mapping[str, str] | None = None) -> None:
        """Initialise with an optional environment mapping for tests."""
        self._environ = os.environ if environ is None else environ

    def load(self) -> Credentials | None:
        """Return the token from the environment, if the variable is set."""
        raw = self._environ.get(TOKEN_ENV_VAR)
        if raw is None:
            return None
        return Credentials(token=_checked_token(raw))


class FileCredentialProvider:
    """Read ``{"login": ..., "token": ...}`` from a JSON credential file."""

    def __init__(self, path: Path | str = DEFAULT_CREDENTIALS_FILE) -> None:
        """Initialise with the credential file location; ``~`` is expanded."""
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        """Return the resolved credential file path."""
        return self._path

    def load(self) -> Credentials | None:
        """Return the stored credentials, or ``None`` when no file exists."""
        where = str(self._path)
        try:
            data = self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ConfigError.invalid_credentials_file(where, str(exc)) from exc
        try:
            stored = msgspec.json.decode(data, type=_CredentialFile)
        except msgspec.DecodeError as exc:
            raise ConfigError.invalid_credentials_file(where, str(exc)) from exc
        login = stored.login.strip() if stored.login else None
        return Credentials(token=_checked_token(stored.token), login=login or None)


class ChainedCredentialProvider:
    """Try providers in order and return the first credentials found."""

    def __init__(self, providers: cabc.Iterable[CredentialProvider]) -> None:
        """Initialise with providers in priority order."""
        self._providers = tuple(providers)

    def load(self) -> Credentials:
        """Return the first available credentials.

        Raises
        ------
        ConfigError
            If no provider produced a token.

        """
        for provider in self._providers:
            credentials = provider.load()
            if credentials is not None:
                return credentials
        raise ConfigError.missing_token()


def default_credential_provider(
    environ: cabc.Mapping[str, str] | None = None,
) -> ChainedCredentialProvider:
    """Return the environment-then-file provider chain used by the CLI."""
    env = os.environ if environ is None else environ
    path = env.get(CREDENTIALS_FILE_ENV_VAR, "").strip() or DEFAULT_CREDENTIALS_FILE
    return ChainedCredentialProvider(
        [EnvCredentialProvider(env), FileCredentialProvider(path)]
    )


__all__ = [
    "CREDENTIALS_FILE_ENV_VAR",
    "DEFAULT_CREDENTIALS_FILE",
    "TOKEN_ENV_VAR",
    "ChainedCredentialProvider",
    "CredentialProvider",
    "Credentials",
    "EnvCredentialProvider",
    "FileCredentialProvider",
    "default_credential_provider",
]

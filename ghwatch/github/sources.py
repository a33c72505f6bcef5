"""Event source descriptors and the endpoint table.

A source is one independently pollable activity feed. Descriptors are built
from CLI values once at startup and resolved to an endpoint path exactly
once; user-scoped kinds need the authenticated login to resolve.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from ghwatch.common.slug import parse_repo_slug, repo_slug
from ghwatch.errors import ConfigError


class SourceKind(enum.StrEnum):
    """Kinds of activity feeds a descriptor can name."""

    ORG = "org"
    USER_ORG = "user-org"
    REPO = "repo"
    USER = "user"
    RECEIVED_EVENTS = "received-events"


_ENDPOINT_TEMPLATES: typ.Final[dict[SourceKind, str]] = {
    SourceKind.ORG: "/orgs/{identifier}/events",
    SourceKind.USER_ORG: "/users/{login}/events/orgs/{identifier}",
    SourceKind.REPO: "/repos/{identifier}/events",
    SourceKind.USER: "/users/{identifier}/events",
    SourceKind.RECEIVED_EVENTS: "/users/{login}/received_events",
}

_IDENTITY_KINDS: typ.Final[frozenset[SourceKind]] = frozenset(
    {SourceKind.USER_ORG, SourceKind.RECEIVED_EVENTS}
)


@dataclasses.dataclass(frozen=True, slots=True)
class SourceDescriptor:
    """One configured activity feed.

    ``identifier`` is the organisation, ``owner/name`` slug, or user login
    depending on ``kind``; it is empty for ``RECEIVED_EVENTS``.
    """

    kind: SourceKind
    identifier: str = ""

    @property
    def label(self) -> str:
        """Return a stable name used for logging and warm-up accounting."""
        if not self.identifier:
            return str(self.kind)
        return f"{self.kind}:{self.identifier}"

    @property
    def needs_identity(self) -> bool:
        """Return ``True`` when resolving requires the authenticated login."""
        return self.kind in _IDENTITY_KINDS


def _require_name(kind: SourceKind, value: str) -> str:
    name = value.strip()
    if not name or "/" in name:
        raise ConfigError.invalid_source(kind, value)
    return name


def org_source(value: str) -> SourceDescriptor:
    """Return a descriptor for an organisation's public events."""
    return SourceDescriptor(SourceKind.ORG, _require_name(SourceKind.ORG, value))


def user_org_source(value: str) -> SourceDescriptor:
    """Return a descriptor for the authenticated user's view of an organisation."""
    return SourceDescriptor(
        SourceKind.USER_ORG, _require_name(SourceKind.USER_ORG, value)
    )


def repo_source(value: str) -> SourceDescriptor:
    """Return a descriptor for a repository given as ``owner/name``."""
    try:
        owner, name = parse_repo_slug(value)
    except ValueError as exc:
        raise ConfigError.invalid_source(SourceKind.REPO, value) from exc
    return SourceDescriptor(SourceKind.REPO, repo_slug(owner, name))


def user_source(value: str) -> SourceDescriptor:
    """Return a descriptor for a user's public events."""
    return SourceDescriptor(SourceKind.USER, _require_name(SourceKind.USER, value))


def received_events_source() -> SourceDescriptor:
    """Return the default aggregate feed of the authenticated user."""
    return SourceDescriptor(SourceKind.RECEIVED_EVENTS)


def resolve_endpoint(descriptor: SourceDescriptor, *, login: str | None) -> str:
    """Return the API path polled for ``descriptor``.

    Parameters
    ----------
    descriptor : SourceDescriptor
        Source to resolve.
    login : str | None
        Authenticated user's login; required for user-scoped kinds.

    Raises
    ------
    ConfigError
        If the kind needs an identity and ``login`` is empty.

    """
    if descriptor.needs_identity and not login:
        raise ConfigError.identity_required(descriptor.kind)
    template = _ENDPOINT_TEMPLATES[descriptor.kind]
    return template.format(identifier=descriptor.identifier, login=login or "")


__all__ = [
    "SourceDescriptor",
    "SourceKind",
    "org_source",
    "received_events_source",
    "repo_source",
    "resolve_endpoint",
    "user_org_source",
    "user_source",
]

"""Wire envelopes and decoded domain events."""

from __future__ import annotations

import dataclasses
import datetime as dt  # noqa: TC003 - msgspec resolves annotations at runtime
import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    from .payloads import EventPayload


class UserRef(msgspec.Struct, frozen=True, kw_only=True):
    """The account that performed an event."""

    login: str
    display_login: str | None = None

    @property
    def handle(self) -> str:
        """Return the name shown in summaries."""
        return self.display_login or self.login


class RepoRef(msgspec.Struct, frozen=True, kw_only=True):
    """Repository an event happened in; ``name`` is the ``owner/name`` slug."""

    name: str


class OrgRef(msgspec.Struct, frozen=True, kw_only=True):
    """Organisation an event belongs to, when any."""

    login: str


class Envelope(msgspec.Struct, frozen=True, kw_only=True):
    """A raw event record before payload variant resolution.

    ``payload`` stays as undecoded JSON until the decoder has looked up the
    variant for ``type``.
    """

    id: str
    type: str
    actor: UserRef
    repo: RepoRef
    created_at: dt.datetime
    payload: msgspec.Raw
    org: OrgRef | None = None
    public: bool = True


class EnvelopeId(msgspec.Struct, frozen=True):
    """Minimal view of an envelope used for cursor boundary checks."""

    id: str


@dataclasses.dataclass(frozen=True, slots=True)
class Event:
    """A decoded activity event.

    ``id`` is opaque and only ordered within the source that produced it;
    compare ids for identity, never for order.
    """

    id: str
    type: str
    actor: UserRef
    repo_name: str
    created_at: dt.datetime
    payload: EventPayload
    org_name: str | None = None

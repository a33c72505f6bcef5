"""Envelope decoding with discriminator-based payload dispatch.

GitHub tags each event with a ``type`` name and nests a payload whose shape
depends on it. :data:`PAYLOAD_TYPES` lists every documented type name; names
mapped to ``None`` are recognised but have no summary, and names missing
from the table are new to this client. Both cases produce
:class:`~ghwatch.events.payloads.UnknownPayload` without touching the
nested payload, so a new event type never breaks a page.
"""

from __future__ import annotations

import typing as typ

import msgspec

from ghwatch.errors import EventDecodeError

from .models import Envelope, EnvelopeId, Event
from .payloads import (
    CommitCommentPayload,
    CreatePayload,
    DeletePayload,
    ForkPayload,
    GollumPayload,
    IssueCommentPayload,
    IssuesPayload,
    MemberPayload,
    PublicPayload,
    PullRequestPayload,
    PullRequestReviewCommentPayload,
    PullRequestReviewPayload,
    PushPayload,
    ReleasePayload,
    UnknownPayload,
    WatchPayload,
)

if typ.TYPE_CHECKING:
    from .payloads import EventPayload

PAYLOAD_TYPES: typ.Final[typ.Mapping[str, type[msgspec.Struct] | None]] = {
    "CommitCommentEvent": CommitCommentPayload,
    "CreateEvent": CreatePayload,
    "DeleteEvent": DeletePayload,
    "DeploymentEvent": None,
    "DeploymentStatusEvent": None,
    "DiscussionEvent": None,
    "DownloadEvent": None,
    "FollowEvent": None,
    "ForkEvent": ForkPayload,
    "ForkApplyEvent": None,
    "GistEvent": None,
    "GollumEvent": GollumPayload,
    "IssueCommentEvent": IssueCommentPayload,
    "IssuesEvent": IssuesPayload,
    "MemberEvent": MemberPayload,
    "MembershipEvent": None,
    "PageBuildEvent": None,
    "PublicEvent": PublicPayload,
    "PullRequestEvent": PullRequestPayload,
    "PullRequestReviewEvent": PullRequestReviewPayload,
    "PullRequestReviewCommentEvent": PullRequestReviewCommentPayload,
    "PushEvent": PushPayload,
    "ReleaseEvent": ReleasePayload,
    "RepositoryEvent": None,
    "SponsorshipEvent": None,
    "StatusEvent": None,
    "TeamAddEvent": None,
    "WatchEvent": WatchPayload,
}

_PAGE_DECODER = msgspec.json.Decoder(list[msgspec.Raw])
_ENVELOPE_DECODER = msgspec.json.Decoder(Envelope)
_ID_DECODER = msgspec.json.Decoder(EnvelopeId)


def payload_type_for(event_type: str) -> type[msgspec.Struct] | None:
    """Return the payload Struct decoded for ``event_type``, if any."""
    return PAYLOAD_TYPES.get(event_type)


class EnvelopeDecoder:
    """Decode GitHub event pages and envelopes into :class:`Event` values."""

    def decode_page(self, body: bytes) -> list[msgspec.Raw]:
        """Split a response body into undecoded envelopes.

        Raises
        ------
        EventDecodeError
            If the body is not a JSON array.

        """
        try:
            return _PAGE_DECODER.decode(body)
        except msgspec.DecodeError as exc:
            raise EventDecodeError.invalid_page(str(exc)) from exc

    def envelope_id(self, raw: msgspec.Raw | bytes) -> str | None:
        """Return the envelope's ``id`` or ``None`` when it has none."""
        try:
            return _ID_DECODER.decode(raw).id
        except msgspec.DecodeError:
            return None

    def decode(self, raw: msgspec.Raw | bytes) -> Event:
        """Decode one envelope and its payload.

        Raises
        ------
        EventDecodeError
            If the envelope lacks required fields or a known payload variant
            fails validation. Unknown types never raise.

        """
        try:
            envelope = _ENVELOPE_DECODER.decode(raw)
        except msgspec.DecodeError as exc:
            raise EventDecodeError.invalid_envelope(str(exc)) from exc

        return Event(
            id=envelope.id,
            type=envelope.type,
            actor=envelope.actor,
            repo_name=envelope.repo.name,
            created_at=envelope.created_at,
            payload=self._decode_payload(envelope),
            org_name=envelope.org.login if envelope.org else None,
        )

    def _decode_payload(self, envelope: Envelope) -> EventPayload:
        model = payload_type_for(envelope.type)
        if model is None:
            return UnknownPayload(raw_type=envelope.type)
        try:
            return typ.cast(
                "EventPayload", msgspec.json.decode(envelope.payload, type=model)
            )
        except msgspec.DecodeError as exc:
            raise EventDecodeError.invalid_payload(envelope.type, str(exc)) from exc


__all__ = ["PAYLOAD_TYPES", "EnvelopeDecoder", "payload_type_for"]

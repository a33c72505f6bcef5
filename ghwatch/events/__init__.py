"""Event envelopes, payload variants, and the envelope decoder."""

from __future__ import annotations

from .decoder import PAYLOAD_TYPES, EnvelopeDecoder, payload_type_for
from .models import Envelope, Event, OrgRef, RepoRef, UserRef
from .payloads import EventPayload, UnknownPayload

__all__ = [
    "PAYLOAD_TYPES",
    "Envelope",
    "EnvelopeDecoder",
    "Event",
    "EventPayload",
    "OrgRef",
    "RepoRef",
    "UnknownPayload",
    "UserRef",
    "payload_type_for",
]

"""GitHub events client, source descriptors, and per-source pollers."""

from __future__ import annotations

from .client import EventPage, GitHubClientConfig, GitHubEventsClient
from .credentials import (
    ChainedCredentialProvider,
    CredentialProvider,
    Credentials,
    EnvCredentialProvider,
    FileCredentialProvider,
    default_credential_provider,
)
from .observability import (
    ErrorCategory,
    PollEventLogger,
    PollEventType,
    categorize_error,
)
from .poller import PollBatch, SourceCursor, SourcePoller
from .sources import SourceDescriptor, SourceKind, resolve_endpoint

__all__ = [
    "ChainedCredentialProvider",
    "CredentialProvider",
    "Credentials",
    "EnvCredentialProvider",
    "ErrorCategory",
    "EventPage",
    "FileCredentialProvider",
    "GitHubClientConfig",
    "GitHubEventsClient",
    "PollBatch",
    "PollEventLogger",
    "PollEventType",
    "SourceCursor",
    "SourceDescriptor",
    "SourceKind",
    "SourcePoller",
    "categorize_error",
    "default_credential_provider",
    "resolve_endpoint",
]

"""Error taxonomy for polling, decoding, and configuration failures.

Only :class:`ConfigError` is fatal. Transport, API, and page-level decode
failures are caught by the poller and forwarded downstream as batch errors;
envelope-level decode failures drop a single event.
"""

from __future__ import annotations


class GhwatchError(Exception):
    """Base class for all ghwatch errors."""


class TransportError(GhwatchError):
    """Raised when a request never produced an HTTP response."""

    @classmethod
    def timeout(cls, url: str) -> TransportError:
        """Return an error for a request that exceeded its timeout."""
        return cls(f"request to {url} timed out")

    @classmethod
    def network(cls, url: str, detail: str) -> TransportError:
        """Return an error for DNS, connection, or TLS failures."""
        return cls(f"network error requesting {url}: {detail}")


class ApiError(GhwatchError):
    """Raised when the event API answers with an unexpected status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retry_after_s: int | None = None,
    ) -> None:
        """Initialise with the HTTP status and an optional server retry hint."""
        self.status_code = status_code
        self.retry_after_s = retry_after_s
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, url: str) -> ApiError:
        """Return an error for a non-2xx, non-304 response."""
        return cls(f"GitHub API HTTP {status_code} for {url}", status_code=status_code)

    @classmethod
    def rate_limited(cls, status_code: int, retry_after_s: int | None) -> ApiError:
        """Return an error for a rate-limited response."""
        msg = "GitHub API rate limit exceeded"
        if retry_after_s is not None:
            msg = f"{msg}, retry after {retry_after_s}s"
        return cls(msg, status_code=status_code, retry_after_s=retry_after_s)

    @classmethod
    def invalid_body(cls, url: str, detail: str) -> ApiError:
        """Return an error for a successful response with an unusable body."""
        return cls(f"unexpected response body from {url}: {detail}")


class EventDecodeError(GhwatchError):
    """Raised when an event page or envelope does not match the wire schema."""

    @classmethod
    def invalid_page(cls, detail: str) -> EventDecodeError:
        """Return an error for a response body that is not an envelope list."""
        return cls(f"event page is not a JSON array of envelopes: {detail}")

    @classmethod
    def invalid_envelope(cls, detail: str) -> EventDecodeError:
        """Return an error for an envelope missing required fields."""
        return cls(f"malformed event envelope: {detail}")

    @classmethod
    def invalid_payload(cls, event_type: str, detail: str) -> EventDecodeError:
        """Return an error for a known payload variant that failed validation."""
        return cls(f"malformed {event_type} payload: {detail}")


class ConfigError(GhwatchError):
    """Raised at startup when the watcher cannot be configured."""

    @classmethod
    def missing_token(cls) -> ConfigError:
        """Return an error when no credential source produced a token."""
        return cls(
            "no GitHub token found; set GHWATCH_GITHUB_TOKEN or create "
            "~/.config/github-watch"
        )

    @classmethod
    def empty_token(cls) -> ConfigError:
        """Return an error when a token is present but blank."""
        return cls("GitHub token must be non-empty")

    @classmethod
    def invalid_credentials_file(cls, path: str, detail: str) -> ConfigError:
        """Return an error for an unreadable or malformed credential file."""
        return cls(f"cannot read credentials from {path}: {detail}")

    @classmethod
    def invalid_source(cls, kind: str, value: str) -> ConfigError:
        """Return an error for an unusable source descriptor."""
        return cls(f"invalid {kind} source: {value!r}")

    @classmethod
    def identity_required(cls, kind: str) -> ConfigError:
        """Return an error when a source needs the current login but none resolved."""
        return cls(f"{kind} source requires the authenticated user's login")

    @classmethod
    def invalid_setting(cls, name: str, value: object) -> ConfigError:
        """Return an error for an out-of-range configuration value."""
        return cls(f"{name} must be a positive number, got: {value!r}")


__all__ = [
    "ApiError",
    "ConfigError",
    "EventDecodeError",
    "GhwatchError",
    "TransportError",
]

"""Structured log events for polling and merging.

Every record starts with a bracketed event type followed by ``key=value``
pairs so log aggregators can parse them without a schema. Failures carry an
:class:`ErrorCategory` for alert routing.
"""

from __future__ import annotations

import enum
import typing as typ

from ghwatch.errors import ApiError, ConfigError, EventDecodeError, TransportError
from ghwatch.logging import get_logger, log_debug, log_info, log_warning

if typ.TYPE_CHECKING:
    from ghwatch.logging import SupportsLog

_HTTP_SERVER_ERROR_THRESHOLD = 500


class PollEventType(enum.StrEnum):
    """Structured log event types for the watcher."""

    CYCLE_COMPLETED = "poll.cycle.completed"
    CYCLE_NOT_MODIFIED = "poll.cycle.not_modified"
    CYCLE_FAILED = "poll.cycle.failed"
    EVENT_DROPPED = "poll.event.dropped"
    WARMUP_COMPLETED = "merge.warmup.completed"
    BATCH_FLUSHED = "merge.batch.flushed"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    RATE_LIMITED = "rate_limited"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (TransportError, ErrorCategory.TRANSIENT),
    (EventDecodeError, ErrorCategory.SCHEMA_DRIFT),
    (ConfigError, ErrorCategory.CONFIGURATION),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting purposes.

    Returns
    -------
    ErrorCategory
        The type of failure for alert routing.

    """
    # ApiError splits on status and the rate-limit hint
    if isinstance(exc, ApiError):
        if exc.retry_after_s is not None:
            return ErrorCategory.RATE_LIMITED
        if (
            exc.status_code is not None
            and exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD
        ):
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class PollEventLogger:
    """Emit structured poll and merge events through femtologging."""

    def __init__(self, logger: SupportsLog | None = None) -> None:
        """Initialise with an optional logger; defaults to this module's."""
        self._logger = logger or get_logger(__name__)

    def log_cycle_completed(
        self,
        source: str,
        *,
        events: int,
        pages: int,
        poll_interval_s: int,
    ) -> None:
        """Log a poll cycle that fetched at least one page."""
        log_info(
            self._logger,
            "[%s] source=%s events=%d pages=%d poll_interval_s=%d",
            PollEventType.CYCLE_COMPLETED,
            source,
            events,
            pages,
            poll_interval_s,
        )

    def log_not_modified(self, source: str, *, poll_interval_s: int) -> None:
        """Log a cycle answered with ``304 Not Modified``."""
        log_debug(
            self._logger,
            "[%s] source=%s poll_interval_s=%d",
            PollEventType.CYCLE_NOT_MODIFIED,
            source,
            poll_interval_s,
        )

    def log_cycle_failed(self, source: str, error: BaseException) -> None:
        """Log a failed cycle with its error category and status code."""
        status_code = getattr(error, "status_code", None)
        log_warning(
            self._logger,
            "[%s] source=%s error_type=%s error_category=%s status_code=%s "
            "error_message=%s",
            PollEventType.CYCLE_FAILED,
            source,
            type(error).__name__,
            categorize_error(error),
            status_code,
            str(error),
        )

    def log_event_dropped(
        self, source: str, event_id: str | None, error: BaseException
    ) -> None:
        """Log an envelope skipped because it failed to decode."""
        log_warning(
            self._logger,
            "[%s] source=%s event_id=%s error_category=%s error_message=%s",
            PollEventType.EVENT_DROPPED,
            source,
            event_id,
            categorize_error(error),
            str(error),
        )

    def log_warmup_completed(self, *, sources: int, events: int) -> None:
        """Log the first flush after every source has reported."""
        log_info(
            self._logger,
            "[%s] sources=%d events=%d",
            PollEventType.WARMUP_COMPLETED,
            sources,
            events,
        )

    def log_batch_flushed(self, source: str, *, events: int, duplicates: int) -> None:
        """Log a steady-state flush."""
        log_debug(
            self._logger,
            "[%s] source=%s events=%d duplicates=%d",
            PollEventType.BATCH_FLUSHED,
            source,
            events,
            duplicates,
        )


__all__ = [
    "ErrorCategory",
    "PollEventLogger",
    "PollEventType",
    "categorize_error",
]

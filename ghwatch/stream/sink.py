"""EventSink protocol and its console and in-memory adapters.

The merger writes every ordered event and every poller error to a sink.
The protocol is ``runtime_checkable`` so callers can verify an injected
adapter with ``isinstance``.

Usage
-----
>>> from ghwatch.stream.sink import CollectingSink, EventSink
>>> isinstance(CollectingSink(), EventSink)
True

"""

from __future__ import annotations

import dataclasses as dc
import sys
import typing as typ

from ghwatch.github.observability import categorize_error
from ghwatch.logging import get_logger, log_warning
from ghwatch.render.summary import SummaryRenderer

if typ.TYPE_CHECKING:
    from ghwatch.events.models import Event
    from ghwatch.logging import SupportsLog

SEPARATOR_CHAR = "-"


@typ.runtime_checkable
class EventSink(typ.Protocol):
    """Destination for merged events and per-source errors."""

    def write_event(self, event: Event) -> None:
        """Write one event in stream order."""
        ...

    def write_error(self, source: str, error: Exception) -> None:
        """Report a failed poll cycle for ``source``."""
        ...


class ConsoleSink:
    """Print rendered summaries to a text stream.

    Each event is preceded by a separator line as wide as the renderer's
    configured width. Errors go to the log, not the stream.
    """

    def __init__(
        self,
        renderer: SummaryRenderer | None = None,
        *,
        stream: typ.TextIO | None = None,
        logger: SupportsLog | None = None,
    ) -> None:
        """Initialise with a renderer, output stream, and error logger."""
        self._renderer = renderer or SummaryRenderer()
        self._stream = stream or sys.stdout
        self._logger = logger or get_logger(__name__)

    def write_event(self, event: Event) -> None:
        """Print a separator followed by the event summary."""
        separator = SEPARATOR_CHAR * self._renderer.options.width
        self._stream.write(f"{separator}\n{self._renderer.render(event)}\n")
        self._stream.flush()

    def write_error(self, source: str, error: Exception) -> None:
        """Log a poll failure as a warning."""
        log_warning(
            self._logger,
            "Polling %s failed (%s): %s",
            source,
            categorize_error(error),
            error,
        )


@dc.dataclass(slots=True)
class CollectingSink:
    """Keep written events and errors in memory."""

    events: list[Event] = dc.field(default_factory=list)
    errors: list[tuple[str, Exception]] = dc.field(default_factory=list)

    def write_event(self, event: Event) -> None:
        """Append ``event``."""
        self.events.append(event)

    def write_error(self, source: str, error: Exception) -> None:
        """Append ``(source, error)``."""
        self.errors.append((source, error))

    @property
    def event_ids(self) -> list[str]:
        """Return the ids of collected events in write order."""
        return [event.id for event in self.events]


__all__ = ["SEPARATOR_CHAR", "CollectingSink", "ConsoleSink", "EventSink"]

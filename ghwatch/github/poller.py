"""Cursor-based incremental polling of one activity feed.

Each :class:`SourcePoller` owns a private :class:`SourceCursor`. A poll cycle
walks the feed newest first, stopping at whichever comes first: the id seen
on the previous cycle, the requested ``count``, or the last page. Only ids
newer than the boundary are delivered, so a source never repeats an event.

Failures never escape a cycle. Transport, API, and page-level decode errors
are delivered as a :class:`PollBatch` carrying the error, and the cursor is
left exactly as it was so the next cycle retries the same window.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from ghwatch.errors import ApiError, EventDecodeError, TransportError
from ghwatch.events.decoder import EnvelopeDecoder

from .observability import PollEventLogger

if typ.TYPE_CHECKING:
    import msgspec

    from ghwatch.events.models import Event

    from .client import EventPage

DEFAULT_POLL_INTERVAL_S = 30
MIN_POLL_INTERVAL_S = 1
MAX_PER_PAGE = 100

_CYCLE_ERRORS = (TransportError, ApiError, EventDecodeError)


class EventPageFetcher(typ.Protocol):
    """Client interface used by :class:`SourcePoller`."""

    async def fetch_page(
        self,
        url: str,
        *,
        etag: str | None = None,
        per_page: int | None = None,
    ) -> EventPage:
        """Fetch one page of the feed."""
        ...


@dataclasses.dataclass(slots=True)
class SourceCursor:
    """Incremental fetch state for one source.

    Attributes
    ----------
    etag
        Validator from the last first-page response, sent as
        ``If-None-Match``.
    last_seen_id
        Id of the newest envelope delivered so far.
    poll_interval_s
        Delay between cycles, as last advertised by the server.
    next_page_url
        ``next`` link where the last cycle stopped; ``None`` once the
        boundary or the end of pagination was reached.

    """

    etag: str | None = None
    last_seen_id: str | None = None
    poll_interval_s: int = DEFAULT_POLL_INTERVAL_S
    next_page_url: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class PollBatch:
    """Result of one poll cycle; the only message passed between tasks.

    ``events`` are ordered oldest first. ``error`` is set when the cycle
    failed, in which case ``events`` is empty.
    """

    source: str
    events: tuple[Event, ...] = ()
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        """Return ``True`` when the cycle completed without error."""
        return self.error is None


@dataclasses.dataclass(slots=True)
class _CycleResult:
    cursor: SourceCursor
    envelopes: list[msgspec.Raw]
    pages: int
    not_modified: bool


class SourcePoller:
    """Poll one source and emit :class:`PollBatch` values."""

    def __init__(  # noqa: PLR0913
        self,
        source: str,
        endpoint: str,
        client: EventPageFetcher,
        *,
        count: int = 30,
        default_poll_interval_s: int = DEFAULT_POLL_INTERVAL_S,
        decoder: EnvelopeDecoder | None = None,
        event_logger: PollEventLogger | None = None,
    ) -> None:
        """Initialise the poller.

        Parameters
        ----------
        source : str
            Label identifying the source in batches and logs.
        endpoint : str
            Resolved API path of the feed.
        client : EventPageFetcher
            Page fetcher, normally a
            :class:`~ghwatch.github.client.GitHubEventsClient`.
        count : int
            Maximum events delivered by a single cycle.
        default_poll_interval_s : int
            Delay used until the server advertises ``X-Poll-Interval``.
        decoder : EnvelopeDecoder | None
            Envelope decoder; a fresh one is used when omitted.
        event_logger : PollEventLogger | None
            Structured log emitter; a default one is used when omitted.

        """
        self._source = source
        self._endpoint = endpoint
        self._client = client
        self._count = max(count, 1)
        self._decoder = decoder or EnvelopeDecoder()
        self._event_logger = event_logger or PollEventLogger()
        self._cursor = SourceCursor(
            poll_interval_s=max(default_poll_interval_s, MIN_POLL_INTERVAL_S)
        )
        self._retry_after_s: int | None = None

    @property
    def source(self) -> str:
        """Return the source label."""
        return self._source

    @property
    def cursor(self) -> SourceCursor:
        """Return a copy of the current cursor."""
        return dataclasses.replace(self._cursor)

    def next_delay(self) -> float:
        """Return the seconds to wait before the next cycle."""
        delay = max(self._cursor.poll_interval_s, MIN_POLL_INTERVAL_S)
        if self._retry_after_s is not None:
            delay = max(delay, self._retry_after_s)
        return float(delay)

    async def poll_once(self) -> PollBatch:
        """Run one poll cycle and return its batch."""
        try:
            result = await self._fetch_new()
        except _CYCLE_ERRORS as exc:
            self._retry_after_s = (
                exc.retry_after_s if isinstance(exc, ApiError) else None
            )
            self._event_logger.log_cycle_failed(self._source, exc)
            return PollBatch(self._source, error=exc)

        self._retry_after_s = None
        self._cursor = result.cursor
        if result.not_modified:
            self._event_logger.log_not_modified(
                self._source, poll_interval_s=result.cursor.poll_interval_s
            )
            return PollBatch(self._source)

        events = self._decode_all(result.envelopes)
        events.reverse()
        self._event_logger.log_cycle_completed(
            self._source,
            events=len(events),
            pages=result.pages,
            poll_interval_s=result.cursor.poll_interval_s,
        )
        return PollBatch(self._source, tuple(events))

    async def run(
        self, queue: asyncio.Queue[PollBatch], stop: asyncio.Event
    ) -> None:
        """Poll until ``stop`` is set, putting every batch on ``queue``."""
        while not stop.is_set():
            batch = await self.poll_once()
            await queue.put(batch)
            if await _wait_for_stop(stop, self.next_delay()):
                return

    async def _fetch_new(self) -> _CycleResult:
        """Fetch envelopes newer than the cursor into a working copy.

        The stored cursor is not touched; the caller commits the returned
        cursor only once the whole cycle succeeded.
        """
        boundary_id = self._cursor.last_seen_id
        working = dataclasses.replace(self._cursor)
        collected: list[msgspec.Raw] = []
        url: str | None = self._endpoint
        pages = 0

        while url is not None:
            first = pages == 0
            page = await self._client.fetch_page(
                url,
                etag=working.etag if first else None,
                per_page=min(self._count, MAX_PER_PAGE) if first else None,
            )
            pages += 1
            if page.poll_interval_s is not None:
                working.poll_interval_s = max(
                    page.poll_interval_s, MIN_POLL_INTERVAL_S
                )
            if page.not_modified:
                working.next_page_url = None
                return _CycleResult(working, [], pages, not_modified=True)
            if first:
                working.etag = page.etag

            envelopes = self._decoder.decode_page(page.body)
            cut = self._boundary_index(envelopes, boundary_id)
            if cut is None:
                collected.extend(envelopes)
                url = page.next_url
            else:
                collected.extend(envelopes[:cut])
                url = None
            if len(collected) >= self._count:
                del collected[self._count :]
                break

        working.next_page_url = url
        newest_id = self._newest_id(collected)
        if newest_id is not None:
            working.last_seen_id = newest_id
        return _CycleResult(working, collected, pages, not_modified=False)

    def _boundary_index(
        self, envelopes: list[msgspec.Raw], boundary_id: str | None
    ) -> int | None:
        if boundary_id is None:
            return None
        for index, raw in enumerate(envelopes):
            if self._decoder.envelope_id(raw) == boundary_id:
                return index
        return None

    def _newest_id(self, envelopes: list[msgspec.Raw]) -> str | None:
        for raw in envelopes:
            envelope_id = self._decoder.envelope_id(raw)
            if envelope_id is not None:
                return envelope_id
        return None

    def _decode_all(self, envelopes: list[msgspec.Raw]) -> list[Event]:
        events: list[Event] = []
        for raw in envelopes:
            try:
                events.append(self._decoder.decode(raw))
            except EventDecodeError as exc:
                self._event_logger.log_event_dropped(
                    self._source, self._decoder.envelope_id(raw), exc
                )
        return events


async def _wait_for_stop(stop: asyncio.Event, timeout: float) -> bool:
    """Wait up to ``timeout`` seconds; return ``True`` if ``stop`` was set."""
    try:
        await asyncio.wait_for(stop.wait(), timeout=timeout)
    except TimeoutError:
        return stop.is_set()
    return True


__all__ = [
    "DEFAULT_POLL_INTERVAL_S",
    "MAX_PER_PAGE",
    "MIN_POLL_INTERVAL_S",
    "EventPageFetcher",
    "PollBatch",
    "SourceCursor",
    "SourcePoller",
]

"""Fan-in of per-source batches into one ordered, deduplicated stream.

Sources are polled independently, so the first batches arrive in arbitrary
order. The merger holds all output back while ``WARMING`` and only flushes
once every configured source has reported at least once; an empty batch or
an error batch counts as a report. The buffered events are then sorted by
``created_at`` and flushed together, and from that point every batch is
flushed as soon as it arrives.

Event ids are only ordered within a single source, so ordering always uses
``created_at`` and ids are only compared for identity. A bounded window of
recently emitted ids suppresses duplicates delivered by overlapping
sources, for example an organisation feed and a repository feed.
"""

from __future__ import annotations

import collections
import enum
import operator
import typing as typ

from ghwatch.github.observability import PollEventLogger

if typ.TYPE_CHECKING:
    import asyncio
    import collections.abc as cabc

    from ghwatch.events.models import Event
    from ghwatch.github.poller import PollBatch

    from .sink import EventSink

DEFAULT_DEDUPE_WINDOW = 4096

_BY_CREATED_AT = operator.attrgetter("created_at")


class MergerState(enum.StrEnum):
    """Lifecycle of the warm-up gate."""

    WARMING = "warming"
    STEADY = "steady"


class RecentIds:
    """Membership set of the last ``capacity`` ids added."""

    def __init__(self, capacity: int = DEFAULT_DEDUPE_WINDOW) -> None:
        """Initialise an empty window holding at most ``capacity`` ids."""
        if capacity < 1:
            msg = f"capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._order: collections.deque[str] = collections.deque()
        self._members: set[str] = set()

    def __contains__(self, event_id: object) -> bool:
        """Return ``True`` when ``event_id`` is inside the window."""
        return event_id in self._members

    def __len__(self) -> int:
        """Return the number of ids currently remembered."""
        return len(self._order)

    def add(self, event_id: str) -> None:
        """Remember ``event_id``, evicting the oldest id when full."""
        if event_id in self._members:
            return
        self._order.append(event_id)
        self._members.add(event_id)
        if len(self._order) > self._capacity:
            self._members.discard(self._order.popleft())


class StreamMerger:
    """Warm-up gated, time-ordered merge of poll batches."""

    def __init__(
        self,
        sources: cabc.Iterable[str],
        *,
        sink: EventSink,
        dedupe_window: int = DEFAULT_DEDUPE_WINDOW,
        event_logger: PollEventLogger | None = None,
    ) -> None:
        """Initialise the merger.

        Parameters
        ----------
        sources : Iterable[str]
            Labels of every configured source; warm-up waits for all of them.
        sink : EventSink
            Destination for flushed events and batch errors.
        dedupe_window : int
            Number of recently emitted ids remembered for deduplication.
        event_logger : PollEventLogger | None
            Structured log emitter; a default one is used when omitted.

        Raises
        ------
        ValueError
            If ``sources`` is empty.

        """
        self._sources = frozenset(sources)
        if not self._sources:
            msg = "StreamMerger requires at least one source"
            raise ValueError(msg)
        self._sink = sink
        self._event_logger = event_logger or PollEventLogger()
        self._recent = RecentIds(dedupe_window)
        self._reported: collections.Counter[str] = collections.Counter()
        self._buffer: list[Event] = []
        self._state = MergerState.WARMING

    @property
    def state(self) -> MergerState:
        """Return the current gate state."""
        return self._state

    @property
    def pending_sources(self) -> frozenset[str]:
        """Return sources that have not reported yet."""
        return self._sources.difference(self._reported)

    @property
    def buffered(self) -> int:
        """Return the number of events held back by the warm-up gate."""
        return len(self._buffer)

    def accept(self, batch: PollBatch) -> list[Event]:
        """Apply ``batch`` to the state machine and return events to emit.

        Nothing is written to the sink here; see :meth:`handle`.
        """
        self._buffer.extend(batch.events)
        if self._state is MergerState.STEADY:
            flushed, duplicates = self._flush()
            self._event_logger.log_batch_flushed(
                batch.source, events=len(flushed), duplicates=duplicates
            )
            return flushed

        self._reported[batch.source] += 1
        if self.pending_sources:
            return []

        self._state = MergerState.STEADY
        flushed, _ = self._flush()
        self._event_logger.log_warmup_completed(
            sources=len(self._sources), events=len(flushed)
        )
        return flushed

    def handle(self, batch: PollBatch) -> list[Event]:
        """Report the batch error, if any, then write accepted events."""
        if batch.error is not None:
            self._sink.write_error(batch.source, batch.error)
        flushed = self.accept(batch)
        for event in flushed:
            self._sink.write_event(event)
        return flushed

    async def run(
        self, queue: asyncio.Queue[PollBatch], *, once: bool = False
    ) -> None:
        """Consume ``queue`` until cancelled.

        With ``once`` the call returns right after the warm-up flush.
        """
        while True:
            batch = await queue.get()
            try:
                self.handle(batch)
            finally:
                queue.task_done()
            if once and self._state is MergerState.STEADY:
                return

    def _flush(self) -> tuple[list[Event], int]:
        """Sort, deduplicate, and drain the buffer."""
        self._buffer.sort(key=_BY_CREATED_AT)
        flushed: list[Event] = []
        duplicates = 0
        for event in self._buffer:
            if event.id in self._recent:
                duplicates += 1
                continue
            self._recent.add(event.id)
            flushed.append(event)
        self._buffer.clear()
        return flushed, duplicates


__all__ = ["DEFAULT_DEDUPE_WINDOW", "MergerState", "RecentIds", "StreamMerger"]

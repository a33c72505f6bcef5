"""Unit tests for cursor-based incremental polling."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from ghwatch.errors import ApiError, TransportError
from ghwatch.github.client import EventPage, GitHubClientConfig, GitHubEventsClient
from ghwatch.github.observability import (
    ErrorCategory,
    PollEventLogger,
    PollEventType,
    categorize_error,
)
from ghwatch.github.poller import PollBatch, SourceCursor, SourcePoller
from tests.helpers.event_builders import envelope
from tests.helpers.github_events import FakeEventsClient, not_modified_page, ok_page
from tests.helpers.recording_logger import RecordingLogger

_ENDPOINT = "/users/octocat/received_events"


def _poller(
    client: FakeEventsClient,
    *,
    count: int = 30,
    logger: RecordingLogger | None = None,
) -> SourcePoller:
    return SourcePoller(
        "received-events",
        _ENDPOINT,
        client,
        count=count,
        event_logger=PollEventLogger(logger or RecordingLogger()),
    )


def _ids(batch: PollBatch) -> list[str]:
    return [event.id for event in batch.events]


@pytest.mark.asyncio
async def test_first_cycle_delivers_oldest_first() -> None:
    """A cold cursor delivers the whole page reversed to oldest first."""
    client = FakeEventsClient(
        [ok_page([envelope("E3", minutes=3), envelope("E2", minutes=2)])]
    )
    poller = _poller(client)

    batch = await poller.poll_once()

    assert batch.ok
    assert _ids(batch) == ["E2", "E3"]
    assert poller.cursor.last_seen_id == "E3"
    assert poller.cursor.etag == '"etag-1"'
    assert client.calls[0].url == _ENDPOINT
    assert client.calls[0].per_page == 30
    assert client.calls[0].etag is None


@pytest.mark.asyncio
async def test_boundary_truncates_seen_events() -> None:
    """Only envelopes newer than ``last_seen_id`` are delivered."""
    client = FakeEventsClient(
        [
            ok_page([envelope("E3")], etag='"a"'),
            ok_page([envelope("E5"), envelope("E4"), envelope("E3")], etag='"b"'),
        ]
    )
    poller = _poller(client)
    await poller.poll_once()

    batch = await poller.poll_once()

    assert _ids(batch) == ["E4", "E5"]
    assert poller.cursor.last_seen_id == "E5"
    assert poller.cursor.etag == '"b"'
    assert client.calls[1].etag == '"a"'


@pytest.mark.asyncio
async def test_no_id_is_delivered_twice_across_cycles() -> None:
    """Overlapping pages never repeat an id from an earlier cycle."""
    client = FakeEventsClient(
        [
            ok_page([envelope("3"), envelope("2"), envelope("1")]),
            ok_page([envelope("4"), envelope("3"), envelope("2")]),
            ok_page([envelope("6"), envelope("5"), envelope("4")]),
        ]
    )
    poller = _poller(client)

    delivered: list[str] = []
    for _ in range(3):
        delivered.extend(_ids(await poller.poll_once()))

    assert delivered == ["1", "2", "3", "4", "5", "6"]


@pytest.mark.asyncio
async def test_not_modified_preserves_cursor() -> None:
    """A 304 yields an empty batch and only updates the interval."""
    client = FakeEventsClient(
        [
            ok_page([envelope("E1")], etag='"v1"', poll_interval_s=60),
            not_modified_page('"v1"', poll_interval_s=120),
        ]
    )
    poller = _poller(client)
    await poller.poll_once()

    batch = await poller.poll_once()

    assert batch == PollBatch("received-events")
    assert poller.cursor == SourceCursor(
        etag='"v1"', last_seen_id="E1", poll_interval_s=120
    )


@pytest.mark.asyncio
async def test_follows_next_links_until_boundary() -> None:
    """Pagination continues until the boundary id shows up on a later page."""
    client = FakeEventsClient(
        [
            ok_page([envelope("E1")], etag='"a"'),
            ok_page([envelope("E4"), envelope("E3")], etag='"b"', next_url="p2"),
            ok_page([envelope("E2"), envelope("E1")], etag='"c"', next_url="p3"),
        ]
    )
    poller = _poller(client)
    await poller.poll_once()

    batch = await poller.poll_once()

    assert _ids(batch) == ["E2", "E3", "E4"]
    assert [call.url for call in client.calls[1:]] == [_ENDPOINT, "p2"]
    assert client.calls[2].etag is None
    assert client.calls[2].per_page is None
    assert poller.cursor.etag == '"b"'
    assert poller.cursor.next_page_url is None


@pytest.mark.asyncio
async def test_count_limits_pagination() -> None:
    """Fetching stops once ``count`` envelopes are collected."""
    client = FakeEventsClient(
        [
            ok_page([envelope("9"), envelope("8")], next_url="p2"),
            ok_page([envelope("7"), envelope("6")], next_url="p3"),
        ]
    )
    poller = _poller(client, count=3)

    batch = await poller.poll_once()

    assert _ids(batch) == ["7", "8", "9"]
    assert len(client.calls) == 2
    assert client.calls[0].per_page == 3
    assert poller.cursor.last_seen_id == "9"


@pytest.mark.asyncio
async def test_count_caps_cycle_that_reaches_boundary() -> None:
    """Finding the boundary on a later page still honours ``count``."""
    first = [envelope(f"N{index:03d}") for index in range(100)]
    second = [envelope(f"M{index:03d}") for index in range(80)]
    client = FakeEventsClient(
        [
            ok_page([envelope("B")]),
            ok_page(first, next_url="p2"),
            ok_page([*second, envelope("B")]),
        ]
    )
    poller = _poller(client, count=150)
    await poller.poll_once()

    batch = await poller.poll_once()

    assert len(batch.events) == 150
    assert _ids(batch)[-1] == "N000"
    assert _ids(batch)[0] == "M049"
    assert poller.cursor.last_seen_id == "N000"
    assert client.calls[1].per_page == 100


@pytest.mark.asyncio
async def test_redirect_becomes_api_error_batch() -> None:
    """A moved feed is reported as an API error with its status."""
    http_client = httpx.AsyncClient(
        base_url="https://api.github.test",
        transport=httpx.MockTransport(lambda _request: httpx.Response(301)),
    )
    client = GitHubEventsClient(
        GitHubClientConfig(token="t", api_url="https://api.github.test"),
        http_client=http_client,
    )
    poller = SourcePoller(
        "repo:octo/old-name",
        "/repos/octo/old-name/events",
        client,
        event_logger=PollEventLogger(RecordingLogger()),
    )

    batch = await poller.poll_once()
    await http_client.aclose()

    assert isinstance(batch.error, ApiError)
    assert batch.error.status_code == 301
    assert categorize_error(batch.error) is ErrorCategory.CLIENT_ERROR


@pytest.mark.asyncio
async def test_empty_first_page_is_error_free() -> None:
    """An empty page yields no events and leaves ``last_seen_id`` alone."""
    client = FakeEventsClient([ok_page([])])
    poller = _poller(client)

    batch = await poller.poll_once()

    assert batch.ok
    assert batch.events == ()
    assert poller.cursor.last_seen_id is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [TransportError.timeout("/x"), ApiError.http_error(500, "/x")],
)
async def test_errors_become_batches_and_keep_cursor(error: Exception) -> None:
    """Failures are delivered as batch errors with the cursor untouched."""
    logger = RecordingLogger()
    client = FakeEventsClient([ok_page([envelope("E1")], etag='"a"'), error])
    poller = _poller(client, logger=logger)
    await poller.poll_once()
    before = poller.cursor

    batch = await poller.poll_once()

    assert batch.error is error
    assert batch.events == ()
    assert poller.cursor == before
    assert logger.levels(PollEventType.CYCLE_FAILED) == ["WARNING"]


@pytest.mark.asyncio
async def test_failure_on_later_page_discards_partial_cycle() -> None:
    """An error mid-pagination leaves the cursor as before the cycle."""
    client = FakeEventsClient(
        [
            ok_page([envelope("E2")], etag='"new"', next_url="p2"),
            TransportError.network("p2", "reset"),
        ]
    )
    poller = _poller(client)

    batch = await poller.poll_once()

    assert not batch.ok
    assert poller.cursor == SourceCursor()


@pytest.mark.asyncio
async def test_page_decode_error_becomes_batch_error() -> None:
    """A body that is not an array is a page-level error."""
    broken = EventPage(status_code=200, body=b'{"message": "oops"}')
    poller = _poller(FakeEventsClient([broken]))

    batch = await poller.poll_once()

    assert batch.error is not None
    assert "JSON array" in str(batch.error)


@pytest.mark.asyncio
async def test_malformed_envelope_is_dropped_but_counts_as_seen() -> None:
    """A bad envelope is skipped yet still moves the boundary."""
    logger = RecordingLogger()
    bad = envelope("E3", event_type="PushEvent", payload={"size": "x"})
    client = FakeEventsClient(
        [
            ok_page([bad, envelope("E2")]),
            ok_page([envelope("E4"), bad, envelope("E2")]),
        ]
    )
    poller = _poller(client, logger=logger)

    first = await poller.poll_once()
    second = await poller.poll_once()

    assert _ids(first) == ["E2"]
    assert poller.cursor.last_seen_id == "E4"
    assert _ids(second) == ["E4"]
    dropped = logger.messages(PollEventType.EVENT_DROPPED)
    assert len(dropped) == 1
    assert "event_id=E3" in dropped[0]


@pytest.mark.asyncio
async def test_unknown_types_are_delivered() -> None:
    """Unknown discriminators do not stop the batch."""
    client = FakeEventsClient(
        [ok_page([envelope("E1", event_type="NewShinyEvent", payload={})])]
    )

    batch = await _poller(client).poll_once()

    assert batch.events[0].type == "NewShinyEvent"


@pytest.mark.asyncio
async def test_next_delay_honours_interval_and_retry_after() -> None:
    """Delays use the server interval, a minimum of one, and retry hints."""
    client = FakeEventsClient(
        [
            ok_page([], poll_interval_s=0),
            ApiError.rate_limited(429, 300),
            ok_page([], poll_interval_s=45),
        ]
    )
    poller = _poller(client)

    await poller.poll_once()
    assert poller.next_delay() == 1.0
    await poller.poll_once()
    assert poller.next_delay() == 300.0
    await poller.poll_once()
    assert poller.next_delay() == 45.0


@pytest.mark.asyncio
async def test_run_stops_when_signalled() -> None:
    """``run`` puts a batch per cycle and exits once ``stop`` is set."""
    client = FakeEventsClient([ok_page([envelope("E1")])])
    poller = _poller(client)
    queue: asyncio.Queue[PollBatch] = asyncio.Queue()
    stop = asyncio.Event()

    task = asyncio.create_task(poller.run(queue, stop))
    batch = await asyncio.wait_for(queue.get(), timeout=1)
    stop.set()
    await asyncio.wait_for(task, timeout=1)

    assert _ids(batch) == ["E1"]
    assert task.done()
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_cycle_completed_is_logged() -> None:
    """Successful cycles log counts at INFO; 304s log at DEBUG."""
    logger = RecordingLogger()
    client = FakeEventsClient([ok_page([envelope("E1")]), not_modified_page()])
    poller = _poller(client, logger=logger)

    await poller.poll_once()
    await poller.poll_once()

    completed = logger.messages(PollEventType.CYCLE_COMPLETED)
    assert completed == [
        "[poll.cycle.completed] source=received-events events=1 pages=1 "
        "poll_interval_s=30"
    ]
    assert logger.levels(PollEventType.CYCLE_NOT_MODIFIED) == ["DEBUG"]

"""Wire pollers, the merger, and a sink into one watcher run."""

from __future__ import annotations

import asyncio
import contextlib
import typing as typ

from ghwatch.github.client import GitHubClientConfig, GitHubEventsClient
from ghwatch.github.poller import PollBatch, SourcePoller
from ghwatch.github.sources import resolve_endpoint
from ghwatch.logging import get_logger, log_debug, log_exception, log_info
from ghwatch.render.summary import RenderOptions, SummaryRenderer
from ghwatch.stream.merger import StreamMerger
from ghwatch.stream.sink import ConsoleSink

if typ.TYPE_CHECKING:
    import httpx

    from ghwatch.config import WatchConfig
    from ghwatch.github.credentials import Credentials
    from ghwatch.github.observability import PollEventLogger
    from ghwatch.stream.sink import EventSink

logger = get_logger(__name__)


async def build_pollers(
    config: WatchConfig,
    client: GitHubEventsClient,
    *,
    login: str | None,
    event_logger: PollEventLogger | None = None,
) -> list[SourcePoller]:
    """Resolve every configured source and create its poller.

    The authenticated login is looked up once when a user-scoped source
    needs it and ``login`` is not already known.
    """
    descriptors = config.effective_sources
    if login is None and any(d.needs_identity for d in descriptors):
        login = await client.fetch_login()
        log_debug(logger, "Resolved authenticated login %s", login)
    return [
        SourcePoller(
            descriptor.label,
            resolve_endpoint(descriptor, login=login),
            client,
            count=config.count,
            default_poll_interval_s=config.default_poll_interval_s,
            event_logger=event_logger,
        )
        for descriptor in descriptors
    ]


def default_sink(config: WatchConfig) -> ConsoleSink:
    """Return a stdout sink laid out for ``config.width``."""
    options = RenderOptions(width=config.width, body_lines=config.body_lines)
    return ConsoleSink(SummaryRenderer(options))


async def watch(
    config: WatchConfig,
    credentials: Credentials,
    *,
    sink: EventSink | None = None,
    http_client: httpx.AsyncClient | None = None,
    event_logger: PollEventLogger | None = None,
) -> None:
    """Poll every configured source and stream merged events to ``sink``.

    Without ``config.tail`` the call returns after the first merged flush.
    With it the call runs until cancelled. Either way the poller tasks are
    stopped and an owned HTTP client is closed before returning.

    Raises
    ------
    ConfigError
        If a source cannot be resolved.
    TransportError, ApiError
        If the identity lookup fails at startup.

    """
    client = GitHubEventsClient(
        GitHubClientConfig(
            token=credentials.token,
            api_url=config.api_url,
            timeout_s=config.timeout_s,
            user_agent=config.user_agent,
        ),
        http_client=http_client,
    )
    try:
        pollers = await build_pollers(
            config, client, login=credentials.login, event_logger=event_logger
        )
        merger = StreamMerger(
            [poller.source for poller in pollers],
            sink=sink or default_sink(config),
            dedupe_window=config.dedupe_window,
            event_logger=event_logger,
        )
        log_info(
            logger,
            "Watching %d source(s): %s",
            len(pollers),
            ", ".join(poller.source for poller in pollers),
        )
        await _run(pollers, merger, once=not config.tail)
    finally:
        await client.aclose()


async def _run(
    pollers: list[SourcePoller], merger: StreamMerger, *, once: bool
) -> None:
    queue: asyncio.Queue[PollBatch] = asyncio.Queue()
    stop = asyncio.Event()
    poll_tasks = [
        asyncio.create_task(poller.run(queue, stop), name=f"poll:{poller.source}")
        for poller in pollers
    ]
    merge_task = asyncio.create_task(merger.run(queue, once=once), name="merge")
    tasks = [merge_task, *poll_tasks]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        # A poller only finishes early when it crashed; surface its exception.
        for task in done:
            exc = None if task.cancelled() else task.exception()
            if exc is not None:
                log_exception(logger, f"Task {task.get_name()} crashed", exc)
                raise exc
    finally:
        stop.set()
        for task in tasks:
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await asyncio.gather(*tasks, return_exceptions=True)


__all__ = ["build_pollers", "default_sink", "watch"]

"""Merging of per-source batches and event sinks."""

from __future__ import annotations

from .merger import DEFAULT_DEDUPE_WINDOW, MergerState, RecentIds, StreamMerger
from .sink import CollectingSink, ConsoleSink, EventSink

__all__ = [
    "DEFAULT_DEDUPE_WINDOW",
    "CollectingSink",
    "ConsoleSink",
    "EventSink",
    "MergerState",
    "RecentIds",
    "StreamMerger",
]

"""Terminal rendering of activity events."""

from __future__ import annotations

from .summary import RenderOptions, Summary, SummaryRenderer, ellipsis, summarize

__all__ = ["RenderOptions", "Summary", "SummaryRenderer", "ellipsis", "summarize"]

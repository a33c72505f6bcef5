"""Plain-text summaries of activity events.

Rendering happens in two steps. :func:`summarize` matches on the payload
variant and produces a :class:`Summary`: a one-line headline plus optional
body lines. :class:`SummaryRenderer` then lays that out for a terminal of a
given width:

- the repository name in a fixed-width left column,
- the headline next to it with the event time right-aligned on the same line,
- wrapped body lines indented under the headline.

Nothing here performs I/O; width and timezone are inputs.

Usage
-----
>>> renderer = SummaryRenderer(RenderOptions(width=100, tz=dt.UTC))
>>> print(renderer.render(event))  # doctest: +SKIP

"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import textwrap
import typing as typ

from ghwatch.common.time import format_clock
from ghwatch.events.payloads import (
    Comment,
    CommitCommentPayload,
    CreatePayload,
    DeletePayload,
    ForkPayload,
    GollumPayload,
    IssueCommentPayload,
    IssuesPayload,
    MemberPayload,
    PublicPayload,
    PullRequestPayload,
    PullRequestReviewCommentPayload,
    PullRequestReviewPayload,
    PushPayload,
    ReleasePayload,
    UnknownPayload,
    WatchPayload,
)

if typ.TYPE_CHECKING:
    from ghwatch.events.models import Event

ELLIPSIS_MARKER = "..."
_SHORT_SHA_LENGTH = 8
_MIN_TEXT_WIDTH = 20


@dc.dataclass(frozen=True, slots=True)
class RenderOptions:
    """Layout settings for :class:`SummaryRenderer`.

    Attributes
    ----------
    width
        Terminal width in columns.
    repo_column
        Width of the repository name column. Continuation lines are indented
        by this many spaces.
    body_lines
        Maximum comment lines shown before the ellipsis marker.
    tz
        Timezone for the timestamp; ``None`` uses the local timezone.

    """

    width: int = 80
    repo_column: int = 30
    body_lines: int = 5
    tz: dt.tzinfo | None = None


@dc.dataclass(frozen=True, slots=True)
class Summary:
    """Unformatted summary text for one event."""

    headline: str
    body: tuple[str, ...] = ()


def ellipsis(text: str, max_lines: int) -> list[str]:
    """Limit ``text`` to ``max_lines`` lines.

    When more lines exist, the line after the limit becomes ``...`` and the
    rest is dropped.

    >>> ellipsis("a\\nb\\nc", 2)
    ['a', 'b', '...']

    """
    lines = text.replace("\r\n", "\n").split("\n", max_lines)
    if len(lines) == max_lines + 1:
        lines[max_lines] = ELLIPSIS_MARKER
    return lines


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _first_line(message: str) -> str:
    return message.strip().split("\n", 1)[0].rstrip("\r")


def _comment_body(comment: Comment, body_lines: int) -> tuple[str, ...]:
    """Return the blank-separated comment text and link block."""
    return ("", *ellipsis(comment.body or "", body_lines), "", comment.html_url)


def _push_summary(actor: str, push: PushPayload) -> Summary:
    distinct = push.distinct_commits
    count = push.distinct_size if push.distinct_size is not None else len(distinct)
    headline = (
        f"{actor} pushed {count} {_plural(count, 'commit', 'commits')} "
        f"to {push.branch}"
    )
    if not distinct:
        return Summary(headline)
    commits = (
        f"{commit.sha[:_SHORT_SHA_LENGTH]} {_first_line(commit.message)}"
        for commit in distinct
    )
    return Summary(headline, ("", *commits))


def _create_summary(actor: str, create: CreatePayload) -> Summary:
    if create.ref:
        headline = f"{actor} created a new {create.ref_type}: {create.ref}"
    else:
        headline = f"{actor} created a new {create.ref_type}"
    body = (create.description,) if create.description else ()
    return Summary(headline, body)


def summarize(event: Event, *, body_lines: int = 5) -> Summary:  # noqa: C901, PLR0911
    """Build the summary text for ``event`` from its payload variant."""
    actor = f"@{event.actor.login}"
    match event.payload:
        case PushPayload() as push:
            return _push_summary(actor, push)
        case CreatePayload() as create:
            return _create_summary(actor, create)
        case DeletePayload(ref_type=ref_type, ref=ref):
            return Summary(f"{actor} deleted {ref_type} {ref}")
        case IssueCommentPayload(issue=issue, comment=comment):
            return Summary(
                f"{actor} commented on issue #{issue.number}",
                _comment_body(comment, body_lines),
            )
        case IssuesPayload(action=action, issue=issue):
            body = (issue.title,) if issue.title else ()
            return Summary(f"{actor} {action} #{issue.number}", body)
        case PullRequestPayload(action=action, pull_request=pr):
            body = (pr.title,) if pr.title else ()
            return Summary(f"{actor} {action} a pull request #{pr.number}", body)
        case PullRequestReviewPayload(pull_request=pr, review=review):
            headline = f"{actor} reviewed pull request #{pr.number}"
            if review.state:
                headline = f"{headline} ({review.state.lower()})"
            if not review.body:
                return Summary(headline)
            return Summary(
                headline,
                ("", *ellipsis(review.body, body_lines), "", review.html_url),
            )
        case PullRequestReviewCommentPayload(pull_request=pr, comment=comment):
            return Summary(
                f"{actor} commented on pull request #{pr.number}",
                _comment_body(comment, body_lines),
            )
        case CommitCommentPayload(comment=comment):
            return Summary(
                f"{actor} commented on commit {comment.commit_id}",
                _comment_body(comment, body_lines),
            )
        case GollumPayload(pages=pages):
            noun = _plural(len(pages), "wiki page", "wiki pages")
            return Summary(f"{actor} modified {len(pages)} {noun}")
        case ForkPayload(forkee=forkee):
            return Summary(f"{actor} forked the repo at {forkee.html_url}")
        case WatchPayload():
            return Summary(f"{actor} is now watching")
        case ReleasePayload(action=action, release=release):
            body = (release.name,) if release.name else ()
            return Summary(f"{actor} {action} release {release.tag_name}", body)
        case MemberPayload(action=action, member=member):
            return Summary(f"{actor} {action} @{member.login} as a collaborator")
        case PublicPayload():
            return Summary(f"{actor} made the repository public")
        case UnknownPayload(raw_type=raw_type):
            return Summary(f"Unhandled event [{raw_type}]")
    typ.assert_never(event.payload)


def _fit_column(text: str, column: int) -> str:
    """Left-align ``text`` in ``column`` cells, clipping with ``…``."""
    if len(text) >= column:
        text = f"{text[: max(column - 2, 0)]}…"
    return text.ljust(column)


def _wrap(text: str, width: int) -> list[str]:
    return textwrap.wrap(
        text,
        width=width,
        break_long_words=False,
        break_on_hyphens=False,
    ) or [""]


class SummaryRenderer:
    """Lay out event summaries for a fixed terminal width."""

    def __init__(self, options: RenderOptions | None = None) -> None:
        """Initialise with layout options; defaults suit an 80-column terminal."""
        self._options = options or RenderOptions()

    @property
    def options(self) -> RenderOptions:
        """Return the layout options in use."""
        return self._options

    def render(self, event: Event) -> str:
        """Render ``event`` as display text without a trailing newline."""
        summary = summarize(event, body_lines=self._options.body_lines)
        return "\n".join(self.layout(event, summary))

    def layout(self, event: Event, summary: Summary) -> list[str]:
        """Return the display lines for a pre-built ``summary`` of ``event``."""
        opts = self._options
        indent = " " * opts.repo_column
        text_width = max(opts.width - opts.repo_column, _MIN_TEXT_WIDTH)
        stamp = format_clock(event.created_at, opts.tz)
        headline_width = max(text_width - len(stamp) - 1, _MIN_TEXT_WIDTH)

        first, *rest = _wrap(summary.headline, headline_width)
        prefix = f"{_fit_column(event.repo_name, opts.repo_column)}{first}"
        padding = max(opts.width - len(prefix) - len(stamp), 1)
        lines = [f"{prefix}{' ' * padding}{stamp}"]
        lines.extend(f"{indent}{chunk}" for chunk in rest)

        for body_line in summary.body:
            if not body_line.strip():
                lines.append("")
                continue
            lines.extend(f"{indent}{chunk}" for chunk in _wrap(body_line, text_width))
        return lines


__all__ = [
    "ELLIPSIS_MARKER",
    "RenderOptions",
    "Summary",
    "SummaryRenderer",
    "ellipsis",
    "summarize",
]

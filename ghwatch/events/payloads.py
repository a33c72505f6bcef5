"""Typed payload variants for GitHub activity events.

Each Struct mirrors only the slice of the GitHub payload needed to summarise
the event; msgspec ignores the remaining fields. Every field that GitHub has
dropped from some historical payloads carries a default so older and newer
feeds both decode.
"""

from __future__ import annotations

import msgspec


class CommitAuthor(msgspec.Struct, frozen=True, kw_only=True):
    """Author block of a pushed commit."""

    name: str = ""
    email: str = ""


class PushCommit(msgspec.Struct, frozen=True, kw_only=True):
    """A commit listed inside a push payload."""

    sha: str
    message: str = ""
    distinct: bool = True
    url: str = ""
    author: CommitAuthor | None = None


class Comment(msgspec.Struct, frozen=True, kw_only=True):
    """Comment body shared by issue, review, and commit comments."""

    body: str | None = None
    html_url: str = ""


class CommitComment(Comment, frozen=True, kw_only=True):
    """Comment attached to a commit."""

    commit_id: str = ""


class IssueRef(msgspec.Struct, frozen=True, kw_only=True):
    """Issue fields used in summaries."""

    number: int
    title: str = ""
    html_url: str = ""


class PullRequestRef(msgspec.Struct, frozen=True, kw_only=True):
    """Pull request fields used in summaries."""

    number: int
    title: str = ""
    html_url: str = ""


class RepositoryRef(msgspec.Struct, frozen=True, kw_only=True):
    """Repository fields used by fork payloads."""

    full_name: str = ""
    html_url: str = ""


class WikiPage(msgspec.Struct, frozen=True, kw_only=True):
    """A wiki page touched by a Gollum event."""

    page_name: str = ""
    title: str = ""
    action: str = ""
    sha: str = ""
    html_url: str = ""


class Review(msgspec.Struct, frozen=True, kw_only=True):
    """Pull request review fields used in summaries."""

    state: str = ""
    body: str | None = None
    html_url: str = ""


class Release(msgspec.Struct, frozen=True, kw_only=True):
    """Release fields used in summaries."""

    tag_name: str = ""
    name: str | None = None
    html_url: str = ""


class Member(msgspec.Struct, frozen=True, kw_only=True):
    """Collaborator added by a Member event."""

    login: str


class CommitCommentPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``CommitCommentEvent``."""

    comment: CommitComment


class CreatePayload(msgspec.Struct, frozen=True, kw_only=True):
    """``CreateEvent``: a branch, tag, or repository was created."""

    ref_type: str
    ref: str | None = None
    master_branch: str = ""
    description: str | None = None


class DeletePayload(msgspec.Struct, frozen=True, kw_only=True):
    """``DeleteEvent``: a branch or tag was deleted."""

    ref_type: str
    ref: str


class ForkPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``ForkEvent``."""

    forkee: RepositoryRef


class GollumPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``GollumEvent``: wiki pages were created or edited."""

    pages: list[WikiPage] = msgspec.field(default_factory=list)


class IssueCommentPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``IssueCommentEvent``."""

    issue: IssueRef
    comment: Comment
    action: str = "created"


class IssuesPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``IssuesEvent``."""

    action: str
    issue: IssueRef


class MemberPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``MemberEvent``."""

    member: Member
    action: str = "added"


class PublicPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``PublicEvent``: carries no payload fields."""


class PullRequestPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``PullRequestEvent``."""

    action: str
    pull_request: PullRequestRef
    number: int | None = None


class PullRequestReviewPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``PullRequestReviewEvent``."""

    pull_request: PullRequestRef
    review: Review
    action: str = "created"


class PullRequestReviewCommentPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``PullRequestReviewCommentEvent``."""

    pull_request: PullRequestRef
    comment: Comment
    action: str = "created"


class PushPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``PushEvent``.

    ``size`` counts every commit in the push, ``distinct_size`` only those
    not already reachable from an earlier push.
    """

    ref: str
    head: str = ""
    before: str = ""
    size: int = 0
    distinct_size: int | None = None
    commits: list[PushCommit] = msgspec.field(default_factory=list)

    @property
    def distinct_commits(self) -> list[PushCommit]:
        """Return the commits first introduced by this push."""
        return [commit for commit in self.commits if commit.distinct]

    @property
    def branch(self) -> str:
        """Return the ref without its ``refs/heads/`` prefix."""
        return self.ref.removeprefix("refs/heads/")


class ReleasePayload(msgspec.Struct, frozen=True, kw_only=True):
    """``ReleaseEvent``."""

    release: Release
    action: str = "published"


class WatchPayload(msgspec.Struct, frozen=True, kw_only=True):
    """``WatchEvent``: somebody starred the repository."""

    action: str = "started"


class UnknownPayload(msgspec.Struct, frozen=True, kw_only=True):
    """Payload of an event type without a decode target."""

    raw_type: str


type EventPayload = (
    CommitCommentPayload
    | CreatePayload
    | DeletePayload
    | ForkPayload
    | GollumPayload
    | IssueCommentPayload
    | IssuesPayload
    | MemberPayload
    | PublicPayload
    | PullRequestPayload
    | PullRequestReviewPayload
    | PullRequestReviewCommentPayload
    | PushPayload
    | ReleasePayload
    | WatchPayload
    | UnknownPayload
)

__all__ = [
    "Comment",
    "CommitAuthor",
    "CommitComment",
    "CommitCommentPayload",
    "CreatePayload",
    "DeletePayload",
    "EventPayload",
    "ForkPayload",
    "GollumPayload",
    "IssueCommentPayload",
    "IssueRef",
    "IssuesPayload",
    "Member",
    "MemberPayload",
    "PublicPayload",
    "PullRequestPayload",
    "PullRequestRef",
    "PullRequestReviewCommentPayload",
    "PullRequestReviewPayload",
    "PushCommit",
    "PushPayload",
    "Release",
    "ReleasePayload",
    "RepositoryRef",
    "Review",
    "UnknownPayload",
    "WatchPayload",
    "WikiPage",
]

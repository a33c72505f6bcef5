"""Unit tests for slug and clock helpers."""

from __future__ import annotations

import datetime as dt

import pytest

from ghwatch.common.slug import parse_repo_slug, repo_slug
from ghwatch.common.time import format_clock, utcnow


def test_repo_slug_round_trips() -> None:
    """Joined slugs split back into their parts."""
    assert parse_repo_slug(repo_slug("octo", "reef")) == ("octo", "reef")


@pytest.mark.parametrize("slug", ["octo", "/reef", "octo/", "a/b/c", ""])
def test_parse_repo_slug_rejects_malformed(slug: str) -> None:
    """Slugs need exactly one separator with text on both sides."""
    with pytest.raises(ValueError, match="owner/name"):
        parse_repo_slug(slug)


def test_utcnow_is_aware() -> None:
    """Timestamps carry the UTC offset."""
    assert utcnow().utcoffset() == dt.timedelta(0)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (dt.datetime(2024, 1, 2, 15, 4, 5, tzinfo=dt.UTC), "Jan 2 3:04:05 PM"),
        (dt.datetime(2024, 11, 20, 0, 0, 9, tzinfo=dt.UTC), "Nov 20 12:00:09 AM"),
        (dt.datetime(2024, 7, 4, 12, 30, 0, tzinfo=dt.UTC), "Jul 4 12:30:00 PM"),
    ],
)
def test_format_clock(value: dt.datetime, expected: str) -> None:
    """Day and hour are printed without leading zeros."""
    assert format_clock(value, dt.UTC) == expected


def test_format_clock_converts_timezone() -> None:
    """The stamp is rendered in the requested zone."""
    value = dt.datetime(2024, 1, 2, 15, 4, 5, tzinfo=dt.UTC)
    minus_five = dt.timezone(dt.timedelta(hours=-5))

    assert format_clock(value, minus_five) == "Jan 2 10:04:05 AM"

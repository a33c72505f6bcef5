"""Common time utilities."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp."""
    return dt.datetime.now(dt.UTC)


def format_clock(value: dt.datetime, tz: dt.tzinfo | None = None) -> str:
    """Format ``value`` as ``Jan 2 3:04:05 PM`` in ``tz``.

    ``tz=None`` converts to the local timezone. Day and hour carry no
    leading zero; the formatting avoids platform-specific ``%-d`` codes.

    >>> format_clock(dt.datetime(2024, 1, 2, 15, 4, 5, tzinfo=dt.UTC), dt.UTC)
    'Jan 2 3:04:05 PM'

    """
    local = value.astimezone(tz)
    hour = local.hour % 12 or 12
    return f"{local:%b} {local.day} {hour}:{local:%M:%S} {local:%p}"

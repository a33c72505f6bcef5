"""Immutable watcher configuration.

:class:`WatchConfig` is built once at startup, from ``GHWATCH_*`` variables
and then CLI overrides, and passed explicitly to every component.
"""

from __future__ import annotations

import dataclasses
import os
import typing as typ

from ghwatch.errors import ConfigError
from ghwatch.github.client import DEFAULT_API_URL
from ghwatch.github.poller import DEFAULT_POLL_INTERVAL_S
from ghwatch.github.sources import SourceDescriptor, received_events_source
from ghwatch.stream.merger import DEFAULT_DEDUPE_WINDOW

if typ.TYPE_CHECKING:
    import collections.abc as cabc

# Default configuration values - single source of truth
_DEFAULT_COUNT = 30
_DEFAULT_TIMEOUT_S = 20.0
_DEFAULT_BODY_LINES = 5
_DEFAULT_WIDTH = 80
_DEFAULT_USER_AGENT = "ghwatch/0.1"
_DEFAULT_LOG_LEVEL = "INFO"


def _parse_positive_int(name: str, raw: str | None, default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError.invalid_setting(name, raw) from exc
    if value <= 0:
        raise ConfigError.invalid_setting(name, raw)
    return value


def _parse_positive_float(name: str, raw: str | None, default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError.invalid_setting(name, raw) from exc
    if value <= 0:
        raise ConfigError.invalid_setting(name, raw)
    return value


@dataclasses.dataclass(frozen=True, slots=True)
class WatchConfig:
    """Settings for one watcher run.

    Attributes
    ----------
    sources
        Configured feeds; empty means the received-events feed.
    count
        Maximum events fetched per source and cycle.
    tail
        Keep polling after the first merged flush.
    api_url
        GitHub REST API base URL.
    timeout_s
        Per-request timeout in seconds.
    default_poll_interval_s
        Delay between cycles until the server advertises one.
    body_lines
        Comment lines shown before the ellipsis marker.
    width
        Terminal width used for layout.
    user_agent
        ``User-Agent`` header sent with every request.
    dedupe_window
        Recently emitted ids remembered by the merger.
    log_level
        femtologging level name.

    """

    sources: tuple[SourceDescriptor, ...] = ()
    count: int = _DEFAULT_COUNT
    tail: bool = False
    api_url: str = DEFAULT_API_URL
    timeout_s: float = _DEFAULT_TIMEOUT_S
    default_poll_interval_s: int = DEFAULT_POLL_INTERVAL_S
    body_lines: int = _DEFAULT_BODY_LINES
    width: int = _DEFAULT_WIDTH
    user_agent: str = _DEFAULT_USER_AGENT
    dedupe_window: int = DEFAULT_DEDUPE_WINDOW
    log_level: str = _DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: cabc.Mapping[str, str] | None = None) -> WatchConfig:
        """Build configuration from environment variables.

        Reads the following environment variables:

        - ``GHWATCH_API_URL``: Optional API base URL override
        - ``GHWATCH_TIMEOUT_S``: Optional request timeout (positive number)
        - ``GHWATCH_POLL_INTERVAL_S``: Optional default poll interval
          (positive integer)
        - ``GHWATCH_LOG_LEVEL``: Optional log level name

        Raises
        ------
        ConfigError
            If a numeric variable is not a positive number.

        """
        env = os.environ if environ is None else environ
        api_url = env.get("GHWATCH_API_URL", "").strip() or DEFAULT_API_URL
        return cls(
            api_url=api_url.rstrip("/"),
            timeout_s=_parse_positive_float(
                "GHWATCH_TIMEOUT_S", env.get("GHWATCH_TIMEOUT_S"), _DEFAULT_TIMEOUT_S
            ),
            default_poll_interval_s=_parse_positive_int(
                "GHWATCH_POLL_INTERVAL_S",
                env.get("GHWATCH_POLL_INTERVAL_S"),
                DEFAULT_POLL_INTERVAL_S,
            ),
            log_level=env.get("GHWATCH_LOG_LEVEL", "").strip() or _DEFAULT_LOG_LEVEL,
        )

    @property
    def effective_sources(self) -> tuple[SourceDescriptor, ...]:
        """Return configured sources without duplicates, or the default feed."""
        if not self.sources:
            return (received_events_source(),)
        return tuple(dict.fromkeys(self.sources))

    def validate(self) -> WatchConfig:
        """Return ``self`` after checking every numeric setting is positive.

        Raises
        ------
        ConfigError
            If any count, width, interval, or timeout is not positive.

        """
        checks: tuple[tuple[str, float], ...] = (
            ("count", self.count),
            ("timeout_s", self.timeout_s),
            ("default_poll_interval_s", self.default_poll_interval_s),
            ("body_lines", self.body_lines),
            ("width", self.width),
            ("dedupe_window", self.dedupe_window),
        )
        for name, value in checks:
            if value <= 0:
                raise ConfigError.invalid_setting(name, value)
        return self


__all__ = ["WatchConfig"]

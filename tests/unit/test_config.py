"""Unit tests for WatchConfig."""

from __future__ import annotations

import dataclasses

import pytest

from ghwatch.config import WatchConfig
from ghwatch.errors import ConfigError
from ghwatch.github.sources import SourceKind, org_source, received_events_source


def test_from_env_defaults() -> None:
    """An empty environment yields the documented defaults."""
    config = WatchConfig.from_env({})

    assert config.api_url == "https://api.github.com"
    assert config.timeout_s == 20.0
    assert config.default_poll_interval_s == 30
    assert config.count == 30
    assert config.body_lines == 5
    assert config.dedupe_window == 4096
    assert config.log_level == "INFO"


def test_from_env_reads_overrides() -> None:
    """``GHWATCH_*`` variables override the defaults."""
    config = WatchConfig.from_env(
        {
            "GHWATCH_API_URL": "https://ghe.example.test/api/v3/",
            "GHWATCH_TIMEOUT_S": "5.5",
            "GHWATCH_POLL_INTERVAL_S": "90",
            "GHWATCH_LOG_LEVEL": "debug",
        }
    )

    assert config.api_url == "https://ghe.example.test/api/v3"
    assert config.timeout_s == 5.5
    assert config.default_poll_interval_s == 90
    assert config.log_level == "debug"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("GHWATCH_TIMEOUT_S", "0"),
        ("GHWATCH_TIMEOUT_S", "fast"),
        ("GHWATCH_POLL_INTERVAL_S", "-1"),
        ("GHWATCH_POLL_INTERVAL_S", "1.5"),
    ],
)
def test_from_env_rejects_invalid_numbers(name: str, value: str) -> None:
    """Non-positive or non-numeric values are configuration errors."""
    with pytest.raises(ConfigError, match=name):
        WatchConfig.from_env({name: value})


def test_validate_rejects_non_positive_settings() -> None:
    """Validation names the offending setting."""
    config = dataclasses.replace(WatchConfig(), count=0)

    with pytest.raises(ConfigError, match="count"):
        config.validate()


def test_validate_returns_self() -> None:
    """A valid config passes through unchanged."""
    config = WatchConfig()

    assert config.validate() is config


def test_effective_sources_default_to_received_events() -> None:
    """No sources means the authenticated user's received events."""
    assert WatchConfig().effective_sources == (received_events_source(),)


def test_effective_sources_drop_duplicates_in_order() -> None:
    """Repeated descriptors are polled once, keeping first-seen order."""
    config = WatchConfig(
        sources=(org_source("b"), org_source("a"), org_source("b")),
    )

    assert [d.identifier for d in config.effective_sources] == ["b", "a"]
    assert {d.kind for d in config.effective_sources} == {SourceKind.ORG}

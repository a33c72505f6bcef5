"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import os

import pytest

from ghwatch.github.observability import PollEventLogger
from tests.helpers.recording_logger import RecordingLogger

_ENV_PREFIX = "GHWATCH_"


@pytest.fixture(autouse=True)
def _clean_ghwatch_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide the developer's ``GHWATCH_*`` settings from every test."""
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIX):
            monkeypatch.delenv(name)


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Return a logger that keeps every record in memory."""
    return RecordingLogger()


@pytest.fixture
def poll_event_logger(recording_logger: RecordingLogger) -> PollEventLogger:
    """Return a structured event logger backed by ``recording_logger``."""
    return PollEventLogger(recording_logger)

"""Unit tests for the ``ghwatch`` command line."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import pytest

from ghwatch import cli
from ghwatch.errors import ApiError
from ghwatch.github.credentials import Credentials
from ghwatch.github.sources import SourceKind

if typ.TYPE_CHECKING:
    from ghwatch.config import WatchConfig


@dc.dataclass(slots=True)
class _StaticProvider:
    credentials: Credentials | None

    def load(self) -> Credentials | None:
        return self.credentials


@dc.dataclass(slots=True)
class _WatchRecorder:
    calls: list[tuple[WatchConfig, Credentials]] = dc.field(default_factory=list)

    async def __call__(self, config: WatchConfig, credentials: Credentials) -> None:
        self.calls.append((config, credentials))


@pytest.fixture(autouse=True)
def _skip_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CLI tests from reconfiguring global logging."""
    monkeypatch.setattr(cli, "configure_logging", lambda level: ("INFO", False))


def test_parser_collects_tagged_sources_in_order() -> None:
    """Repeated source flags keep their kinds and command-line order."""
    args = cli.build_parser().parse_args(
        ["--org", "octo", "--repo", "octo/reef", "--org", "hub", "--tail"]
    )

    config = cli.config_from_args(args)

    assert [(d.kind, d.identifier) for d in config.sources] == [
        (SourceKind.ORG, "octo"),
        (SourceKind.REPO, "octo/reef"),
        (SourceKind.ORG, "hub"),
    ]
    assert config.tail is True


def test_config_from_args_applies_overrides() -> None:
    """Numeric flags replace the environment defaults."""
    args = cli.build_parser().parse_args(
        ["--count", "5", "--body-lines", "2", "--width", "100"]
    )

    config = cli.config_from_args(args)

    assert (config.count, config.body_lines, config.width) == (5, 2, 100)
    assert config.sources == ()


def test_parser_rejects_non_positive_count() -> None:
    """argparse reports out-of-range counts as usage errors."""
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--count", "0"])


def test_main_runs_watch(monkeypatch: pytest.MonkeyPatch) -> None:
    """A valid invocation runs the watcher with the loaded credentials."""
    recorder = _WatchRecorder()
    monkeypatch.setattr(cli, "watch", recorder)
    credentials = Credentials(token="t", login="octocat")

    code = cli.main(
        ["--user", "hubot", "--width", "72"],
        credential_provider=_StaticProvider(credentials),
    )

    assert code == 0
    [(config, passed)] = recorder.calls
    assert passed == credentials
    assert config.width == 72
    assert config.sources[0].label == "user:hubot"


def test_main_rejects_malformed_repo(monkeypatch: pytest.MonkeyPatch) -> None:
    """A bad repository slug exits with status 1 before polling."""
    recorder = _WatchRecorder()
    monkeypatch.setattr(cli, "watch", recorder)

    code = cli.main(
        ["--repo", "not-a-slug"],
        credential_provider=_StaticProvider(Credentials(token="t")),
    )

    assert code == 1
    assert recorder.calls == []


def test_main_without_credentials_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    """A provider yielding nothing is a startup error."""
    monkeypatch.setattr(cli, "watch", _WatchRecorder())

    assert cli.main([], credential_provider=_StaticProvider(None)) == 1


def test_main_reports_startup_api_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Errors raised while starting the watcher exit with status 1."""

    async def failing_watch(config: WatchConfig, credentials: Credentials) -> None:
        raise ApiError.http_error(401, "/user")

    monkeypatch.setattr(cli, "watch", failing_watch)

    code = cli.main([], credential_provider=_StaticProvider(Credentials(token="t")))

    assert code == 1


def test_main_interrupted_exits_130(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ctrl-C maps to the conventional interrupted exit status."""

    def interrupted(config: WatchConfig, credentials: Credentials) -> typ.NoReturn:
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "watch", interrupted)

    code = cli.main([], credential_provider=_StaticProvider(Credentials(token="t")))

    assert code == cli.EXIT_INTERRUPTED

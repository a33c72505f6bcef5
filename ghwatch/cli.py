"""Watch GitHub activity feeds and print a merged, time-ordered summary."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import functools
import shutil
import typing as typ

from ghwatch.config import WatchConfig
from ghwatch.errors import ConfigError, GhwatchError
from ghwatch.github.credentials import default_credential_provider
from ghwatch.github.sources import (
    SourceDescriptor,
    SourceKind,
    org_source,
    repo_source,
    user_org_source,
    user_source,
)
from ghwatch.logging import configure_logging, get_logger, log_error, log_warning
from ghwatch.watch import watch

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from ghwatch.github.credentials import CredentialProvider

logger = get_logger(__name__)

EXIT_INTERRUPTED = 130

_SOURCE_FACTORIES: dict[SourceKind, cabc.Callable[[str], SourceDescriptor]] = {
    SourceKind.ORG: org_source,
    SourceKind.USER_ORG: user_org_source,
    SourceKind.REPO: repo_source,
    SourceKind.USER: user_source,
}


def _tag_source(kind: SourceKind, value: str) -> tuple[SourceKind, str]:
    return (kind, value)


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        msg = f"expected a positive integer, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return number


def build_parser() -> argparse.ArgumentParser:
    """Return the ``ghwatch`` argument parser."""
    parser = argparse.ArgumentParser(prog="ghwatch", description=__doc__)
    sources = parser.add_argument_group(
        "sources",
        "Feeds to watch; repeatable. Defaults to your received events.",
    )
    for flag, kind, metavar, help_text in (
        ("--org", SourceKind.ORG, "ORG", "public events of an organisation"),
        (
            "--user-org",
            SourceKind.USER_ORG,
            "ORG",
            "your view of an organisation, including private repositories",
        ),
        ("--repo", SourceKind.REPO, "OWNER/NAME", "events of one repository"),
        ("--user", SourceKind.USER, "USER", "public events performed by a user"),
    ):
        sources.add_argument(
            flag,
            dest="sources",
            action="append",
            type=functools.partial(_tag_source, kind),
            metavar=metavar,
            help=help_text,
        )
    parser.add_argument(
        "--count",
        type=_positive_int,
        default=None,
        help="maximum events fetched per source and cycle (default: 30)",
    )
    parser.add_argument(
        "--tail",
        action="store_true",
        help="keep polling and print new events as they arrive",
    )
    parser.add_argument(
        "--body-lines",
        type=_positive_int,
        default=None,
        help="comment lines shown before truncation (default: 5)",
    )
    parser.add_argument(
        "--width",
        type=_positive_int,
        default=None,
        help="output width (default: terminal width)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="log level (default: GHWATCH_LOG_LEVEL or INFO)",
    )
    return parser


def config_from_args(
    args: argparse.Namespace, base: WatchConfig | None = None
) -> WatchConfig:
    """Apply parsed CLI arguments on top of ``base``.

    Raises
    ------
    ConfigError
        If a source value is malformed or a setting is out of range.

    """
    config = base or WatchConfig.from_env()
    tagged: list[tuple[SourceKind, str]] = args.sources or []
    descriptors = tuple(_SOURCE_FACTORIES[kind](value) for kind, value in tagged)
    width = args.width or shutil.get_terminal_size().columns
    return dataclasses.replace(
        config,
        sources=descriptors,
        count=args.count or config.count,
        tail=args.tail,
        body_lines=args.body_lines or config.body_lines,
        width=width,
        log_level=args.log_level or config.log_level,
    ).validate()


def main(
    argv: list[str] | None = None,
    *,
    credential_provider: CredentialProvider | None = None,
) -> int:
    """Run the watcher.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.
    credential_provider : CredentialProvider | None, optional
        Token source; defaults to the environment, then the credential file.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on configuration or startup errors, 130
        when interrupted.

    """
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
    except ConfigError as exc:
        configure_logging(args.log_level)
        log_error(logger, "Invalid configuration: %s", exc)
        return 1

    normalized_level, invalid_level = configure_logging(config.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid log level %r, falling back to %s",
            config.log_level,
            normalized_level,
        )

    provider = credential_provider or default_credential_provider()
    try:
        credentials = provider.load()
        if credentials is None:
            raise ConfigError.missing_token()
        asyncio.run(watch(config, credentials))
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    except GhwatchError as exc:
        log_error(logger, "ghwatch failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

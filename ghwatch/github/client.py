"""HTTP client for the GitHub events REST API."""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx
import msgspec

from ghwatch.common.time import utcnow
from ghwatch.errors import ApiError, ConfigError, TransportError

DEFAULT_API_URL = "https://api.github.com"

_RATE_LIMIT_STATUSES: typ.Final[frozenset[int]] = frozenset({403, 429})
_TOO_MANY_REQUESTS = 429


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubClientConfig:
    """Connection settings for :class:`GitHubEventsClient`."""

    token: str
    api_url: str = DEFAULT_API_URL
    timeout_s: float = 20.0
    user_agent: str = "ghwatch/0.1"


@dataclasses.dataclass(frozen=True, slots=True)
class EventPage:
    """One fetched page of the events feed.

    ``body`` is empty for ``304 Not Modified`` responses. ``etag`` and
    ``poll_interval_s`` are ``None`` when the server omitted the headers.
    """

    status_code: int
    body: bytes = b""
    etag: str | None = None
    poll_interval_s: int | None = None
    next_url: str | None = None

    @property
    def not_modified(self) -> bool:
        """Return ``True`` when the server reported no change since ``etag``."""
        return self.status_code == httpx.codes.NOT_MODIFIED


class _AuthenticatedUser(msgspec.Struct, frozen=True):
    login: str


def _header_int(response: httpx.Response, name: str) -> int | None:
    raw = response.headers.get(name)
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def _retry_after_s(response: httpx.Response) -> int | None:
    """Return the server's retry delay in seconds, if it named one."""
    retry_after = _header_int(response, "Retry-After")
    if retry_after is not None:
        return max(retry_after, 0)
    if response.headers.get("X-RateLimit-Remaining") != "0":
        return None
    reset_at = _header_int(response, "X-RateLimit-Reset")
    if reset_at is None:
        return None
    return max(reset_at - int(utcnow().timestamp()), 0)


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code not in _RATE_LIMIT_STATUSES:
        return False
    if response.status_code == _TOO_MANY_REQUESTS:
        return True
    return (
        "Retry-After" in response.headers
        or response.headers.get("X-RateLimit-Remaining") == "0"
    )


def _raise_for_status(response: httpx.Response, url: str) -> None:
    if response.is_success:
        return
    if _is_rate_limited(response):
        raise ApiError.rate_limited(response.status_code, _retry_after_s(response))
    raise ApiError.http_error(response.status_code, url)


class GitHubEventsClient:
    """Conditional page fetcher for GitHub activity feeds."""

    def __init__(
        self,
        config: GitHubClientConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise ConfigError.empty_token()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=config.api_url,
            timeout=config.timeout_s,
            follow_redirects=True,
            headers={
                "Authorization": f"Bearer {config.token}",
                "User-Agent": config.user_agent,
                "Accept": "application/vnd.github+json",
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch_page(
        self,
        url: str,
        *,
        etag: str | None = None,
        per_page: int | None = None,
    ) -> EventPage:
        """Fetch one page of events.

        Parameters
        ----------
        url : str
            Endpoint path for the first page, or the absolute ``next`` link
            of a previous page.
        etag : str | None
            Sent as ``If-None-Match`` to make the request conditional.
        per_page : int | None
            Page size; omit when following a ``next`` link that already
            carries it.

        Raises
        ------
        TransportError
            If the request timed out or never reached the server.
        ApiError
            If the server answered with any status outside 2xx other than 304.

        """
        headers = {"If-None-Match": etag} if etag else None
        params = {"per_page": per_page} if per_page is not None else None
        response = await self._get(url, headers=headers, params=params)

        poll_interval_s = _header_int(response, "X-Poll-Interval")
        if response.status_code == httpx.codes.NOT_MODIFIED:
            return EventPage(
                status_code=response.status_code,
                etag=etag,
                poll_interval_s=poll_interval_s,
            )

        _raise_for_status(response, url)
        next_link = response.links.get("next", {}).get("url")
        return EventPage(
            status_code=response.status_code,
            body=response.content,
            etag=response.headers.get("ETag"),
            poll_interval_s=poll_interval_s,
            next_url=next_link or None,
        )

    async def fetch_login(self) -> str:
        """Return the login of the user the token belongs to."""
        url = "/user"
        response = await self._get(url)
        _raise_for_status(response, url)
        try:
            user = msgspec.json.decode(response.content, type=_AuthenticatedUser)
        except msgspec.DecodeError as exc:
            raise ApiError.invalid_body(url, str(exc)) from exc
        return user.login

    async def _get(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, int] | None = None,
    ) -> httpx.Response:
        try:
            return await self._client.get(url, headers=headers, params=params)
        except httpx.TimeoutException as exc:
            raise TransportError.timeout(url) from exc
        except httpx.RequestError as exc:
            raise TransportError.network(url, str(exc)) from exc


__all__ = [
    "DEFAULT_API_URL",
    "EventPage",
    "GitHubClientConfig",
    "GitHubEventsClient",
]

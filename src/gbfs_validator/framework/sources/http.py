"""
HTTP feed source backed by ``httpx.AsyncClient``.

Every request carries ``User-Agent`` and ``Accept: application/json`` plus
whatever the configured authenticator supplies. Status mapping:

    200           -> Found
    404           -> NotFound
    anything else -> Failed(HttpStatusError)

Transport problems become ``Failed(NetworkError)`` and per-request timeouts
``Failed(FetchTimeoutError)``. Nothing is retried here.
"""

from __future__ import annotations

import httpx

from gbfs_validator.core.errors import (
    AuthError,
    AuthenticationError,
    FetchTimeoutError,
    HttpStatusError,
    NetworkError,
    ValidatorError,
)
from gbfs_validator.core.settings import get_settings
from gbfs_validator.framework.logging import get_logger
from gbfs_validator.framework.sources.auth import AuthConfig, Authenticator, build_authenticator
from gbfs_validator.framework.sources.protocol import Failed, FetchOutcome, Found, NotFound

log = get_logger(__name__)


def build_feed_url(base_url: str, name: str) -> str:
    """
    Derive the URL of document ``name`` from a base or manifest URL.

    >>> build_feed_url("https://x.org/gbfs/", "station_status")
    'https://x.org/gbfs/station_status.json'
    >>> build_feed_url("https://x.org/gbfs/gbfs.json", "system_information")
    'https://x.org/gbfs/system_information.json'
    >>> build_feed_url("https://x.org/gbfs", "gbfs")
    'https://x.org/gbfs/gbfs.json'
    """
    if base_url.endswith("/"):
        return f"{base_url}{name}.json"
    if base_url.endswith("gbfs.json"):
        return f"{base_url[: -len('gbfs.json')]}{name}.json"
    return f"{base_url}/{name}.json"


class HttpSource:
    """
    Fetch feed documents over HTTP.

    The client is owned by the caller. ``user_agent`` defaults to the
    ``user_agent`` setting. Authentication state (an OAuth token)
    lives on this instance, so create one source per validation run.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        auth: AuthConfig | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
    ):
        self._client = client
        self._authenticator: Authenticator = build_authenticator(auth, client)
        self._user_agent = user_agent or get_settings().user_agent
        self._timeout = timeout

    async def fetch(self, url: str) -> FetchOutcome:
        try:
            auth_headers = await self._authenticator.headers()
        except AuthError as e:
            return self._failed(AuthenticationError(f"authentication failed: {e.message}", cause=e), url)

        headers = {
            "User-Agent": self._user_agent,
            "Accept": "application/json",
            **auth_headers,
        }
        request_kwargs = {"headers": headers}
        if self._timeout is not None:
            request_kwargs["timeout"] = self._timeout

        try:
            response = await self._client.get(url, **request_kwargs)
        except httpx.TimeoutException as e:
            return self._failed(FetchTimeoutError(f"request timed out: {e}", cause=e), url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._failed(NetworkError(f"request failed: {e}", cause=e), url)

        if response.status_code == 404:
            log.debug("fetch.not_found", url=url)
            return NotFound(status_code=404)
        if response.status_code != 200:
            return self._failed(HttpStatusError(response.status_code), url)

        log.debug("fetch.found", url=url, bytes=len(response.content))
        return Found(body=response.content, status_code=response.status_code)

    @staticmethod
    def _failed(error: ValidatorError, url: str) -> Failed:
        error.with_context(url=url)
        log.debug("fetch.failed", **error.to_dict())
        return Failed(error)

    async def aclose(self) -> None:
        """Abandon any token exchange still in flight."""
        await self._authenticator.aclose()

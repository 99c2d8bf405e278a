"""
Authentication for feed requests.

Configuration is a discriminated union on ``type`` using the JSON names
feed operators already use in validator requests::

    {"type": "basic_auth", "basicAuth": {"user": "u", "password": "p"}}
    {"type": "bearer_token", "bearerToken": {"token": "t"}}
    {"type": "oauth_client_credentials_grant",
     "oauthClientCredentialsGrant": {"user": "id", "password": "secret",
                                     "tokenUrl": "https://auth/token"}}
    {"type": "headers", "headers": [{"key": "X-Api-Key", "value": "k"}]}

:func:`build_authenticator` turns a config into an authenticator whose
``headers()`` coroutine yields the headers for one request.

The client-credentials authenticator performs the token exchange once per
instance. The first caller starts it as a task; concurrent callers await
that same task; the result (token or :class:`AuthenticationError`) is kept
for the authenticator's lifetime.
"""

from __future__ import annotations

import asyncio
import base64
from typing import Annotated, Literal, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from gbfs_validator.core.errors import AuthenticationError, ConfigError
from gbfs_validator.framework.logging import get_logger

log = get_logger(__name__)


class _AuthModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ── Configuration ─────────────────────────────────────────────────────────


class BasicCredentials(_AuthModel):
    user: str
    password: str


class BearerToken(_AuthModel):
    token: str


class ClientCredentials(_AuthModel):
    user: str
    password: str
    token_url: str


class HeaderEntry(_AuthModel):
    key: str = ""
    value: str = ""


class NoAuth(_AuthModel):
    type: Literal["none"] = "none"


class BasicAuth(_AuthModel):
    type: Literal["basic_auth"] = "basic_auth"
    basic_auth: BasicCredentials


class BearerTokenAuth(_AuthModel):
    type: Literal["bearer_token"] = "bearer_token"
    bearer_token: BearerToken


class OAuthClientCredentialsGrant(_AuthModel):
    type: Literal["oauth_client_credentials_grant"] = "oauth_client_credentials_grant"
    oauth_client_credentials_grant: ClientCredentials


class HeadersAuth(_AuthModel):
    type: Literal["headers"] = "headers"
    headers: list[HeaderEntry] = Field(default_factory=list)


AuthConfig = Annotated[
    NoAuth | BasicAuth | BearerTokenAuth | OAuthClientCredentialsGrant | HeadersAuth,
    Field(discriminator="type"),
]

_auth_adapter: TypeAdapter[AuthConfig] = TypeAdapter(AuthConfig)


def parse_auth_config(data: dict | None) -> AuthConfig:
    """Parse a JSON-style auth mapping; ``None`` means no authentication."""
    if not data:
        return NoAuth()
    try:
        return _auth_adapter.validate_python(data)
    except ValidationError as e:
        raise ConfigError(f"invalid auth configuration: {e.error_count()} error(s)", cause=e) from e


# ── Authenticators ────────────────────────────────────────────────────────


class Authenticator(Protocol):
    async def headers(self) -> dict[str, str]: ...

    async def aclose(self) -> None: ...


class StaticHeaders:
    """Authenticator with a fixed header set (none, basic, bearer, custom headers)."""

    def __init__(self, headers: dict[str, str] | None = None):
        self._headers = dict(headers or {})

    async def headers(self) -> dict[str, str]:
        return dict(self._headers)

    async def aclose(self) -> None:
        return None


class ClientCredentialsAuthenticator:
    """OAuth 2.0 client-credentials grant with a shared, cached exchange."""

    def __init__(self, credentials: ClientCredentials, client: httpx.AsyncClient):
        self._credentials = credentials
        self._client = client
        self._exchange: asyncio.Task[str] | None = None

    async def headers(self) -> dict[str, str]:
        # No await between the check and the assignment
        if self._exchange is None:
            self._exchange = asyncio.ensure_future(self._request_token())
        token = await asyncio.shield(self._exchange)
        return {"Authorization": f"Bearer {token}"}

    async def _request_token(self) -> str:
        url = self._credentials.token_url
        log.debug("auth.token_exchange.start", token_url=url)
        try:
            response = await self._client.post(
                url,
                data={"grant_type": "client_credentials"},
                auth=(self._credentials.user, self._credentials.password),
                headers={"Accept": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise AuthenticationError(f"token request failed: {e}", cause=e).with_context(url=url) from e

        if response.status_code != 200:
            raise AuthenticationError(
                f"token endpoint returned status {response.status_code}"
            ).with_context(url=url, http_status=response.status_code)

        try:
            token = response.json().get("access_token")
        except (ValueError, AttributeError) as e:
            raise AuthenticationError("token response is not a JSON object", cause=e).with_context(url=url) from e
        if not token or not isinstance(token, str):
            raise AuthenticationError("token response has no access_token").with_context(url=url)

        log.info("auth.token_exchange.end", token_url=url)
        return token

    async def aclose(self) -> None:
        if self._exchange is not None and not self._exchange.done():
            self._exchange.cancel()
            try:
                await self._exchange
            except (asyncio.CancelledError, AuthenticationError):
                pass


def _basic_header(user: str, password: str) -> str:
    encoded = base64.b64encode(f"{user}:{password}".encode()).decode("ascii")
    return f"Basic {encoded}"


def build_authenticator(config: AuthConfig | None, client: httpx.AsyncClient) -> Authenticator:
    """Create the authenticator for ``config``; token exchanges go through ``client``."""
    match config:
        case None | NoAuth():
            return StaticHeaders()
        case BasicAuth(basic_auth=creds):
            return StaticHeaders({"Authorization": _basic_header(creds.user, creds.password)})
        case BearerTokenAuth(bearer_token=bearer):
            return StaticHeaders({"Authorization": f"Bearer {bearer.token}"})
        case OAuthClientCredentialsGrant(oauth_client_credentials_grant=creds):
            return ClientCredentialsAuthenticator(creds, client)
        case HeadersAuth(headers=entries):
            return StaticHeaders({e.key: e.value for e in entries if e.key and e.value})
    raise ConfigError(f"unsupported auth type: {getattr(config, 'type', config)!r}")


__all__ = [
    "AuthConfig",
    "Authenticator",
    "BasicAuth",
    "BasicCredentials",
    "BearerToken",
    "BearerTokenAuth",
    "ClientCredentials",
    "ClientCredentialsAuthenticator",
    "HeaderEntry",
    "HeadersAuth",
    "NoAuth",
    "OAuthClientCredentialsGrant",
    "StaticHeaders",
    "build_authenticator",
    "parse_auth_config",
]

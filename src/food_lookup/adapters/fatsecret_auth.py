"""OAuth2 client-credentials token manager for the FatSecret API."""

import asyncio
import base64
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Protocol

import httpx

from food_lookup.domain.errors import AuthenticationError

_SOURCE = "fatsecret"
TOKEN_SAFETY_BUFFER = timedelta(seconds=60)

_logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    """Anything that can hand out a bearer token."""

    async def get_token(self) -> str:
        """Return a valid access token."""


class TokenState(Enum):
    """Lifecycle of the cached token."""

    IDLE = "idle"
    REFRESHING = "refreshing"
    READY = "ready"


@dataclass(frozen=True)
class AuthToken:
    """Bearer credential with its effective expiry."""

    value: str
    scheme: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        """Return True while the token can still be used."""
        return now < self.expires_at


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class FatSecretTokenManager(TokenProvider):
    """Fetches and caches FatSecret access tokens.

    Concurrent callers that find no usable token share a single refresh: the
    first one starts it, the rest await the same task and see the same token
    or the same ``AuthenticationError``.
    """

    client_id: str
    client_secret: str
    token_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 10.0
    scope: str = "basic"
    clock: Callable[[], datetime] = _utcnow
    _token: AuthToken | None = field(default=None, init=False)
    _refresh: "asyncio.Task[AuthToken] | None" = field(default=None, init=False)

    @property
    def state(self) -> TokenState:
        """Return the current token state."""
        if self._refresh is not None:
            return TokenState.REFRESHING
        if self._token is not None and self._token.is_valid(self.clock()):
            return TokenState.READY
        return TokenState.IDLE

    async def get_token(self) -> str:
        """Return a valid access token, refreshing it when needed."""
        token = self._token
        if token is not None and token.is_valid(self.clock()):
            return token.value
        refresh = self._refresh
        if refresh is None:
            _logger.info("Starting FatSecret token refresh")
            refresh = asyncio.ensure_future(self._run_refresh())
            self._refresh = refresh
        else:
            _logger.debug("Waiting for in-flight FatSecret token refresh")
        token = await asyncio.shield(refresh)
        return token.value

    def reset(self) -> None:
        """Forget the cached token.

        A refresh already in flight is kept; callers after the reset join it
        instead of starting a second token request.
        """
        self._token = None

    async def _run_refresh(self) -> AuthToken:
        try:
            token = await self._request_token()
        except AuthenticationError as exc:
            _logger.error("FatSecret token refresh failed: %s", exc)
            raise
        else:
            self._token = token
            _logger.info(
                "FatSecret token refreshed: expires_at=%s", token.expires_at.isoformat()
            )
            return token
        finally:
            if self._refresh is asyncio.current_task():
                self._refresh = None

    async def _request_token(self) -> AuthToken:
        try:
            response = await self.http_client.post(
                self.token_url,
                headers={"Authorization": self._basic_auth_header()},
                data={"grant_type": "client_credentials", "scope": self.scope},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise AuthenticationError(
                f"OAuth token request failed: {exc}", _SOURCE
            ) from exc

        if response.is_error:
            _logger.error(
                "FatSecret OAuth authentication failed: status=%s body=%s",
                response.status_code,
                response.text,
            )
            raise AuthenticationError(
                f"OAuth authentication failed: {response.status_code} - {response.text}",
                _SOURCE,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthenticationError("OAuth response is not JSON", _SOURCE) from exc

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        expires_in = payload.get("expires_in") if isinstance(payload, dict) else None
        if not isinstance(access_token, str) or not access_token:
            raise AuthenticationError(
                "Invalid OAuth response: missing access_token", _SOURCE
            )
        if isinstance(expires_in, bool) or not isinstance(expires_in, int | float):
            raise AuthenticationError("Invalid OAuth response: missing expires_in", _SOURCE)
        if expires_in <= 0:
            raise AuthenticationError("Invalid OAuth response: expires_in <= 0", _SOURCE)

        return AuthToken(
            value=access_token,
            scheme=str(payload.get("token_type") or "Bearer"),
            expires_at=self.clock()
            + timedelta(seconds=float(expires_in))
            - TOKEN_SAFETY_BUFFER,
        )

    def _basic_auth_header(self) -> str:
        credentials = f"{self.client_id}:{self.client_secret}".encode()
        return f"Basic {base64.b64encode(credentials).decode()}"

"""Tests for the FatSecret OAuth token manager."""

import asyncio
import base64
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs

import httpx
import pytest

from food_lookup.adapters.fatsecret_auth import FatSecretTokenManager, TokenState
from food_lookup.domain.errors import AuthenticationError

TOKEN_URL = "https://oauth.example.com/connect/token"
T0 = datetime(2026, 1, 1, tzinfo=UTC)


class _Clock:
    def __init__(self) -> None:
        self.now = T0

    def __call__(self) -> datetime:
        return self.now


def _manager(handler, clock: _Clock | None = None) -> FatSecretTokenManager:  # type: ignore[no-untyped-def]
    return FatSecretTokenManager(
        client_id="client-id",
        client_secret="client-secret",
        token_url=TOKEN_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        clock=clock or _Clock(),
    )


def test_token_request_uses_basic_auth_and_client_credentials() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json={"access_token": "tok-1", "token_type": "Bearer", "expires_in": 86400}
        )

    manager = _manager(handler)
    token = asyncio.run(manager.get_token())

    assert token == "tok-1"
    request = seen[0]
    expected = base64.b64encode(b"client-id:client-secret").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    form = parse_qs(request.content.decode())
    assert form == {"grant_type": ["client_credentials"], "scope": ["basic"]}


def test_token_is_cached_until_safety_buffer() -> None:
    calls: list[int] = []
    clock = _Clock()

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(
            200, json={"access_token": f"tok-{len(calls)}", "expires_in": 3600}
        )

    manager = _manager(handler, clock)

    async def scenario() -> list[str]:
        tokens = [await manager.get_token()]
        clock.now = T0 + timedelta(seconds=3539)
        tokens.append(await manager.get_token())
        clock.now = T0 + timedelta(seconds=3541)
        tokens.append(await manager.get_token())
        return tokens

    assert asyncio.run(scenario()) == ["tok-1", "tok-1", "tok-2"]
    assert len(calls) == 2


def test_concurrent_callers_share_one_refresh() -> None:
    calls: list[int] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        await asyncio.sleep(0.01)
        return httpx.Response(200, json={"access_token": "shared", "expires_in": 3600})

    manager = _manager(handler)

    async def scenario() -> list[str]:
        return await asyncio.gather(*(manager.get_token() for _ in range(10)))

    tokens = asyncio.run(scenario())

    assert tokens == ["shared"] * 10
    assert len(calls) == 1
    assert manager.state is TokenState.READY


def test_refresh_failure_reaches_every_waiter_and_next_call_retries() -> None:
    responses = [
        httpx.Response(401, json={"error": "invalid_client"}),
        httpx.Response(200, json={"access_token": "recovered", "expires_in": 3600}),
    ]
    calls: list[int] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        await asyncio.sleep(0.01)
        return responses.pop(0)

    manager = _manager(handler)

    async def scenario() -> tuple[list[object], str]:
        results = await asyncio.gather(
            *(manager.get_token() for _ in range(3)), return_exceptions=True
        )
        return results, await manager.get_token()

    results, token = asyncio.run(scenario())

    assert all(isinstance(result, AuthenticationError) for result in results)
    assert token == "recovered"
    assert len(calls) == 2


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"token_type": "Bearer", "expires_in": 3600}),
        httpx.Response(200, json={"access_token": "", "expires_in": 3600}),
        httpx.Response(200, json={"access_token": "tok"}),
        httpx.Response(200, json={"access_token": "tok", "expires_in": 0}),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(500, text="server error"),
    ],
)
def test_malformed_token_responses_raise_authentication_error(
    response: httpx.Response,
) -> None:
    manager = _manager(lambda request: response)

    with pytest.raises(AuthenticationError):
        asyncio.run(manager.get_token())
    assert manager.state is TokenState.IDLE


def test_transport_failure_raises_authentication_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    manager = _manager(handler)

    with pytest.raises(AuthenticationError):
        asyncio.run(manager.get_token())


def test_reset_forgets_cached_token() -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})

    manager = _manager(handler)
    assert manager.state is TokenState.IDLE

    asyncio.run(manager.get_token())
    assert manager.state is TokenState.READY

    manager.reset()
    assert manager.state is TokenState.IDLE
    asyncio.run(manager.get_token())
    assert len(calls) == 2


def test_reset_during_refresh_joins_the_in_flight_request() -> None:
    calls: list[int] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        await asyncio.sleep(0.01)
        return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})

    manager = _manager(handler)

    async def scenario() -> tuple[str, str]:
        first = asyncio.create_task(manager.get_token())
        await asyncio.sleep(0)
        assert manager.state is TokenState.REFRESHING
        manager.reset()
        second = await manager.get_token()
        return await first, second

    assert asyncio.run(scenario()) == ("tok", "tok")
    assert len(calls) == 1

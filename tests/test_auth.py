"""Tests for the session manager and login handshake."""

import asyncio

import httpx
import pytest

from cookunity_mcp.core.auth import (
    DEFAULT_EXPIRES_IN,
    MAX_REDIRECT_HOPS,
    SessionManager,
    SessionToken,
)
from cookunity_mcp.core.errors import AuthenticationError

from conftest import FakeClock, FakeIdentityProvider


def _manager(idp: FakeIdentityProvider, clock: FakeClock | None = None) -> SessionManager:
    return SessionManager(
        "pat@example.com",
        "hunter2",
        clock=clock or FakeClock(),
        transport=idp.transport,
    )


def test_handshake_returns_token_and_sets_expiry() -> None:
    idp = FakeIdentityProvider()
    clock = FakeClock(1_000.0)
    manager = _manager(idp, clock)

    token = asyncio.run(manager.get_access_token())

    assert token == "token-1-1"
    assert manager.token.issued_at == 1_000.0
    assert manager.token.expires_at == 4_600.0
    assert (idp.authenticate_calls, idp.authorize_calls, idp.token_calls) == (1, 1, 1)
    assert idp.token_requests[0]["code"] == "auth-code-xyz"
    assert idp.token_requests[0]["grant_type"] == "authorization_code"


def test_missing_expires_in_defaults_to_one_day() -> None:
    idp = FakeIdentityProvider(token_payload={"access_token": "tok"})
    clock = FakeClock(500.0)
    manager = _manager(idp, clock)

    asyncio.run(manager.get_access_token())

    assert manager.token.expires_at == 500.0 + DEFAULT_EXPIRES_IN


def test_explicit_zero_expires_in_is_kept() -> None:
    idp = FakeIdentityProvider(token_payload={"access_token": "tok", "expires_in": 0})
    clock = FakeClock(500.0)
    manager = _manager(idp, clock)

    asyncio.run(manager.get_access_token())

    assert manager.token.expires_at == 500.0
    assert not manager.token.is_valid(clock.now)


def test_renewal_walks_redirects_from_the_start() -> None:
    idp = FakeIdentityProvider(code_hop=2)
    manager = _manager(idp)

    asyncio.run(manager.get_access_token())
    manager.invalidate()
    token = asyncio.run(manager.get_access_token())

    assert token == "token-1-2"
    assert idp.authorize_calls == 4
    assert idp.hop_requests[2].url.path == "/authorize"


def test_cached_token_is_reused_until_safety_margin() -> None:
    idp = FakeIdentityProvider()
    clock = FakeClock(1_000.0)
    manager = _manager(idp, clock)

    first = asyncio.run(manager.get_access_token())
    clock.now = 4_600.0 - 61
    second = asyncio.run(manager.get_access_token())

    assert second == first
    assert idp.token_calls == 1

    clock.now = 4_600.0 - 59
    third = asyncio.run(manager.get_access_token())

    assert third == "token-1-2"
    assert idp.token_calls == 2


def test_token_validity_boundary() -> None:
    token = SessionToken(access_token="t", issued_at=0.0, expires_at=1_000.0)

    assert token.is_valid(939.0)
    assert not token.is_valid(940.0)
    assert not token.is_valid(941.0)


def test_invalidate_forces_new_handshake() -> None:
    idp = FakeIdentityProvider()
    manager = _manager(idp)

    asyncio.run(manager.get_access_token())
    manager.invalidate()
    token = asyncio.run(manager.get_access_token())

    assert token == "token-1-2"
    assert idp.authenticate_calls == 2


def test_code_found_on_last_allowed_hop() -> None:
    idp = FakeIdentityProvider(code_hop=MAX_REDIRECT_HOPS)
    manager = _manager(idp)

    asyncio.run(manager.get_access_token())

    assert idp.authorize_calls == MAX_REDIRECT_HOPS
    assert idp.token_calls == 1


def test_redirect_cap_exceeded_fails() -> None:
    idp = FakeIdentityProvider(code_hop=MAX_REDIRECT_HOPS + 1)
    manager = _manager(idp)

    with pytest.raises(AuthenticationError, match="Failed to obtain authorization code"):
        asyncio.run(manager.get_access_token())

    assert idp.authorize_calls == MAX_REDIRECT_HOPS
    assert idp.token_calls == 0
    assert manager.token is None


def test_relative_location_resolved_against_current_url() -> None:
    idp = FakeIdentityProvider(code_hop=3)
    manager = _manager(idp)

    asyncio.run(manager.get_access_token())

    first, second, third = idp.hop_requests
    assert first.url.path == "/authorize"
    assert first.url.params["login_ticket"] == "ticket-123"
    assert str(second.url) == "https://auth.cookunity.com/login/continue/1"
    assert str(third.url) == "https://auth.cookunity.com/login/continue/2"


def test_cookies_carried_across_hops() -> None:
    idp = FakeIdentityProvider(code_hop=2, set_cookie_on_first_hop=True)
    manager = _manager(idp)

    asyncio.run(manager.get_access_token())

    assert "cookie" not in idp.hop_requests[0].headers
    assert "auth0=session-cookie" in idp.hop_requests[1].headers["cookie"]


def test_non_redirect_on_authorize_fails() -> None:
    idp = FakeIdentityProvider()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, text="<html>login page</html>")
        return idp.handler(request)

    manager = SessionManager("a", "b", clock=FakeClock(), transport=httpx.MockTransport(handler))

    with pytest.raises(AuthenticationError, match="Unexpected HTTP 200"):
        asyncio.run(manager.get_access_token())


def test_missing_location_fails() -> None:
    idp = FakeIdentityProvider()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(302)
        return idp.handler(request)

    manager = SessionManager("a", "b", clock=FakeClock(), transport=httpx.MockTransport(handler))

    with pytest.raises(AuthenticationError, match="No redirect location"):
        asyncio.run(manager.get_access_token())


def test_missing_login_ticket_fails() -> None:
    idp = FakeIdentityProvider(ticket=None)
    manager = _manager(idp)

    with pytest.raises(AuthenticationError, match="Failed to get login ticket"):
        asyncio.run(manager.get_access_token())

    assert idp.authorize_calls == 0


def test_missing_access_token_fails() -> None:
    idp = FakeIdentityProvider(token_payload={"token_type": "Bearer"})
    manager = _manager(idp)

    with pytest.raises(AuthenticationError, match="Failed to get access token"):
        asyncio.run(manager.get_access_token())


@pytest.mark.parametrize(
    ("response", "expected"),
    [
        (
            httpx.Response(403, json={"error_description": "Wrong email or password.", "message": "nope"}),
            "Authentication failed: Wrong email or password.",
        ),
        (
            httpx.Response(400, json={"message": "Missing realm"}),
            "Authentication failed: Missing realm",
        ),
        (
            httpx.Response(500, text="oops"),
            "Authentication failed: HTTP 500: Internal Server Error",
        ),
    ],
)
def test_error_message_prefers_provider_description(response: httpx.Response, expected: str) -> None:
    idp = FakeIdentityProvider(authenticate_response=response)
    manager = _manager(idp)

    with pytest.raises(AuthenticationError) as exc_info:
        asyncio.run(manager.get_access_token())

    assert str(exc_info.value) == expected


def test_network_failure_becomes_authentication_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    manager = SessionManager("a", "b", clock=FakeClock(), transport=httpx.MockTransport(handler))

    with pytest.raises(AuthenticationError, match="connection refused"):
        asyncio.run(manager.get_access_token())


def test_concurrent_callers_share_one_handshake() -> None:
    idp = FakeIdentityProvider()
    manager = _manager(idp)

    async def run() -> list[str]:
        return await asyncio.gather(*(manager.get_access_token() for _ in range(5)))

    tokens = asyncio.run(run())

    assert set(tokens) == {"token-1-1"}
    assert idp.authenticate_calls == 1
    assert idp.token_calls == 1


def test_repr_does_not_leak_credentials() -> None:
    manager = _manager(FakeIdentityProvider())

    assert "hunter2" not in repr(manager)
    assert "pat@example.com" not in repr(manager)

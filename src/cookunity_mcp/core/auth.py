# ============================================================================
# COOKUNITY MCP - SESSION MANAGER
# ============================================================================
# Copyright 2026 CookUnity MCP Authors. All Rights Reserved.
#
# Owns the account credentials and the single cached bearer token.
#
# LOGIN HANDSHAKE (three sequential steps against the identity provider):
#   1. POST /co/authenticate   credentials + realm   → login_ticket
#   2. GET  /authorize?...     login_ticket          → redirect chain → ?code=
#   3. POST /oauth/token       authorization code    → access_token
#
# Redirects in step 2 are followed by hand: every hop is inspected for the
# code, and the client's cookie jar carries the provider's session cookies
# from one hop to the next.
#
# TOKEN LIFECYCLE:
#   NO_TOKEN → handshake → VALID → (within 60s of expiry) → EXPIRED → handshake
#   Renewal is lazy (next caller pays) and single-flight (asyncio.Lock).
# ============================================================================

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from .errors import AuthenticationError

logger = logging.getLogger(__name__)

__all__ = [
    "SessionToken",
    "SessionManager",
    "TOKEN_SAFETY_MARGIN",
    "MAX_REDIRECT_HOPS",
]

AUTH_BASE_URL = "https://auth.cookunity.com"
AUTH_CLIENT_ID = "E3AWy6rDb3S3ErYliO64fnY171Ec1xhf"
AUTH_REALM = "cookunity"
AUTH_ORIGIN = "https://www.cookunity.com"
REDIRECT_URI = "https://www.cookunity.com"
AUTH_SCOPES = "openid profile email"
PASSWORD_REALM_GRANT = "http://auth0.com/oauth/grant-type/password-realm"

TOKEN_SAFETY_MARGIN = 60.0  # seconds
DEFAULT_EXPIRES_IN = 86400  # seconds, when the token endpoint omits expires_in
MAX_REDIRECT_HOPS = 5
DEFAULT_TIMEOUT = 30.0

_REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


# ============================================================================
# SESSION TOKEN
# ============================================================================

@dataclass(frozen=True)
class SessionToken:
    """An issued bearer token. Replaced wholesale, never mutated."""

    access_token: str
    issued_at: float
    expires_at: float
    refresh_token: str | None = None

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at - TOKEN_SAFETY_MARGIN


# ============================================================================
# SESSION MANAGER
# ============================================================================

class SessionManager:
    """Produces a valid bearer token on demand for one CookUnity account.

    The clock and the HTTP transport are injectable so tests can drive
    expiry and fake the identity provider.
    """

    def __init__(
        self,
        email: str,
        password: str,
        *,
        clock: Callable[[], float] = time.time,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._email = email
        self._password = password
        self._clock = clock
        self._transport = transport
        self._timeout = timeout
        self._token: SessionToken | None = None
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        state = "valid" if self._has_valid_token() else "no-token"
        return f"<SessionManager {state}>"

    @property
    def token(self) -> SessionToken | None:
        return self._token

    def invalidate(self) -> None:
        """Forget the cached token; the next caller runs a fresh handshake."""
        self._token = None

    def _has_valid_token(self) -> bool:
        return self._token is not None and self._token.is_valid(self._clock())

    async def get_access_token(self) -> str:
        if self._has_valid_token():
            return self._token.access_token

        async with self._lock:
            # Another caller may have renewed while we waited
            if self._has_valid_token():
                return self._token.access_token
            self._token = await self._authenticate()
            return self._token.access_token

    # ====================================================================
    # HANDSHAKE
    # ====================================================================

    async def _authenticate(self) -> SessionToken:
        logger.info("Starting CookUnity login handshake")
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=False,
                transport=self._transport,
            ) as client:
                ticket = await self._request_login_ticket(client)
                code = await self._request_authorization_code(client, ticket)
                token_data = await self._exchange_code(client, code)
        except AuthenticationError:
            raise
        except (httpx.HTTPError, ValueError) as e:
            raise AuthenticationError(_describe_error(e)) from e

        access_token = token_data.get("access_token")
        if not access_token:
            raise AuthenticationError("Failed to get access token")

        now = self._clock()
        expires_in = token_data.get("expires_in")
        if expires_in is None:
            expires_in = DEFAULT_EXPIRES_IN
        token = SessionToken(
            access_token=access_token,
            refresh_token=token_data.get("refresh_token"),
            issued_at=now,
            expires_at=now + float(expires_in),
        )
        logger.info(f"CookUnity login handshake completed (token valid for {expires_in}s)")
        return token

    async def _request_login_ticket(self, client: httpx.AsyncClient) -> str:
        response = await client.post(
            f"{AUTH_BASE_URL}/co/authenticate",
            json={
                "client_id": AUTH_CLIENT_ID,
                "credential_type": PASSWORD_REALM_GRANT,
                "username": self._email,
                "password": self._password,
                "realm": AUTH_REALM,
            },
            headers={"Origin": AUTH_ORIGIN},
        )
        response.raise_for_status()
        ticket = _json_object(response).get("login_ticket")
        if not ticket:
            raise AuthenticationError("Failed to get login ticket")
        return ticket

    async def _request_authorization_code(
        self, client: httpx.AsyncClient, login_ticket: str,
    ) -> str:
        """Walk the authorize redirect chain until a hop carries ?code=."""
        current = httpx.URL(
            f"{AUTH_BASE_URL}/authorize",
            params={
                "client_id": AUTH_CLIENT_ID,
                "response_type": "code",
                "redirect_uri": REDIRECT_URI,
                "scope": AUTH_SCOPES,
                "realm": AUTH_REALM,
                "login_ticket": login_ticket,
            },
        )

        for hop in range(1, MAX_REDIRECT_HOPS + 1):
            response = await client.get(current)
            if response.status_code not in _REDIRECT_STATUSES:
                response.raise_for_status()
                raise AuthenticationError(
                    f"Unexpected HTTP {response.status_code} in authorize flow"
                )

            location = response.headers.get("location")
            if not location:
                raise AuthenticationError("No redirect location in authorize flow")

            current = current.join(location)
            code = current.params.get("code")
            if code:
                logger.debug(f"Authorization code obtained after {hop} hop(s)")
                return code

        raise AuthenticationError("Failed to obtain authorization code")

    async def _exchange_code(self, client: httpx.AsyncClient, code: str) -> dict[str, Any]:
        response = await client.post(
            f"{AUTH_BASE_URL}/oauth/token",
            json={
                "client_id": AUTH_CLIENT_ID,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": REDIRECT_URI,
            },
        )
        response.raise_for_status()
        return _json_object(response)


# ============================================================================
# HELPERS
# ============================================================================

def _json_object(response: httpx.Response) -> dict[str, Any]:
    data = response.json()
    return data if isinstance(data, dict) else {}


def _describe_error(error: Exception) -> str:
    """Most specific explanation available for a failed handshake step.

    Preference: error_description → message → HTTP status line → raw text.
    """
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        try:
            data = _json_object(response)
        except ValueError:
            data = {}
        if data.get("error_description"):
            return str(data["error_description"])
        if data.get("message"):
            return str(data["message"])
        return f"HTTP {response.status_code}: {response.reason_phrase}"
    return str(error) or error.__class__.__name__

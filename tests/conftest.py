"""Shared test fakes: a scripted identity provider and a GraphQL upstream."""

import json
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable
from urllib.parse import parse_qs, urlsplit

import httpx

from cookunity_mcp.backend.cookunity_client import CookUnityClient


# ============================================================================
# IDENTITY PROVIDER
# ============================================================================

@dataclass
class FakeIdentityProvider:
    """Plays the three handshake steps.

    ``code_hop`` is the 1-based redirect hop whose Location carries the code.
    ``hop`` counts within the current handshake; ``authorize_calls`` is the
    running total.
    """

    ticket: str | None = "ticket-123"
    code_hop: int = 1
    token_payload: dict[str, Any] = field(
        default_factory=lambda: {"access_token": "token-1", "expires_in": 3600}
    )
    authenticate_response: httpx.Response | None = None
    set_cookie_on_first_hop: bool = False
    authenticate_calls: int = 0
    authorize_calls: int = 0
    token_calls: int = 0
    hop: int = 0
    hop_requests: list[httpx.Request] = field(default_factory=list)
    token_requests: list[dict[str, Any]] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "POST" and path == "/co/authenticate":
            self.authenticate_calls += 1
            self.hop = 0
            if self.authenticate_response is not None:
                return self.authenticate_response
            body = {"login_ticket": self.ticket} if self.ticket else {}
            return httpx.Response(200, json=body)

        if request.method == "GET":
            self.authorize_calls += 1
            self.hop_requests.append(request)
            self.hop += 1
            hop = self.hop
            headers = {}
            if hop == self.code_hop:
                headers["location"] = "https://www.cookunity.com/?code=auth-code-xyz&state=s"
            else:
                headers["location"] = f"/login/continue/{hop}"
            if hop == 1 and self.set_cookie_on_first_hop:
                headers["set-cookie"] = "auth0=session-cookie; Path=/"
            return httpx.Response(302, headers=headers)

        if request.method == "POST" and path == "/oauth/token":
            self.token_calls += 1
            self.token_requests.append(json.loads(request.content))
            payload = dict(self.token_payload)
            if "access_token" in payload:
                payload["access_token"] = f"{payload['access_token']}-{self.token_calls}"
            return httpx.Response(200, json=payload)

        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


# ============================================================================
# GRAPHQL UPSTREAM
# ============================================================================

class StaticSession:
    """Stands in for SessionManager on the data path."""

    def __init__(self, token: str = "bearer-abc") -> None:
        self.token = token
        self.invalidated = 0

    async def get_access_token(self) -> str:
        return self.token

    def invalidate(self) -> None:
        self.invalidated += 1


Reply = dict[str, Any] | httpx.Response | Callable[[dict[str, Any]], Any]


@dataclass
class GraphQLCall:
    url: str
    operation: str | None
    variables: dict[str, Any]
    headers: httpx.Headers


class FakeGraphQL:
    """Answers GraphQL calls by operationName and records every call."""

    def __init__(self, replies: dict[str, Reply] | None = None) -> None:
        self.replies: dict[str, Reply] = dict(replies or {})
        self.calls: list[GraphQLCall] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        operation = body.get("operationName")
        variables = body.get("variables") or {}
        self.calls.append(GraphQLCall(str(request.url), operation, variables, request.headers))

        reply = self.replies.get(operation)
        if reply is None:
            return httpx.Response(200, json={"data": {}})
        if callable(reply):
            reply = reply(variables)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json={"data": reply})

    def operations(self) -> list[str | None]:
        return [c.operation for c in self.calls]

    def last(self, operation: str) -> GraphQLCall:
        return [c for c in self.calls if c.operation == operation][-1]


def make_client(
    upstream: FakeGraphQL,
    session: StaticSession | None = None,
    today: date = date(2026, 10, 14),
) -> CookUnityClient:
    return CookUnityClient(
        session or StaticSession(),
        transport=httpx.MockTransport(upstream.handler),
        today=lambda: today,
    )


# ============================================================================
# PAYLOAD BUILDERS
# ============================================================================

def make_meal(
    meal_id: int,
    name: str,
    *,
    price: float = 11.99,
    rating: float = 4.5,
    category: str = "Bowls",
    diet_tags: list[str] | None = None,
    ingredients: list[str] | None = None,
    chef: tuple[str, str] = ("Ana", "Lopez"),
    stock: int = 10,
) -> dict[str, Any]:
    return {
        "id": meal_id,
        "batchId": meal_id * 10,
        "name": name,
        "shortDescription": f"{name} with seasonal sides",
        "image": f"https://img.example/{meal_id}.jpg",
        "price": price,
        "finalPrice": price,
        "premiumFee": 0,
        "sku": f"SKU-{meal_id}",
        "stock": stock,
        "isNewMeal": False,
        "userRating": rating,
        "inventoryId": f"ii-{meal_id}",
        "categoryId": 1,
        "searchBy": {
            "cuisines": ["american"],
            "chefFirstName": chef[0],
            "chefLastName": chef[1],
            "dietTags": diet_tags or [],
            "ingredients": ingredients or [],
            "proteinTags": [],
        },
        "chef": {"id": 7, "firstName": chef[0], "lastName": chef[1]},
        "meatType": "Chicken",
        "category": {"id": 1, "title": category, "label": category},
        "nutritionalFacts": {"calories": 550, "fat": 20, "carbs": 40, "sodium": 800, "fiber": 6},
    }


def make_cart_entry(inventory_id: str, qty: int, *, product_id: int = 1, price: float = 10.0) -> dict[str, Any]:
    return {
        "qty": qty,
        "product": {
            "id": product_id,
            "inventoryId": inventory_id,
            "name": f"Meal {inventory_id}",
            "price_incl_tax": price,
            "chef_firstname": "Ana",
            "chef_lastname": "Lopez",
        },
    }


def make_day(
    day_date: str,
    *,
    cart: list[dict[str, Any]] | None = None,
    can_edit: bool = True,
    skip: bool = False,
    is_paused: bool = False,
    scheduled: bool = True,
    display_date: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    day = {
        "id": day_date,
        "date": day_date,
        "displayDate": display_date or day_date,
        "available": True,
        "menuAvailable": True,
        "canEdit": can_edit,
        "skip": skip,
        "isPaused": is_paused,
        "scheduled": scheduled,
        "cutoff": {"time": f"{day_date}T04:59:00Z", "userTimeZone": "America/New_York"},
        "cart": cart or [],
        "order": None,
        "recommendation": None,
    }
    day.update(extra)
    return day


def user_payload(delivery_days: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {
        "users": [
            {
                "id": 42,
                "name": "Pat Doe",
                "email": "pat@example.com",
                "plan_id": 3,
                "store_id": 1,
                "status": "active",
                "deliveryDays": delivery_days if delivery_days is not None else [
                    {"id": 1, "day": "Monday", "time_start": "09:00", "time_end": "17:00"}
                ],
                "currentCredit": 12.5,
                "ring": None,
                "addresses": [],
                "profiles": [],
            }
        ]
    }

# ============================================================================
# COOKUNITY MCP - GRAPHQL GATEWAY
# ============================================================================
# Copyright 2026 CookUnity MCP Authors. All Rights Reserved.
#
# Async client for CookUnity's two private GraphQL services:
#   - menu service          (menus, meal details, search)
#   - subscription service  (user, orders, deliveries, cart, pricing)
#
# Every call takes a bearer token from the SessionManager (which may run
# the login handshake first), then classifies failures:
#   401 → InvalidCredentialsError   429 → RateLimitedError
#   other non-2xx / network → TransportError
#   200 with "errors" → GraphQLError
#
# Domain operations return normalized records (see normalize.py) and do
# their pagination locally, after fetching the full listing.
# ============================================================================

import logging
from datetime import date
from typing import Any, Callable

import httpx

from ..core.auth import SessionManager
from ..core.errors import (
    DomainRejectionError,
    GraphQLError,
    InvalidCredentialsError,
    NotFoundError,
    PreconditionError,
    RateLimitedError,
    TransportError,
)
from .normalize import (
    format_cart,
    format_delivery,
    format_invoice,
    format_meal,
    format_meal_details,
    format_price_breakdown,
    format_user,
    meal_matches,
    next_delivery_date,
    paginate,
)

logger = logging.getLogger(__name__)

MENU_SERVICE_URL = "https://subscription.cookunity.com/menu-service/graphql"
SUBSCRIPTION_URL = "https://subscription.cookunity.com/subscription-back/graphql/user"
USER_AGENT = "CookUnity-MCP/1.0.0"

DEFAULT_TIMEOUT = 30.0
DEFAULT_PAGE_SIZE = 20
DEFAULT_INVOICE_PAGE_SIZE = 10

# Used when the profile has no delivery window (or can't be read)
DEFAULT_DELIVERY_WINDOW = ("11:00", "20:00")

ORDER_CREATION_ERROR = "OrderCreationError"

__all__ = [
    "CookUnityClient",
    "MENU_SERVICE_URL",
    "SUBSCRIPTION_URL",
    "DEFAULT_DELIVERY_WINDOW",
]


# ============================================================================
# GRAPHQL DOCUMENTS
# ============================================================================

_MEAL_FIELDS = """
    id batchId name shortDescription image imagePath price finalPrice premiumFee
    sku stock isNewMeal userRating inventoryId categoryId
    searchBy { cuisines chefFirstName chefLastName dietTags ingredients proteinTags }
    chef { id firstName lastName }
    meatType category { id title label }
"""

MENU_QUERY = f"""
query getMenu($date: String!, $filters: MenuFilters!) {{
  menu(date: $date, filters: $filters) {{
    categories {{ id title subtitle label tag }}
    meals {{
      {_MEAL_FIELDS}
      nutritionalFacts {{ calories fat carbs sodium fiber }}
    }}
  }}
}}
"""

MENU_DETAILED_QUERY = f"""
query getMenuDetailed($date: String!, $filters: MenuFilters!) {{
  menu(date: $date, filters: $filters) {{
    meals {{
      {_MEAL_FIELDS}
      nutritionalFacts {{ calories fat carbs sodium fiber protein sugar }}
      allergens {{ name }}
      ingredients {{ name }}
    }}
  }}
}}
"""

USER_QUERY = """
query getUser {
  users {
    id name email plan_id store_id status
    deliveryDays { id day time_start time_end }
    currentCredit
    ring { id name is_local }
    addresses { id isActive city region postcode street }
    profiles { id firstname lastname }
  }
}
"""

ORDERS_QUERY = """
query getAllOrders {
  allOrders { id deliveryDate }
}
"""

UPCOMING_DAYS_QUERY = """
query getUpcomingDays {
  upcomingDays {
    id date displayDate available menuAvailable canEdit skip isPaused scheduled
    cutoff { time userTimeZone }
    cart {
      product {
        id inventoryId name sku image_path price_incl_tax realPrice
        chef_firstname chef_lastname meat_type premium_special
      }
      qty
    }
    order {
      id grandTotal
      orderStatus { state status }
      items {
        qty
        price { price originalPrice }
        product {
          id inventoryId name chef_firstname chef_lastname meat_type premium_special
        }
      }
    }
    recommendation {
      meals { name inventoryId chef_firstname chef_lastname meat_type qty premium_special }
    }
  }
}
"""

INVOICES_QUERY = """
query getInvoices($from: String!, $to: String!) {
  invoices(from: $from, to: $to) {
    id date subtotal deliveryFee expressFee taxes tip discount chargedCredit total ccNumber
    orders {
      delivery_date display_date time_start time_end
      items {
        qty
        price { price priceIncludingTax originalPrice }
        product {
          name short_description chef_firstname chef_lastname calories meat_type
          user_rating review { rating review }
        }
      }
    }
  }
}
"""

ADD_MEAL_MUTATION = """
mutation addMeal($date: String!, $batch_id: Int, $quantity: Int!, $inventory_id: String) {
  addMeal(date: $date, batch_id: $batch_id, quantity: $quantity, inventory_id: $inventory_id) {
    qty: quantity
    inventoryId
  }
}
"""

REMOVE_MEAL_MUTATION = """
mutation removeProductFromCart($date: String!, $quantity: Int!, $inventory_id: String) {
  deleteMeal(date: $date, quantity: $quantity, inventory_id: $inventory_id) {
    qty: quantity
    inventoryId
  }
}
"""

CLEAR_CART_MUTATION = """
mutation deleteCart($date: String!) {
  deleteCart(date: $date)
}
"""

SKIP_MUTATION = """
mutation createSkip($skip: SkipInput!, $origin: OperationOrigin) {
  createSkip(skip: $skip, origin: $origin) {
    __typename
    ... on Skip { id }
    ... on OrderCreationError { error }
  }
}
"""

UNSKIP_MUTATION = """
mutation createUnskip($unskip: SkipInput!, $origin: OperationOrigin) {
  createUnskip(unskip: $unskip, origin: $origin) {
    __typename
    ... on Skip { id }
    ... on OrderCreationError { error }
  }
}
"""

CREATE_ORDER_MUTATION = """
mutation createOrder($order: CreateOrderInput!) {
  createOrder(order: $order) {
    __typename
    ... on OrderCreation { id deliveryDate paymentStatus }
    ... on OrderCreationError { error outOfStockIds }
  }
}
"""

PRICE_BREAKDOWN_QUERY = """
query getOrderDetail($date: String!, $cartId: String, $meals: [MealInput]) {
  getOrderDetail(date: $date, cartId: $cartId, meals: $meals) {
    qtyPlanMeals qtyItems totalPlanPrice totalExtraMeals totalTaxes
    totalDeliveryFee totalExpressFee totalFee subTotalOrder
    totalPromoDiscount totalOrder availableCredits totalOrderWithCreditsSubtracted
  }
}
"""


# ============================================================================
# COOKUNITY CLIENT
# ============================================================================

class CookUnityClient:
    """Async gateway to the CookUnity GraphQL services.

    Holds a reference to the process-wide SessionManager; every call asks
    it for a token. The HTTP client is created lazily and reused.
    """

    def __init__(
        self,
        session: SessionManager,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._session = session
        self._transport = transport
        self.timeout = timeout
        self._today = today
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(cls, email: str, password: str) -> "CookUnityClient":
        """Build a client with its own SessionManager for one account."""
        return cls(SessionManager(email, password))

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    @staticmethod
    def _headers(token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "User-Agent": USER_AGENT,
        }

    def _resolve_date(self, value: str | None) -> str:
        return value or next_delivery_date(self._today())

    # ====================================================================
    # EXECUTION
    # ====================================================================

    async def execute(
        self,
        endpoint: str,
        query: str,
        variables: dict[str, Any] | None = None,
        operation_name: str | None = None,
    ) -> dict[str, Any]:
        """Run one GraphQL operation and return its ``data`` payload."""
        token = await self._session.get_access_token()
        client = await self._get_client()

        payload: dict[str, Any] = {"query": query, "variables": variables or {}}
        if operation_name:
            payload["operationName"] = operation_name
        logger.debug(f"GraphQL {operation_name or 'operation'} → {endpoint}")

        try:
            resp = await client.post(endpoint, json=payload, headers=self._headers(token))
        except httpx.HTTPError as e:
            raise TransportError(None, str(e) or e.__class__.__name__) from e

        if resp.status_code == 401:
            # Next call re-authenticates; this one still fails
            self._session.invalidate()
            raise InvalidCredentialsError()
        if resp.status_code == 429:
            raise RateLimitedError()
        if not resp.is_success:
            raise TransportError(resp.status_code, resp.reason_phrase or resp.text[:200])

        try:
            body = resp.json()
        except ValueError as e:
            raise TransportError(resp.status_code, "Invalid JSON in GraphQL response") from e
        if not isinstance(body, dict):
            raise TransportError(resp.status_code, "Unexpected GraphQL response")

        errors = body.get("errors")
        if errors:
            raise GraphQLError([
                err.get("message", str(err)) if isinstance(err, dict) else str(err)
                for err in errors
            ])
        return body.get("data") or {}

    async def _query_menu(
        self, query: str, variables: dict[str, Any], operation_name: str,
    ) -> dict[str, Any]:
        return await self.execute(MENU_SERVICE_URL, query, variables, operation_name)

    async def _query_subscription(
        self, query: str, variables: dict[str, Any] | None, operation_name: str,
    ) -> dict[str, Any]:
        return await self.execute(SUBSCRIPTION_URL, query, variables, operation_name)

    # ====================================================================
    # RAW FETCHES
    # ====================================================================

    async def fetch_menu(self, menu_date: str) -> dict[str, Any]:
        data = await self._query_menu(
            MENU_QUERY, {"date": menu_date, "filters": {}}, "getMenu",
        )
        return data.get("menu") or {}

    async def fetch_menu_detailed(self, menu_date: str) -> list[dict[str, Any]]:
        data = await self._query_menu(
            MENU_DETAILED_QUERY, {"date": menu_date, "filters": {}}, "getMenuDetailed",
        )
        return (data.get("menu") or {}).get("meals") or []

    async def fetch_user(self) -> dict[str, Any]:
        data = await self._query_subscription(USER_QUERY, None, "getUser")
        users = data.get("users") or []
        if not users:
            raise NotFoundError("CookUnity returned no user for this account")
        return users[0]

    async def fetch_orders(self) -> list[dict[str, Any]]:
        data = await self._query_subscription(ORDERS_QUERY, None, "getAllOrders")
        return data.get("allOrders") or []

    async def fetch_upcoming_days(self) -> list[dict[str, Any]]:
        data = await self._query_subscription(UPCOMING_DAYS_QUERY, None, "getUpcomingDays")
        return data.get("upcomingDays") or []

    async def fetch_invoices(self, date_from: str, date_to: str) -> list[dict[str, Any]]:
        data = await self._query_subscription(
            INVOICES_QUERY, {"from": date_from, "to": date_to}, "getInvoices",
        )
        return data.get("invoices") or []

    @staticmethod
    def _find_day(
        days: list[dict[str, Any]], day_date: str, match_display: bool = True,
    ) -> dict[str, Any] | None:
        for day in days:
            if day.get("date") == day_date:
                return day
            if match_display and day.get("displayDate") == day_date:
                return day
        return None

    # ====================================================================
    # MENU
    # ====================================================================

    async def get_menu(
        self,
        menu_date: str | None = None,
        *,
        category: str | None = None,
        diet: str | None = None,
        max_price: float | None = None,
        min_rating: float | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Menu page with optional filters. Filtering happens client-side."""
        menu_date = self._resolve_date(menu_date)
        menu = await self.fetch_menu(menu_date)
        meals = menu.get("meals") or []

        if category:
            cat = category.lower()
            meals = [
                m for m in meals
                if cat in ((m.get("category") or {}).get("title") or "").lower()
            ]
        if diet:
            wanted = diet.lower()
            meals = [
                m for m in meals
                if any(wanted in (t or "").lower() for t in (m.get("searchBy") or {}).get("dietTags") or [])
            ]
        if max_price is not None:
            meals = [m for m in meals if (m.get("finalPrice") or 0) <= max_price]
        if min_rating is not None:
            meals = [m for m in meals if (m.get("userRating") or 0) >= min_rating]

        page = paginate(meals, offset, limit, key="meals")
        page["meals"] = [format_meal(m) for m in page["meals"]]
        return {
            "date": menu_date,
            **page,
            "categories": [
                {"id": c.get("id"), "title": c.get("title") or ""}
                for c in menu.get("categories") or []
            ],
        }

    async def search_meals(
        self,
        query: str,
        menu_date: str | None = None,
        *,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Keyword search over the full menu; source order is preserved."""
        menu_date = self._resolve_date(menu_date)
        menu = await self.fetch_menu(menu_date)
        matches = [m for m in menu.get("meals") or [] if meal_matches(m, query)]

        page = paginate(matches, offset, limit, key="meals")
        page["meals"] = [format_meal(m) for m in page["meals"]]
        return {"query": query, "date": menu_date, **page}

    async def get_meal_details(
        self,
        menu_date: str | None = None,
        *,
        meal_id: int | str | None = None,
        inventory_id: str | None = None,
    ) -> dict[str, Any]:
        if meal_id is None and not inventory_id:
            raise PreconditionError("Provide meal_id or inventory_id")

        menu_date = self._resolve_date(menu_date)
        meals = await self.fetch_menu_detailed(menu_date)
        for meal in meals:
            if meal_id is not None and str(meal.get("id")) == str(meal_id):
                return format_meal_details(meal, menu_date)
            if inventory_id and meal.get("inventoryId") == inventory_id:
                return format_meal_details(meal, menu_date)

        identifier = f"meal_id={meal_id}" if meal_id is not None else f"inventory_id={inventory_id}"
        raise NotFoundError(
            f"Meal not found ({identifier}) for date {menu_date}. The menu changes weekly, so "
            f"try a different date or use cookunity_search_meals to find the meal."
        )

    # ====================================================================
    # ACCOUNT
    # ====================================================================

    async def get_user_info(self) -> dict[str, Any]:
        return format_user(await self.fetch_user())

    async def list_orders(
        self, *, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0,
    ) -> dict[str, Any]:
        orders = [
            {"id": o.get("id"), "delivery_date": o.get("deliveryDate") or ""}
            for o in await self.fetch_orders()
        ]
        return paginate(orders, offset, limit, key="orders")

    async def get_order_history(
        self,
        date_from: str,
        date_to: str,
        *,
        limit: int = DEFAULT_INVOICE_PAGE_SIZE,
        offset: int = 0,
    ) -> dict[str, Any]:
        invoices = await self.fetch_invoices(date_from, date_to)
        page = paginate(invoices, offset, limit, key="invoices")
        page["invoices"] = [format_invoice(i) for i in page["invoices"]]
        return {"from": date_from, "to": date_to, **page}

    # ====================================================================
    # DELIVERIES & CART
    # ====================================================================

    async def list_deliveries(self) -> dict[str, Any]:
        days = await self.fetch_upcoming_days()
        deliveries = [format_delivery(d) for d in days if d.get("scheduled")]
        return {"total": len(deliveries), "deliveries": deliveries}

    async def get_cart(self, cart_date: str | None = None) -> dict[str, Any]:
        cart_date = self._resolve_date(cart_date)
        day = self._find_day(await self.fetch_upcoming_days(), cart_date)
        if day is None:
            raise NotFoundError(
                f"Date {cart_date} not found in upcoming deliveries. "
                f"Use cookunity_list_deliveries to see available dates."
            )
        return format_cart(day)

    async def add_to_cart(
        self,
        cart_date: str,
        inventory_id: str,
        quantity: int = 1,
        batch_id: int | None = None,
    ) -> dict[str, Any]:
        data = await self._query_subscription(
            ADD_MEAL_MUTATION,
            {
                "date": cart_date,
                "batch_id": batch_id,
                "quantity": quantity,
                "inventory_id": inventory_id,
            },
            "addMeal",
        )
        line = data.get("addMeal") or {}
        return {
            "success": True,
            "date": cart_date,
            "inventory_id": line.get("inventoryId") or inventory_id,
            "quantity": line.get("qty") or 0,
            "message": f"Added {quantity} portion(s) to cart for {cart_date}.",
        }

    async def remove_from_cart(
        self, cart_date: str, inventory_id: str, quantity: int = 1,
    ) -> dict[str, Any]:
        data = await self._query_subscription(
            REMOVE_MEAL_MUTATION,
            {"date": cart_date, "quantity": quantity, "inventory_id": inventory_id},
            "removeProductFromCart",
        )
        line = data.get("deleteMeal") or {}
        return {
            "success": True,
            "date": cart_date,
            "inventory_id": line.get("inventoryId") or inventory_id,
            "remaining_quantity": line.get("qty") or 0,
            "message": f"Removed {quantity} portion(s) from cart for {cart_date}.",
        }

    async def clear_cart(self, cart_date: str) -> dict[str, Any]:
        await self._query_subscription(CLEAR_CART_MUTATION, {"date": cart_date}, "deleteCart")
        return {"success": True, "date": cart_date, "message": f"Cart cleared for {cart_date}."}

    async def _require_delivery_date(self, delivery_date: str) -> None:
        valid_dates = [d.get("date") for d in await self.fetch_upcoming_days()]
        if delivery_date not in valid_dates:
            raise PreconditionError(
                f'"{delivery_date}" is not a valid delivery date. '
                f"Available dates: {', '.join(d for d in valid_dates if d)}. "
                f"Use cookunity_list_deliveries to see your delivery calendar."
            )

    async def skip_delivery(self, delivery_date: str) -> dict[str, Any]:
        await self._require_delivery_date(delivery_date)
        data = await self._query_subscription(
            SKIP_MUTATION,
            {"skip": {"date": delivery_date, "deliveryDate": delivery_date}, "origin": "unsubscription"},
            "createSkip",
        )
        result = data.get("createSkip") or {}
        if result.get("__typename") == ORDER_CREATION_ERROR:
            raise DomainRejectionError(
                f"{result.get('error') or 'Failed to skip delivery'}. "
                "Check cutoff with cookunity_list_deliveries."
            )
        return {
            "success": True,
            "date": delivery_date,
            "skip_id": result.get("id"),
            "message": f"Delivery for {delivery_date} has been skipped.",
        }

    async def unskip_delivery(self, delivery_date: str) -> dict[str, Any]:
        await self._require_delivery_date(delivery_date)
        data = await self._query_subscription(
            UNSKIP_MUTATION,
            {"unskip": {"date": delivery_date, "deliveryDate": delivery_date}, "origin": "unsubscription"},
            "createUnskip",
        )
        result = data.get("createUnskip") or {}
        if result.get("__typename") == ORDER_CREATION_ERROR:
            raise DomainRejectionError(f"{result.get('error') or 'Failed to unskip delivery'}.")
        return {
            "success": True,
            "date": delivery_date,
            "message": f"Delivery for {delivery_date} has been unskipped.",
        }

    # ====================================================================
    # ORDERS & PRICING
    # ====================================================================

    async def _delivery_window(self) -> tuple[str, str]:
        """First configured delivery window from the profile, else the default.

        A failure here never aborts the order; the default window is used.
        """
        default_start, default_end = DEFAULT_DELIVERY_WINDOW
        try:
            user = await self.fetch_user()
        except Exception as e:
            logger.warning(f"Could not read delivery window, using default: {e}")
            return DEFAULT_DELIVERY_WINDOW

        delivery_days = user.get("deliveryDays") or []
        if not delivery_days:
            return DEFAULT_DELIVERY_WINDOW
        first = delivery_days[0] or {}
        return first.get("time_start") or default_start, first.get("time_end") or default_end

    async def confirm_order(
        self,
        delivery_date: str,
        *,
        comment: str | None = None,
        tip: float | None = None,
        time_start: str | None = None,
        time_end: str | None = None,
    ) -> dict[str, Any]:
        """Submit the current cart for ``delivery_date`` as an order.

        The cart is always fetched fresh. Window precedence: explicit
        time_start/time_end pair, then the profile's first delivery day,
        then DEFAULT_DELIVERY_WINDOW.
        """
        day = self._find_day(await self.fetch_upcoming_days(), delivery_date, match_display=False)
        if day is None:
            raise NotFoundError(
                f"No delivery found for {delivery_date}. "
                f"Check available dates with cookunity_list_deliveries."
            )
        cart = day.get("cart") or []
        if not cart:
            raise PreconditionError(
                f"Cart is empty for {delivery_date}. Add meals first with cookunity_add_to_cart."
            )

        products = [
            {
                "qty": entry.get("qty") or 0,
                "inventoryId": (entry.get("product") or {}).get("inventoryId") or "",
            }
            for entry in cart
        ]

        if time_start and time_end:
            start, end = time_start, time_end
        else:
            start, end = await self._delivery_window()

        order: dict[str, Any] = {
            "deliveryDate": delivery_date,
            "start": start,
            "end": end,
            "products": products,
        }
        if comment:
            order["comment"] = comment
        if tip is not None:
            order["tip"] = tip

        data = await self._query_subscription(CREATE_ORDER_MUTATION, {"order": order}, "createOrder")
        result = data.get("createOrder") or {}
        if result.get("__typename") == ORDER_CREATION_ERROR:
            raise DomainRejectionError(
                f"Order failed: {result.get('error') or 'Unknown error'}",
                result.get("outOfStockIds"),
            )

        meal_count = sum(p["qty"] for p in products)
        logger.info(f"Order {result.get('id')} confirmed for {delivery_date} ({meal_count} meals)")
        return {
            "success": True,
            "order_id": result.get("id"),
            "delivery_date": result.get("deliveryDate") or delivery_date,
            "payment_status": result.get("paymentStatus"),
            "delivery_window": {"start": start, "end": end},
            "meals_confirmed": meal_count,
            "message": (
                f"Order confirmed for {delivery_date}! {meal_count} meals locked in. "
                f"Order ID: {result.get('id')}"
            ),
        }

    async def get_price_breakdown(
        self,
        menu_date: str | None = None,
        meals: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Price the given (entityId, quantity, inventoryId) meals, or the cart."""
        menu_date = self._resolve_date(menu_date)

        if meals:
            meal_inputs = [
                {
                    "entityId": m["entityId"],
                    "quantity": m.get("quantity", 1),
                    "inventoryId": m["inventoryId"],
                }
                for m in meals
            ]
        else:
            day = self._find_day(await self.fetch_upcoming_days(), menu_date)
            cart = (day or {}).get("cart") or []
            if not cart:
                raise PreconditionError(
                    f"No meals in cart for {menu_date}. Add meals with cookunity_add_to_cart "
                    f"first, or pass meals directly to this tool."
                )
            meal_inputs = [
                {
                    "entityId": (entry.get("product") or {}).get("id"),
                    "quantity": entry.get("qty") or 0,
                    "inventoryId": (entry.get("product") or {}).get("inventoryId") or "",
                }
                for entry in cart
            ]

        data = await self._query_subscription(
            PRICE_BREAKDOWN_QUERY, {"date": menu_date, "meals": meal_inputs}, "getOrderDetail",
        )
        return format_price_breakdown(menu_date, data.get("getOrderDetail"))

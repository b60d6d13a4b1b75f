# ============================================================================
# COOKUNITY MCP - MEAL DELIVERY TOOLS
# ============================================================================
# Copyright 2026 CookUnity MCP Authors. All Rights Reserved.
#
# 15 CookUnity tools:
#
# MENU (3):
#   cookunity_get_menu             - Browse a week's menu with filters
#   cookunity_search_meals         - Keyword search across the menu
#   cookunity_get_meal_details     - Allergens, ingredients, full nutrition
#
# ACCOUNT (3):
#   cookunity_get_user_info        - Profile, delivery schedule, addresses
#   cookunity_list_orders          - Past order ids and dates
#   cookunity_order_history        - Invoices with items, fees, reviews
#
# DELIVERIES (3):
#   cookunity_list_deliveries      - Upcoming weeks with status and meals
#   cookunity_skip_delivery        - Skip a delivery week
#   cookunity_unskip_delivery      - Undo a skip
#
# CART (5):
#   cookunity_get_cart             - Cart for one delivery date
#   cookunity_add_to_cart          - Add portions of a meal
#   cookunity_remove_from_cart     - Remove portions of a meal
#   cookunity_clear_cart           - Empty the cart for a date
#   cookunity_confirm_order        - Lock the cart in as an order
#
# PRICING (1):
#   cookunity_get_price_breakdown  - Plan, extras, fees, taxes, credits
#
# Read tools take response_format ("markdown" | "json"). Mutations always
# return their JSON confirmation.
# ============================================================================

import logging
from typing import Any, Callable

from mcp.types import (
    Prompt,
    PromptArgument,
    PromptMessage,
    GetPromptResult,
    TextContent,
)

from .. import __version__
from ..core import BaseMCPServer
from .cookunity_client import CookUnityClient
from .render import (
    render_cart,
    render_deliveries,
    render_meal_details,
    render_menu,
    render_order_history,
    render_orders,
    render_price_breakdown,
    render_search,
    render_user,
)

logger = logging.getLogger(__name__)

__all__ = [
    "COOKUNITY_TOOLS",
    "COOKUNITY_PROMPTS",
    "CookUnityMCPServer",
    "create_cookunity_server",
]

MAX_PAGE_SIZE = 50


# ============================================================================
# SHARED SCHEMA FRAGMENTS
# ============================================================================

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def _date_property(description: str) -> dict[str, Any]:
    return {"type": "string", "pattern": DATE_PATTERN, "description": description}


OPTIONAL_DATE = _date_property(
    "Delivery date in YYYY-MM-DD format (a Monday). Defaults to next Monday if omitted."
)
REQUIRED_DATE = _date_property("Delivery date in YYYY-MM-DD format (a Monday).")

RESPONSE_FORMAT = {
    "type": "string",
    "enum": ["markdown", "json"],
    "default": "markdown",
    "description": "Output format: 'markdown' for human-readable or 'json' for structured data",
}

READ_ONLY = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": True,
}


def _limit_property(default: int, maximum: int = MAX_PAGE_SIZE) -> dict[str, Any]:
    return {
        "type": "integer",
        "minimum": 1,
        "maximum": maximum,
        "default": default,
        "description": f"Results per page (default {default}, max {maximum})",
    }


OFFSET = {
    "type": "integer",
    "minimum": 0,
    "default": 0,
    "description": "Number of results to skip for pagination",
}


# ============================================================================
# TOOL DEFINITIONS
# ============================================================================

COOKUNITY_TOOLS: list[dict[str, Any]] = [
    # ================================================================
    # MENU (3 tools)
    # ================================================================
    {
        "name": "cookunity_get_menu",
        "title": "Browse CookUnity Menu",
        "description": (
            "Browse available meals for a delivery date with optional filters and pagination. "
            "Filters: category title (e.g. 'Bowls'), diet tag (e.g. 'vegan', 'gluten-free'), "
            "max_price in dollars, min_rating 0-5.\n\n"
            "Returns total, count, offset, has_more, next_offset (when more pages exist), "
            "categories and meals. Each meal carries the inventory_id needed by "
            "cookunity_add_to_cart."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "date": OPTIONAL_DATE,
                "category": {"type": "string", "description": "Filter by category title (e.g. 'Bowls', 'Protein+')"},
                "diet": {"type": "string", "description": "Filter by diet tag (e.g. 'vegan', 'dairy-free')"},
                "max_price": {"type": "number", "minimum": 0, "description": "Maximum price in dollars"},
                "min_rating": {"type": "number", "minimum": 0, "maximum": 5, "description": "Minimum rating (0-5)"},
                "limit": _limit_property(20),
                "offset": OFFSET,
                "response_format": RESPONSE_FORMAT,
            },
            "required": [],
            "additionalProperties": False,
        },
        "annotations": READ_ONLY,
    },
    {
        "name": "cookunity_search_meals",
        "title": "Search CookUnity Meals",
        "description": (
            "Search meals by keyword across name, description, cuisine, chef, ingredients, "
            "protein and diet tags, and category. Case-insensitive; results keep menu order.\n\n"
            "Examples: 'salmon', 'vegan', a chef's name."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "minLength": 1,
                    "maxLength": 200,
                    "description": "Keyword to search for",
                },
                "date": OPTIONAL_DATE,
                "limit": _limit_property(20),
                "offset": OFFSET,
                "response_format": RESPONSE_FORMAT,
            },
            "required": ["query"],
            "additionalProperties": False,
        },
        "annotations": READ_ONLY,
    },
    {
        "name": "cookunity_get_meal_details",
        "title": "Get CookUnity Meal Details",
        "description": (
            "Full details for one meal: allergens, complete ingredient list, nutrition "
            "(including protein and sugar), diet tags and chef. Provide meal_id or "
            "inventory_id. If the meal is not on that date's menu, try another date or "
            "use cookunity_search_meals."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "meal_id": {"type": "integer", "description": "Numeric meal ID (e.g. 12272)"},
                "inventory_id": {"type": "string", "description": "Inventory ID (e.g. 'ii-135055242')"},
                "date": OPTIONAL_DATE,
                "response_format": RESPONSE_FORMAT,
            },
            "required": [],
            "additionalProperties": False,
        },
        "annotations": READ_ONLY,
    },

    # ================================================================
    # ACCOUNT (3 tools)
    # ================================================================
    {
        "name": "cookunity_get_user_info",
        "title": "Get CookUnity Profile",
        "description": (
            "Account profile: name, email, plan, credit balance, delivery schedule "
            "(day and time window) and addresses."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {"response_format": RESPONSE_FORMAT},
            "required": [],
            "additionalProperties": False,
        },
        "annotations": READ_ONLY,
    },
    {
        "name": "cookunity_list_orders",
        "title": "List CookUnity Orders",
        "description": "List past orders (order ID and delivery date), paginated.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": _limit_property(20, maximum=100),
                "offset": OFFSET,
                "response_format": RESPONSE_FORMAT,
            },
            "required": [],
            "additionalProperties": False,
        },
        "annotations": READ_ONLY,
    },
    {
        "name": "cookunity_order_history",
        "title": "CookUnity Order History",
        "description": (
            "Invoices for a date range with every delivered meal, price, chef, your rating "
            "and review, plus subtotal, fees, taxes, tip, discount and credits applied. "
            "Useful for finding meals you rated highly."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "from": _date_property("Start date (inclusive), YYYY-MM-DD"),
                "to": _date_property("End date (inclusive), YYYY-MM-DD"),
                "limit": _limit_property(10),
                "offset": OFFSET,
                "response_format": RESPONSE_FORMAT,
            },
            "required": ["from", "to"],
            "additionalProperties": False,
        },
        "annotations": READ_ONLY,
    },

    # ================================================================
    # DELIVERIES (3 tools)
    # ================================================================
    {
        "name": "cookunity_list_deliveries",
        "title": "List Upcoming CookUnity Deliveries",
        "description": (
            "Upcoming delivery weeks with status (locked / active / skipped / paused), "
            "cutoff deadline, and the meals for each week: the confirmed order if one "
            "exists, otherwise the cart, otherwise CookUnity's own picks. This is the "
            "primary view of the delivery calendar."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {"response_format": RESPONSE_FORMAT},
            "required": [],
            "additionalProperties": False,
        },
        "annotations": READ_ONLY,
    },
    {
        "name": "cookunity_skip_delivery",
        "title": "Skip CookUnity Delivery",
        "description": (
            "Skip the delivery for a date. The date must be one of the upcoming delivery "
            "dates and before its cutoff. Reversible with cookunity_unskip_delivery."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {"date": REQUIRED_DATE},
            "required": ["date"],
            "additionalProperties": False,
        },
        "annotations": {
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True,
        },
    },
    {
        "name": "cookunity_unskip_delivery",
        "title": "Unskip CookUnity Delivery",
        "description": "Reactivate a previously skipped delivery date.",
        "inputSchema": {
            "type": "object",
            "properties": {"date": REQUIRED_DATE},
            "required": ["date"],
            "additionalProperties": False,
        },
        "annotations": {
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True,
        },
    },

    # ================================================================
    # CART (5 tools)
    # ================================================================
    {
        "name": "cookunity_get_cart",
        "title": "Get CookUnity Cart",
        "description": (
            "Cart contents for one delivery date: items with price and chef, total items, "
            "total price, editability and cutoff."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "date": OPTIONAL_DATE,
                "response_format": RESPONSE_FORMAT,
            },
            "required": [],
            "additionalProperties": False,
        },
        "annotations": READ_ONLY,
    },
    {
        "name": "cookunity_add_to_cart",
        "title": "Add Meal to CookUnity Cart",
        "description": (
            "Add portions of a meal to the cart for a delivery date. Use the inventory_id "
            "(and optionally batch_id) from cookunity_get_menu or cookunity_search_meals. "
            "The cart is not an order until cookunity_confirm_order is called."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "date": REQUIRED_DATE,
                "inventory_id": {"type": "string", "minLength": 1, "description": "Inventory ID of the meal"},
                "quantity": {"type": "integer", "minimum": 1, "maximum": 10, "default": 1, "description": "Portions to add"},
                "batch_id": {"type": "integer", "description": "Batch ID of the meal (optional)"},
            },
            "required": ["date", "inventory_id"],
            "additionalProperties": False,
        },
        "annotations": {
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": False,
            "openWorldHint": True,
        },
    },
    {
        "name": "cookunity_remove_from_cart",
        "title": "Remove Meal from CookUnity Cart",
        "description": "Remove portions of a meal from the cart for a delivery date.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "date": REQUIRED_DATE,
                "inventory_id": {"type": "string", "minLength": 1, "description": "Inventory ID of the meal"},
                "quantity": {"type": "integer", "minimum": 1, "maximum": 10, "default": 1, "description": "Portions to remove"},
            },
            "required": ["date", "inventory_id"],
            "additionalProperties": False,
        },
        "annotations": {
            "readOnlyHint": False,
            "destructiveHint": True,
            "idempotentHint": False,
            "openWorldHint": True,
        },
    },
    {
        "name": "cookunity_clear_cart",
        "title": "Clear CookUnity Cart",
        "description": "Remove every meal from the cart for a delivery date.",
        "inputSchema": {
            "type": "object",
            "properties": {"date": REQUIRED_DATE},
            "required": ["date"],
            "additionalProperties": False,
        },
        "annotations": {
            "readOnlyHint": False,
            "destructiveHint": True,
            "idempotentHint": True,
            "openWorldHint": True,
        },
    },
    {
        "name": "cookunity_confirm_order",
        "title": "Confirm CookUnity Order",
        "description": (
            "Confirm the current cart for a delivery date as an order. The cart must not "
            "be empty. The delivery window comes from time_start/time_end when both are "
            "given, otherwise from your profile's delivery schedule. Fails with the "
            "out-of-stock inventory IDs if any meal sold out."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "date": REQUIRED_DATE,
                "comment": {"type": "string", "description": "Delivery instructions or comment"},
                "tip": {"type": "number", "minimum": 0, "description": "Tip amount in dollars"},
                "time_start": {"type": "string", "description": "Delivery window start (HH:MM)"},
                "time_end": {"type": "string", "description": "Delivery window end (HH:MM)"},
            },
            "required": ["date"],
            "additionalProperties": False,
        },
        "annotations": {
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": False,
            "openWorldHint": True,
        },
    },

    # ================================================================
    # PRICING (1 tool)
    # ================================================================
    {
        "name": "cookunity_get_price_breakdown",
        "title": "CookUnity Price Breakdown",
        "description": (
            "Price breakdown for a delivery: meals included in the plan, extra meals, "
            "discounts, delivery and express fees, taxes, total, and available credits. "
            "Prices the given meals, or the current cart when meals is omitted."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "date": OPTIONAL_DATE,
                "meals": {
                    "type": "array",
                    "description": "Meals to price. If omitted, uses the cart for the date.",
                    "items": {
                        "type": "object",
                        "properties": {
                            "entityId": {
                                "type": ["integer", "string"],
                                "description": "Meal ID",
                            },
                            "quantity": {"type": "integer", "minimum": 1, "default": 1},
                            "inventoryId": {"type": "string", "description": "Inventory ID"},
                        },
                        "required": ["entityId", "inventoryId"],
                    },
                },
                "response_format": RESPONSE_FORMAT,
            },
            "required": [],
            "additionalProperties": False,
        },
        "annotations": READ_ONLY,
    },
]


# ============================================================================
# PROMPT DEFINITIONS
# ============================================================================

COOKUNITY_PROMPTS: list[Prompt] = [
    Prompt(
        name="plan-week",
        description=(
            "Plan next week's CookUnity delivery: review the calendar, pick meals that "
            "match your preferences, fill the cart and check the price."
        ),
        arguments=[
            PromptArgument(
                name="preferences",
                description="Dietary preferences or cravings (e.g. 'high protein, no pork')",
                required=False,
            ),
            PromptArgument(
                name="date",
                description="Delivery date (YYYY-MM-DD). Defaults to the next editable week.",
                required=False,
            ),
        ],
    ),
]


# ============================================================================
# COOKUNITY MCP SERVER
# ============================================================================

class CookUnityMCPServer(BaseMCPServer):
    """CookUnity MCP server with 15 meal delivery tools.

    Extends BaseMCPServer with:
    - CookUnityClient for every upstream call (one account per process)
    - 15 tools: 3 menu + 3 account + 3 deliveries + 5 cart + 1 pricing
    - 1 prompt: plan-week
    """

    INSTRUCTIONS = """CookUnity MCP Server - Meal Delivery Management

Browse menus, manage carts, and control weekly deliveries for one CookUnity account.

WEEKLY WORKFLOW:
1. cookunity_list_deliveries → see upcoming weeks, status and cutoffs
2. cookunity_get_menu / cookunity_search_meals → find meals (note inventory_id)
3. cookunity_add_to_cart → fill the cart for an editable week
4. cookunity_get_price_breakdown → check totals before confirming
5. cookunity_confirm_order → lock the cart in as an order

OTHER:
- cookunity_get_meal_details → allergens, ingredients, full nutrition
- cookunity_skip_delivery / cookunity_unskip_delivery → manage weeks
- cookunity_order_history → past invoices, ratings and reviews

Deliveries are weekly on Mondays; dates default to next Monday."""

    def __init__(
        self,
        email: str | None = None,
        password: str | None = None,
        client: CookUnityClient | None = None,
    ) -> None:
        super().__init__(
            name="cookunity",
            version=__version__,
            instructions=self.INSTRUCTIONS,
        )

        if client is None:
            if not email or not password:
                raise ValueError("COOKUNITY_EMAIL and COOKUNITY_PASSWORD are required")
            client = CookUnityClient.create(email, password)
        self._client = client

        # Register tools, prompts, handlers
        self.register_tools(COOKUNITY_TOOLS)
        self.register_prompts(COOKUNITY_PROMPTS)
        self.register_tool_handler("*", self._handle_tool)
        self.register_prompt_handler("plan-week", self._handle_plan_week_prompt)

        # Set up MCP protocol handlers
        self.setup_handlers()

    @staticmethod
    def _respond(
        arguments: dict, result: dict[str, Any], renderer: Callable[[dict[str, Any]], str],
    ) -> dict[str, Any] | str:
        if arguments.get("response_format", "markdown") == "json":
            return result
        return renderer(result)

    # ====================================================================
    # TOOL HANDLER - routes all 15 tools
    # ====================================================================

    async def _handle_tool(self, name: str, arguments: dict) -> Any:
        """Route tool calls to the CookUnity client."""
        client = self._client

        # ============================================================
        # MENU
        # ============================================================

        if name == "cookunity_get_menu":
            result = await client.get_menu(
                arguments.get("date"),
                category=arguments.get("category"),
                diet=arguments.get("diet"),
                max_price=arguments.get("max_price"),
                min_rating=arguments.get("min_rating"),
                limit=min(arguments.get("limit", 20), MAX_PAGE_SIZE),
                offset=arguments.get("offset", 0),
            )
            return self._respond(arguments, result, render_menu)

        if name == "cookunity_search_meals":
            result = await client.search_meals(
                arguments["query"],
                arguments.get("date"),
                limit=min(arguments.get("limit", 20), MAX_PAGE_SIZE),
                offset=arguments.get("offset", 0),
            )
            return self._respond(arguments, result, render_search)

        if name == "cookunity_get_meal_details":
            result = await client.get_meal_details(
                arguments.get("date"),
                meal_id=arguments.get("meal_id"),
                inventory_id=arguments.get("inventory_id"),
            )
            return self._respond(arguments, result, render_meal_details)

        # ============================================================
        # ACCOUNT
        # ============================================================

        if name == "cookunity_get_user_info":
            result = await client.get_user_info()
            return self._respond(arguments, result, render_user)

        if name == "cookunity_list_orders":
            result = await client.list_orders(
                limit=arguments.get("limit", 20),
                offset=arguments.get("offset", 0),
            )
            return self._respond(arguments, result, render_orders)

        if name == "cookunity_order_history":
            result = await client.get_order_history(
                arguments["from"],
                arguments["to"],
                limit=min(arguments.get("limit", 10), MAX_PAGE_SIZE),
                offset=arguments.get("offset", 0),
            )
            return self._respond(arguments, result, render_order_history)

        # ============================================================
        # DELIVERIES
        # ============================================================

        if name == "cookunity_list_deliveries":
            result = await client.list_deliveries()
            return self._respond(arguments, result, render_deliveries)

        if name == "cookunity_skip_delivery":
            return await client.skip_delivery(arguments["date"])

        if name == "cookunity_unskip_delivery":
            return await client.unskip_delivery(arguments["date"])

        # ============================================================
        # CART
        # ============================================================

        if name == "cookunity_get_cart":
            result = await client.get_cart(arguments.get("date"))
            return self._respond(arguments, result, render_cart)

        if name == "cookunity_add_to_cart":
            return await client.add_to_cart(
                arguments["date"],
                arguments["inventory_id"],
                quantity=arguments.get("quantity", 1),
                batch_id=arguments.get("batch_id"),
            )

        if name == "cookunity_remove_from_cart":
            return await client.remove_from_cart(
                arguments["date"],
                arguments["inventory_id"],
                quantity=arguments.get("quantity", 1),
            )

        if name == "cookunity_clear_cart":
            return await client.clear_cart(arguments["date"])

        if name == "cookunity_confirm_order":
            return await client.confirm_order(
                arguments["date"],
                comment=arguments.get("comment"),
                tip=arguments.get("tip"),
                time_start=arguments.get("time_start"),
                time_end=arguments.get("time_end"),
            )

        # ============================================================
        # PRICING
        # ============================================================

        if name == "cookunity_get_price_breakdown":
            result = await client.get_price_breakdown(
                arguments.get("date"),
                arguments.get("meals"),
            )
            return self._respond(arguments, result, render_price_breakdown)

        raise ValueError(f"Unknown tool: {name}")

    # ====================================================================
    # PROMPT HANDLERS
    # ====================================================================

    def _handle_plan_week_prompt(
        self, name: str, arguments: dict[str, str] | None,
    ) -> GetPromptResult:
        preferences = arguments.get("preferences", "") if arguments else ""
        date = arguments.get("date", "") if arguments else ""

        target = f"the delivery on {date}" if date else "the next editable delivery week"
        steps = (
            f"Help me plan {target} on CookUnity.\n\n"
            f"1. Call cookunity_list_deliveries and pick the week (it must be editable)\n"
            f"2. Check cookunity_get_cart for what is already selected\n"
            f"3. Use cookunity_search_meals / cookunity_get_menu to find meals\n"
        )
        if preferences:
            steps += f"   Match these preferences: {preferences}\n"
        steps += (
            f"4. Suggest a selection and wait for my approval before changing the cart\n"
            f"5. After I approve, add the meals with cookunity_add_to_cart\n"
            f"6. Show the totals with cookunity_get_price_breakdown\n"
            f"7. Only call cookunity_confirm_order if I explicitly ask you to"
        )

        return GetPromptResult(
            messages=[
                PromptMessage(
                    role="user",
                    content=TextContent(type="text", text=steps),
                )
            ]
        )


# ============================================================================
# FACTORY FUNCTION
# ============================================================================

def create_cookunity_server(
    email: str | None = None,
    password: str | None = None,
    client: CookUnityClient | None = None,
) -> CookUnityMCPServer:
    """Factory function to create a CookUnity MCP server."""
    return CookUnityMCPServer(email=email, password=password, client=client)

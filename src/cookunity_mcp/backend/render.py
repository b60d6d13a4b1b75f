# ============================================================================
# COOKUNITY MCP - MARKDOWN RENDERING
# ============================================================================
# Copyright 2026 CookUnity MCP Authors. All Rights Reserved.
#
# Human-readable views of the normalized records returned by
# CookUnityClient. Read tools use these when response_format is
# "markdown"; the "json" format dumps the record itself.
# ============================================================================

from typing import Any

__all__ = [
    "render_menu",
    "render_search",
    "render_meal_details",
    "render_user",
    "render_orders",
    "render_order_history",
    "render_deliveries",
    "render_cart",
    "render_price_breakdown",
]

_STATUS_BADGES = {
    "active": "[ACTIVE]",
    "skipped": "[SKIPPED]",
    "paused": "[PAUSED]",
    "locked": "[LOCKED]",
}


def _money(value: float | int | None) -> str:
    return f"${float(value or 0):.2f}"


def _line_item(item: dict[str, Any], with_price: bool = True) -> str:
    price = f" - {_money(item['price'])}" if with_price else ""
    chef = f" ({item['chef']})" if item.get("chef") else ""
    return f"- **{item['name']}** x{item['quantity']}{price}{chef}"


def _next_page_hint(result: dict[str, Any]) -> list[str]:
    if not result.get("has_more"):
        return []
    return ["", f"*More results available. Use offset: {result['next_offset']} for the next page.*"]


# ============================================================================
# MENU
# ============================================================================

def _meal_card(meal: dict[str, Any]) -> str:
    price = _money(meal["price"])
    if meal["original_price"] and meal["original_price"] != meal["price"]:
        price += f" (was {_money(meal['original_price'])})"
    stock = str(meal["stock"]) if meal["in_stock"] else "Out of stock"
    calories = meal["nutrition"].get("calories")

    lines = [
        f"### {meal['name']}{' (new)' if meal['is_new'] else ''}",
        f"**Chef**: {meal['chef']} | **Category**: {meal['category']}",
        f"**Price**: {price} | **Rating**: {meal['rating']}/5",
        f"**Stock**: {stock} | **Inventory ID**: `{meal['inventory_id']}` | **Meal ID**: {meal['id']}",
    ]
    if meal["description"]:
        lines.append(meal["description"])
    details = [d for d in (meal["meat_type"], f"{calories} cal" if calories is not None else "") if d]
    if details:
        lines.append(" | ".join(details))
    if meal["tags"]["diet_tags"]:
        lines.append(f"Tags: {', '.join(meal['tags']['diet_tags'])}")
    return "\n".join(lines)


def render_menu(result: dict[str, Any]) -> str:
    lines = [
        f"# CookUnity Menu: {result['date']}",
        f"Showing {result['count']} of {result['total']} meals (offset {result['offset']})",
        "",
    ]
    for meal in result["meals"]:
        lines.extend([_meal_card(meal), ""])
    lines.extend(_next_page_hint(result))
    return "\n".join(lines).rstrip()


def render_search(result: dict[str, Any]) -> str:
    lines = [
        f'# Search: "{result["query"]}" ({result["date"]})',
        f"Found {result['total']} meals",
        "",
    ]
    if not result["meals"]:
        lines.append("No meals matched. Try a broader keyword or another date.")
    for meal in result["meals"]:
        lines.extend([_meal_card(meal), ""])
    lines.extend(_next_page_hint(result))
    return "\n".join(lines).rstrip()


def render_meal_details(meal: dict[str, Any]) -> str:
    nutrition = meal["nutrition"]
    lines = [
        f"# {meal['name']}",
        f"**Chef**: {meal['chef']['name']} | **Category**: {meal['category']} | **Menu date**: {meal['date']}",
        f"**Price**: {_money(meal['price'])}"
        + (f" (premium fee {_money(meal['premium_fee'])})" if meal["premium_fee"] else "")
        + f" | **Rating**: {meal['rating']}/5",
        f"**Inventory ID**: `{meal['inventory_id']}` | **Meal ID**: {meal['id']}"
        + (f" | **Batch ID**: {meal['batch_id']}" if meal["batch_id"] is not None else ""),
        "",
        "## Description",
        meal["description"] or "No description.",
        "",
        "## Nutrition",
    ]
    for label, key, unit in (
        ("Calories", "calories", ""),
        ("Protein", "protein", "g"),
        ("Carbs", "carbs", "g"),
        ("Fat", "fat", "g"),
        ("Fiber", "fiber", "g"),
        ("Sugar", "sugar", "g"),
        ("Sodium", "sodium", "mg"),
    ):
        if nutrition.get(key) is not None:
            lines.append(f"- {label}: {nutrition[key]}{unit}")

    lines.extend(["", "## Ingredients"])
    lines.append(", ".join(meal["ingredients"]) if meal["ingredients"] else "Not listed.")
    lines.extend(["", "## Allergens"])
    lines.append(", ".join(meal["allergens"]) if meal["allergens"] else "None listed.")

    tags = meal["tags"]
    tag_lines = [
        f"- {label}: {', '.join(tags[key])}"
        for label, key in (("Diet", "diet_tags"), ("Cuisine", "cuisines"), ("Protein", "protein_tags"))
        if tags.get(key)
    ]
    if tag_lines:
        lines.extend(["", "## Tags", *tag_lines])
    return "\n".join(lines)


# ============================================================================
# ACCOUNT
# ============================================================================

def render_user(user: dict[str, Any]) -> str:
    lines = [
        "# CookUnity Profile",
        f"**Name**: {user['name']}",
        f"**Email**: {user['email']}",
        f"**Status**: {user['status']}",
        f"**Plan ID**: {user['plan_id']}",
        f"**Credit**: {_money(user['current_credit'])}",
        "",
        "## Delivery Schedule",
    ]
    lines.extend(
        f"- {d['day']}: {d['time_start']} - {d['time_end']}" for d in user["delivery_days"]
    )
    lines.extend(["", "## Addresses"])
    for a in user["addresses"]:
        active = " (active)" if a["is_active"] else ""
        lines.append(f"- {a['street']}, {a['city']}, {a['region']} {a['postcode']}{active}")
    return "\n".join(lines)


def render_orders(result: dict[str, Any]) -> str:
    lines = [
        "# Order History",
        f"Showing {result['count']} of {result['total']} orders",
        "",
    ]
    lines.extend(f"- **{o['delivery_date']}** (ID: {o['id']})" for o in result["orders"])
    lines.extend(_next_page_hint(result))
    return "\n".join(lines)


def render_order_history(result: dict[str, Any]) -> str:
    lines = [
        f"# Invoices {result['from']} to {result['to']}",
        f"Showing {result['count']} of {result['total']} invoices",
        "",
    ]
    for inv in result["invoices"]:
        breakdown = (
            f"subtotal {_money(inv['subtotal'])} + tax {_money(inv['taxes'])}"
            f" + delivery {_money(inv['delivery_fee'])}"
        )
        if inv["tip"]:
            breakdown += f" + tip {_money(inv['tip'])}"
        if inv["discount"]:
            breakdown += f" - discount {_money(inv['discount'])}"
        lines.append(f"## Invoice {inv['id']} ({inv['date']})")
        lines.append(f"**Total**: {_money(inv['total'])} ({breakdown})")
        for order in inv["orders"]:
            lines.append(f"### Delivery: {order['delivery_date']} ({order['delivery_window']})")
            for item in order["items"]:
                rating = f" | rated {item['rating']}/5" if item["rating"] else ""
                lines.append(_line_item(item) + rating)
                if item["review"] and item["review"]["text"]:
                    lines.append(f'  > "{item["review"]["text"]}"')
        lines.append("")
    lines.extend(_next_page_hint(result))
    return "\n".join(lines).rstrip()


# ============================================================================
# DELIVERIES & CART
# ============================================================================

def render_deliveries(result: dict[str, Any]) -> str:
    lines = ["# Upcoming Deliveries", ""]
    if not result["deliveries"]:
        lines.append("No scheduled deliveries.")
    for d in result["deliveries"]:
        lines.append(f"## {d['date']} {_STATUS_BADGES.get(d['status'], d['status'])}")
        if d["cutoff"]:
            lines.append(f"**Cutoff**: {d['cutoff']} ({d['cutoff_timezone'] or ''})")
        lines.append(
            f"**Editable**: {'Yes' if d['can_edit'] else 'No'} | "
            f"**Menu available**: {'Yes' if d['menu_available'] else 'No'}"
        )

        order = d["order"]
        if order:
            lines.append(
                f"**Order** #{order['id']} ({order['status'] or 'unknown'}, "
                f"{_money(order['grand_total'])}):"
            )
            lines.extend("  " + _line_item(item) for item in order["items"])
        elif d["cart_count"]:
            lines.append(f"**Cart** ({d['cart_count']} items):")
            lines.extend("  " + _line_item(item) for item in d["cart_items"])
        elif d["recommendation_count"]:
            lines.append(
                f"**CookUnity Picks** ({d['recommendation_count']} meals, not yet confirmed):"
            )
            lines.extend("  " + _line_item(item, with_price=False) for item in d["recommendation_items"])
        else:
            lines.append("**Meals**: None selected")
        lines.append("")
    return "\n".join(lines).rstrip()


def render_cart(cart: dict[str, Any]) -> str:
    if cart["is_skipped"]:
        status = "Skipped"
    elif cart["can_edit"]:
        status = "Editable"
    else:
        status = "Locked"

    lines = [f"# Cart: {cart['date']}", f"Status: {status}", ""]
    if not cart["items"]:
        lines.append("Cart is empty.")
    else:
        lines.extend(_line_item(item) for item in cart["items"])
        lines.extend([
            "",
            f"**Total**: {cart['total_items']} items, {_money(cart['total_price'])}",
        ])
    if cart["cutoff"]:
        lines.append(f"**Cutoff**: {cart['cutoff']}")
    return "\n".join(lines)


def render_price_breakdown(b: dict[str, Any]) -> str:
    lines = [
        f"# Order Summary: {b['date']}",
        "",
        "| Item | Amount |",
        "|------|--------|",
        f"| Included in plan ({b['qty_plan_meals']} meals) | {_money(b['subtotal'])} |",
    ]
    if b["total_extra_meals"]:
        lines.append(f"| Extra meals | {_money(b['total_extra_meals'])} |")
    if b["promo_discount"]:
        lines.append(f"| Discount | -{_money(b['promo_discount'])} |")
    lines.append(f"| Delivery fee | {_money(b['delivery_fee'])} |")
    if b["express_fee"]:
        lines.append(f"| Express fee | {_money(b['express_fee'])} |")
    lines.append(f"| Taxes | {_money(b['taxes'])} |")
    lines.append(f"| **Order total** | **{_money(b['total'])}** |")
    if b["available_credits"]:
        lines.extend([
            "",
            f"Credits available: {_money(b['available_credits'])}",
            f"Total after credits: {_money(b['total_after_credits'])}",
        ])
    return "\n".join(lines)

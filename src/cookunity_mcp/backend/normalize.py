# ============================================================================
# COOKUNITY MCP - RESPONSE NORMALIZATION
# ============================================================================
# Copyright 2026 CookUnity MCP Authors. All Rights Reserved.
#
# Raw GraphQL payloads have optional relations and arrays that may be
# missing or null. Everything here maps them onto stable output shapes:
#   - missing arrays        → []
#   - missing product names → "Unknown"
#   - missing inventory ids → ""
#   - missing amounts       → 0
#   - chef names            → "First Last", trimmed
# so a consumer can serialize the result without further null checks.
# ============================================================================

from datetime import date, timedelta
from typing import Any

__all__ = [
    "DELIVERY_WEEKDAY",
    "next_delivery_date",
    "paginate",
    "format_meal",
    "format_meal_details",
    "meal_matches",
    "delivery_status",
    "format_cart_line",
    "format_delivery",
    "format_cart",
    "format_user",
    "format_invoice",
    "format_price_breakdown",
]

# Deliveries run on a weekly cycle anchored on Monday
DELIVERY_WEEKDAY = 0


# ============================================================================
# DATES & PAGINATION
# ============================================================================

def next_delivery_date(today: date | None = None) -> str:
    """Next Monday strictly after ``today`` (a Monday maps to the following one)."""
    today = today or date.today()
    days_ahead = (DELIVERY_WEEKDAY - today.weekday()) % 7 or 7
    return (today + timedelta(days=days_ahead)).isoformat()


def paginate(
    items: list[Any], offset: int, limit: int, key: str = "items",
) -> dict[str, Any]:
    """Slice a fully-fetched list into one page.

    ``next_offset`` is only present when ``has_more`` is true.
    """
    total = len(items)
    page = items[offset : offset + limit]
    has_more = total > offset + len(page)
    result: dict[str, Any] = {
        "total": total,
        "count": len(page),
        "offset": offset,
        "has_more": has_more,
    }
    if has_more:
        result["next_offset"] = offset + len(page)
    result[key] = page
    return result


# ============================================================================
# MEALS
# ============================================================================

def _full_name(first: str | None, last: str | None) -> str:
    return f"{first or ''} {last or ''}".strip()


def _tags(search_by: dict[str, Any]) -> dict[str, list[str]]:
    return {
        "cuisines": list(search_by.get("cuisines") or []),
        "diet_tags": list(search_by.get("dietTags") or []),
        "protein_tags": list(search_by.get("proteinTags") or []),
        "ingredients": list(search_by.get("ingredients") or []),
    }


def format_meal(meal: dict[str, Any]) -> dict[str, Any]:
    search_by = meal.get("searchBy") or {}
    chef = meal.get("chef") or {}
    category = meal.get("category") or {}
    stock = meal.get("stock") or 0
    return {
        "id": meal.get("id"),
        "name": meal.get("name") or "Unknown",
        "description": meal.get("shortDescription") or "",
        "chef": _full_name(chef.get("firstName"), chef.get("lastName")),
        "category": category.get("title") or "",
        "price": meal.get("finalPrice") or 0,
        "original_price": meal.get("price") or 0,
        "rating": meal.get("userRating") or 0,
        "inventory_id": meal.get("inventoryId") or "",
        "batch_id": meal.get("batchId"),
        "in_stock": stock > 0,
        "stock": stock,
        "is_new": bool(meal.get("isNewMeal")),
        "image": meal.get("image") or "",
        "nutrition": dict(meal.get("nutritionalFacts") or {}),
        "tags": _tags(search_by),
        "meat_type": meal.get("meatType") or "",
    }


def format_meal_details(meal: dict[str, Any], menu_date: str) -> dict[str, Any]:
    """Full meal card: allergens, ingredient list, chef id, premium fee."""
    search_by = meal.get("searchBy") or {}
    chef = meal.get("chef") or {}
    category = meal.get("category") or {}
    stock = meal.get("stock") or 0
    tags = _tags(search_by)
    tags.pop("ingredients")
    return {
        "id": meal.get("id"),
        "name": meal.get("name") or "Unknown",
        "description": meal.get("shortDescription") or "",
        "sku": meal.get("sku") or "",
        "batch_id": meal.get("batchId"),
        "inventory_id": meal.get("inventoryId") or "",
        "price": meal.get("finalPrice") or 0,
        "original_price": meal.get("price") or 0,
        "premium_fee": meal.get("premiumFee") or 0,
        "rating": meal.get("userRating") or 0,
        "in_stock": stock > 0,
        "stock": stock,
        "is_new": bool(meal.get("isNewMeal")),
        "image": meal.get("image") or "",
        "meat_type": meal.get("meatType") or "",
        "category": category.get("title") or "",
        "chef": {
            "id": chef.get("id"),
            "name": _full_name(chef.get("firstName"), chef.get("lastName")),
        },
        "nutrition": dict(meal.get("nutritionalFacts") or {}),
        "allergens": [a.get("name") or "" for a in meal.get("allergens") or []],
        "ingredients": [i.get("name") or "" for i in meal.get("ingredients") or []],
        "tags": tags,
        "date": menu_date,
    }


def meal_matches(meal: dict[str, Any], query: str) -> bool:
    """Case-insensitive substring match across the searchable meal fields."""
    term = query.lower()
    search_by = meal.get("searchBy") or {}
    category = meal.get("category") or {}

    candidates: list[str | None] = [meal.get("name"), meal.get("shortDescription")]
    candidates.extend(search_by.get("cuisines") or [])
    candidates.extend(search_by.get("dietTags") or [])
    candidates.extend(search_by.get("ingredients") or [])
    candidates.extend(search_by.get("proteinTags") or [])
    candidates.append(
        f"{search_by.get('chefFirstName') or ''} {search_by.get('chefLastName') or ''}"
    )
    candidates.append(category.get("title"))

    return any(term in (value or "").lower() for value in candidates)


# ============================================================================
# DELIVERIES & CARTS
# ============================================================================

def delivery_status(can_edit: bool, skip: bool, is_paused: bool) -> str:
    """Derive the day status. Upstream flags overlap, so order matters:
    locked > skipped > paused > active.
    """
    if not can_edit:
        return "locked"
    if skip:
        return "skipped"
    if is_paused:
        return "paused"
    return "active"


def format_cart_line(
    product: dict[str, Any] | None,
    quantity: int | None,
    price: float | None = None,
) -> dict[str, Any]:
    product = product or {}
    if price is None:
        price = product.get("price_incl_tax")
    return {
        "name": product.get("name") or "Unknown",
        "inventory_id": product.get("inventoryId") or "",
        "quantity": quantity or 0,
        "price": price or 0,
        "chef": _full_name(product.get("chef_firstname"), product.get("chef_lastname")),
    }


def _sum_quantities(lines: list[dict[str, Any]]) -> int:
    return sum(line["quantity"] for line in lines)


def _format_order(order: dict[str, Any] | None) -> dict[str, Any] | None:
    items = (order or {}).get("items") or []
    if not items:
        return None
    lines = [
        format_cart_line(
            item.get("product"),
            item.get("qty"),
            price=(item.get("price") or {}).get("price") or 0,
        )
        for item in items
    ]
    return {
        "id": order.get("id"),
        "status": (order.get("orderStatus") or {}).get("status"),
        "grand_total": order.get("grandTotal") or 0,
        "items": lines,
        "item_count": _sum_quantities(lines),
    }


def _format_recommendation(recommendation: dict[str, Any] | None) -> list[dict[str, Any]]:
    lines = []
    for meal in (recommendation or {}).get("meals") or []:
        line = format_cart_line(meal, meal.get("qty"), price=0)
        if meal.get("qty") is None:
            line["quantity"] = 1
        lines.append(line)
    return lines


def format_delivery(day: dict[str, Any]) -> dict[str, Any]:
    can_edit = bool(day.get("canEdit"))
    cutoff = day.get("cutoff") or {}
    cart_items = [format_cart_line(c.get("product"), c.get("qty")) for c in day.get("cart") or []]
    recommendation_items = _format_recommendation(day.get("recommendation"))
    return {
        "date": day.get("displayDate") or day.get("date"),
        "status": delivery_status(can_edit, bool(day.get("skip")), bool(day.get("isPaused"))),
        "can_edit": can_edit,
        "menu_available": bool(day.get("menuAvailable")),
        "cutoff": cutoff.get("time"),
        "cutoff_timezone": cutoff.get("userTimeZone"),
        "cart_items": cart_items,
        "cart_count": _sum_quantities(cart_items),
        "order": _format_order(day.get("order")),
        "recommendation_items": recommendation_items,
        "recommendation_count": _sum_quantities(recommendation_items),
    }


def format_cart(day: dict[str, Any]) -> dict[str, Any]:
    items = [format_cart_line(c.get("product"), c.get("qty")) for c in day.get("cart") or []]
    return {
        "date": day.get("displayDate") or day.get("date"),
        "can_edit": bool(day.get("canEdit")),
        "is_skipped": bool(day.get("skip")),
        "cutoff": (day.get("cutoff") or {}).get("time"),
        "items": items,
        "total_items": _sum_quantities(items),
        "total_price": round(sum(i["price"] * i["quantity"] for i in items), 2),
    }


# ============================================================================
# ACCOUNT
# ============================================================================

def format_user(user: dict[str, Any]) -> dict[str, Any]:
    ring = user.get("ring")
    return {
        "id": user.get("id"),
        "name": user.get("name") or "",
        "email": user.get("email") or "",
        "plan_id": user.get("plan_id"),
        "store_id": user.get("store_id"),
        "status": user.get("status") or "",
        "current_credit": user.get("currentCredit") or 0,
        "delivery_days": [
            {
                "id": d.get("id"),
                "day": d.get("day") or "",
                "time_start": d.get("time_start") or "",
                "time_end": d.get("time_end") or "",
            }
            for d in user.get("deliveryDays") or []
        ],
        "addresses": [
            {
                "id": a.get("id"),
                "is_active": bool(a.get("isActive")),
                "street": a.get("street") or "",
                "city": a.get("city") or "",
                "region": a.get("region") or "",
                "postcode": a.get("postcode") or "",
            }
            for a in user.get("addresses") or []
        ],
        "ring": (
            {
                "id": ring.get("id"),
                "name": ring.get("name") or "",
                "is_local": bool(ring.get("is_local")),
            }
            if ring
            else None
        ),
        "profiles": [
            {
                "id": p.get("id"),
                "name": _full_name(p.get("firstname"), p.get("lastname")),
            }
            for p in user.get("profiles") or []
        ],
    }


def _parse_int(value: Any) -> int | None:
    try:
        return int(str(value).strip().split(".")[0])
    except (TypeError, ValueError):
        return None


def _format_invoice_item(item: dict[str, Any]) -> dict[str, Any]:
    product = item.get("product") or {}
    price = item.get("price") or {}
    review = product.get("review")
    return {
        "name": product.get("name") or "Unknown",
        "description": product.get("short_description") or "",
        "chef": _full_name(product.get("chef_firstname"), product.get("chef_lastname")),
        "price": price.get("price") or 0,
        "price_incl_tax": price.get("priceIncludingTax") or 0,
        "original_price": price.get("originalPrice") or 0,
        "calories": _parse_int(product.get("calories")),
        "meat_type": product.get("meat_type") or "",
        "quantity": item.get("qty") or 0,
        "rating": product.get("user_rating"),
        "review": (
            {"rating": review.get("rating"), "text": review.get("review") or ""}
            if review
            else None
        ),
    }


def format_invoice(invoice: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": invoice.get("id"),
        "date": invoice.get("date") or "",
        "subtotal": invoice.get("subtotal") or 0,
        "delivery_fee": invoice.get("deliveryFee") or 0,
        "express_fee": invoice.get("expressFee") or 0,
        "taxes": invoice.get("taxes") or 0,
        "tip": invoice.get("tip") or 0,
        "discount": invoice.get("discount") or 0,
        "credit_applied": invoice.get("chargedCredit") or 0,
        "total": invoice.get("total") or 0,
        "payment": invoice.get("ccNumber") or "",
        "orders": [
            {
                "delivery_date": order.get("delivery_date") or "",
                "display_date": order.get("display_date") or "",
                "delivery_window": f"{order.get('time_start') or ''} – {order.get('time_end') or ''}",
                "items": [_format_invoice_item(i) for i in order.get("items") or []],
            }
            for order in invoice.get("orders") or []
        ],
    }


def format_price_breakdown(menu_date: str, breakdown: dict[str, Any] | None) -> dict[str, Any]:
    b = breakdown or {}
    return {
        "date": menu_date,
        "qty_plan_meals": b.get("qtyPlanMeals") or 0,
        "qty_items": b.get("qtyItems") or 0,
        "subtotal": b.get("subTotalOrder") or 0,
        "total_plan_price": b.get("totalPlanPrice") or 0,
        "total_extra_meals": b.get("totalExtraMeals") or 0,
        "taxes": b.get("totalTaxes") or 0,
        "delivery_fee": b.get("totalDeliveryFee") or 0,
        "express_fee": b.get("totalExpressFee") or 0,
        "total_fee": b.get("totalFee") or 0,
        "promo_discount": b.get("totalPromoDiscount") or 0,
        "total": b.get("totalOrder") or 0,
        "available_credits": b.get("availableCredits") or 0,
        "total_after_credits": b.get("totalOrderWithCreditsSubtracted") or 0,
    }

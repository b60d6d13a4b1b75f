"""Tests for response normalization helpers."""

from datetime import date

import pytest

from cookunity_mcp.backend.normalize import (
    delivery_status,
    format_cart,
    format_cart_line,
    format_delivery,
    format_invoice,
    format_meal,
    format_user,
    meal_matches,
    next_delivery_date,
    paginate,
)

from conftest import make_cart_entry, make_day, make_meal


@pytest.mark.parametrize(
    ("can_edit", "skip", "is_paused", "expected"),
    [
        (False, True, True, "locked"),
        (False, False, False, "locked"),
        (True, True, True, "skipped"),
        (True, False, True, "paused"),
        (True, False, False, "active"),
    ],
)
def test_delivery_status_precedence(can_edit: bool, skip: bool, is_paused: bool, expected: str) -> None:
    assert delivery_status(can_edit, skip, is_paused) == expected


@pytest.mark.parametrize(
    ("today", "expected"),
    [
        (date(2026, 10, 19), "2026-10-26"),  # Monday → following Monday
        (date(2026, 10, 18), "2026-10-19"),  # Sunday
        (date(2026, 10, 20), "2026-10-26"),  # Tuesday
    ],
)
def test_next_delivery_date(today: date, expected: str) -> None:
    assert next_delivery_date(today) == expected


def test_paginate_middle_and_last_page() -> None:
    items = list(range(45))

    middle = paginate(items, offset=20, limit=20)
    last = paginate(items, offset=40, limit=20)
    beyond = paginate(items, offset=60, limit=20)

    assert middle == {
        "total": 45, "count": 20, "offset": 20, "has_more": True, "next_offset": 40,
        "items": list(range(20, 40)),
    }
    assert last["count"] == 5 and last["has_more"] is False and "next_offset" not in last
    assert beyond["count"] == 0 and beyond["has_more"] is False


def test_cart_line_defaults_for_missing_product() -> None:
    assert format_cart_line(None, None) == {
        "name": "Unknown",
        "inventory_id": "",
        "quantity": 0,
        "price": 0,
        "chef": "",
    }


def test_cart_line_trims_chef_name() -> None:
    line = format_cart_line({"chef_firstname": "Ana", "chef_lastname": None}, 2)

    assert line["chef"] == "Ana"


def test_format_delivery_prefers_display_date_and_sums_quantities() -> None:
    day = make_day(
        "2026-10-18",
        display_date="2026-10-19",
        cart=[make_cart_entry("ii-1", 2), make_cart_entry("ii-2", 3)],
        recommendation={"meals": [{"name": "Pick", "inventoryId": "ii-9"}, {"name": "Pick 2", "qty": 2}]},
    )

    delivery = format_delivery(day)

    assert delivery["date"] == "2026-10-19"
    assert delivery["cart_count"] == 5
    assert delivery["order"] is None
    assert [r["quantity"] for r in delivery["recommendation_items"]] == [1, 2]
    assert delivery["recommendation_count"] == 3
    assert delivery["recommendation_items"][0]["price"] == 0


def test_format_delivery_with_missing_arrays() -> None:
    delivery = format_delivery({"date": "2026-10-19", "canEdit": True, "cart": None})

    assert delivery["cart_items"] == []
    assert delivery["cart_count"] == 0
    assert delivery["recommendation_items"] == []
    assert delivery["cutoff"] is None
    assert delivery["status"] == "active"


def test_format_delivery_order_uses_item_price() -> None:
    day = make_day(
        "2026-10-19",
        can_edit=False,
        order={
            "id": 555,
            "grandTotal": 71.9,
            "orderStatus": {"state": "processing", "status": "confirmed"},
            "items": [
                {"qty": 2, "price": {"price": 11.5}, "product": {"name": "Salmon", "inventoryId": "ii-1"}},
                {"qty": None, "price": None, "product": None},
            ],
        },
    )

    order = format_delivery(day)["order"]

    assert order["status"] == "confirmed"
    assert order["items"][0]["price"] == 11.5
    assert order["items"][1] == {"name": "Unknown", "inventory_id": "", "quantity": 0, "price": 0, "chef": ""}
    assert order["item_count"] == 2


def test_format_cart_totals() -> None:
    cart = format_cart(make_day("2026-10-19", cart=[
        make_cart_entry("ii-1", 2, price=10.1),
        make_cart_entry("ii-2", 1, price=12.35),
    ]))

    assert cart["total_items"] == 3
    assert cart["total_price"] == 32.55
    assert cart["is_skipped"] is False


def test_format_meal_stock_and_chef() -> None:
    meal = format_meal(make_meal(1, "Bowl", stock=0, chef=("Ana", "")))

    assert meal["in_stock"] is False
    assert meal["chef"] == "Ana"
    assert meal["inventory_id"] == "ii-1"


def test_meal_matches_category_and_description() -> None:
    meal = make_meal(1, "Plain Name", category="Protein+")

    assert meal_matches(meal, "protein")
    assert meal_matches(meal, "SEASONAL")
    assert not meal_matches(meal, "tofu")


def test_meal_matches_with_missing_search_fields() -> None:
    meal = {"name": "Soup", "searchBy": None, "category": None}

    assert meal_matches(meal, "soup")
    assert not meal_matches(meal, "beef")


def test_format_user_with_ring_and_profiles() -> None:
    user = format_user({
        "id": 1,
        "ring": {"id": 3, "name": "NYC", "is_local": 1},
        "profiles": [{"id": 9, "firstname": "Pat", "lastname": None}],
        "addresses": [{"id": 2, "isActive": True, "city": "Brooklyn"}],
    })

    assert user["ring"] == {"id": 3, "name": "NYC", "is_local": True}
    assert user["profiles"] == [{"id": 9, "name": "Pat"}]
    assert user["addresses"][0]["street"] == ""
    assert user["delivery_days"] == []
    assert user["current_credit"] == 0


def test_format_invoice_items_and_reviews() -> None:
    invoice = format_invoice({
        "id": 77,
        "date": "2026-02-01",
        "total": 84.2,
        "orders": [
            {
                "delivery_date": "2026-02-02",
                "time_start": "09:00",
                "time_end": "17:00",
                "items": [
                    {
                        "qty": 1,
                        "price": {"price": 11.99},
                        "product": {
                            "name": "Salmon",
                            "calories": "540.0",
                            "user_rating": 5,
                            "review": {"rating": 5, "review": "Great"},
                        },
                    },
                    {"qty": 2, "product": {"calories": "n/a"}},
                ],
            }
        ],
    })

    first, second = invoice["orders"][0]["items"]
    assert first["calories"] == 540
    assert first["review"] == {"rating": 5, "text": "Great"}
    assert second["name"] == "Unknown"
    assert second["calories"] is None
    assert second["review"] is None
    assert invoice["orders"][0]["delivery_window"].startswith("09:00")


def test_search_respects_diet_tags() -> None:
    meal = make_meal(1, "Grilled Salmon Bowl", diet_tags=["pescatarian"])

    assert meal_matches(meal, "salmon")
    assert meal_matches(meal, "Pescatarian")
    assert not meal_matches(meal, "vegan")

"""Form validation and coercion tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from logic.passwords import hash_password, verify_password
from logic.validation import (
    ClothingForm,
    OrderForm,
    ProfileUpdateForm,
    RegistrationForm,
    parse_price,
)
from models.clothing_item import ClothingItem
from models.pending_order import PendingOrder


@pytest.mark.parametrize(
    "raw, expected",
    [("12,50", 12.5), ("12.5", 12.5), ("7", 7.0), ("", None), ("  ", None), (None, None), (3, 3.0), (",5", 0.5)],
)
def test_parse_price_accepts_comma_or_dot(raw, expected) -> None:
    assert parse_price(raw) == expected


@pytest.mark.parametrize("raw", ["12,5,0", "abc", "-3", ",", -1, True, float("nan"), float("inf")])
def test_parse_price_rejects_garbage(raw) -> None:
    with pytest.raises(ValueError):
        parse_price(raw)


def test_clothing_form_builds_item() -> None:
    form = ClothingForm(name=" Pull ", category="haut", color="Gris", season="", price="39,99")
    item = form.to_item()

    assert isinstance(item, ClothingItem)
    assert item.name == "Pull"
    assert item.season is None
    assert item.price == pytest.approx(39.99)
    assert item.id == ""


def test_clothing_form_requires_name_category_color() -> None:
    with pytest.raises(ValidationError) as excinfo:
        ClothingForm(name="", category="", color="")
    assert {err["loc"][0] for err in excinfo.value.errors()} == {"name", "category", "color"}


def test_order_form_coerces_line_prices_to_zero() -> None:
    order = OrderForm(
        name="Commande",
        expected_date="",
        items=[{"name": "Jupe", "category": "bas", "color": "Noir", "price": ""}],
    ).to_order()

    assert isinstance(order, PendingOrder)
    assert order.expected_date is None
    assert order.items[0].price == 0.0
    assert order.status == "pending"


def test_order_form_rejects_bad_date() -> None:
    with pytest.raises(ValidationError):
        OrderForm(name="Commande", expected_date="demain", items=[{"name": "a", "category": "b", "color": "c"}])


def test_registration_form_rules() -> None:
    form = RegistrationForm(username=" bob ", email="b@x.com", password="abcdef", confirm_password="abcdef", name="")
    assert form.username == "bob"
    assert form.name is None

    with pytest.raises(ValidationError):
        RegistrationForm(username="bob", email="not-an-email", password="abcdef")
    with pytest.raises(ValidationError):
        RegistrationForm(username="bob", email="b@x.com", password="abcdef", color="blue")


def test_profile_update_form_drops_blank_fields() -> None:
    form = ProfileUpdateForm(username="", name="Bob", password="   ")
    assert form.changes() == {"name": "Bob"}


def test_model_rejects_negative_price() -> None:
    with pytest.raises(ValueError):
        ClothingItem(name="Pull", category="haut", color="Gris", price=-1)


@pytest.mark.parametrize("price", [float("nan"), float("inf"), "nan"])
def test_model_rejects_non_finite_price(price) -> None:
    with pytest.raises(ValueError):
        ClothingItem(name="Pull", category="haut", color="Gris", price=price)


def test_password_hash_round_trip() -> None:
    encoded = hash_password("abcdef", iterations=1_000)
    assert encoded != hash_password("abcdef", iterations=1_000)
    assert verify_password("abcdef", encoded)
    assert not verify_password("abcdeF", encoded)
    assert not verify_password("abcdef", "plaintext")
    assert not verify_password("abcdef", None)

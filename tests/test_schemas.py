import pytest
from pydantic import ValidationError

from storefront.schemas import CheckoutRequest, MenuItemCreate, normalize_phone


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("9876543210", "9876543210"),
        ("+91 98765 43210", "9876543210"),
        ("098765-43210", "9876543210"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize("raw", ["12345", "5876543210", "+1 415 555 0100"])
def test_normalize_phone_rejects_non_mobile_numbers(raw):
    with pytest.raises(ValueError):
        normalize_phone(raw)


def _checkout(**overrides):
    data = {
        "cart_id": "cart-1",
        "customer_name": "Ravi Kumar",
        "phone": "9876543210",
        "delivery_address": "Plot 7, Jubilee Hills",
        "city": "Hyderabad",
        "pincode": "500033",
    }
    data.update(overrides)
    return CheckoutRequest(**data)


def test_checkout_request_defaults_to_cash_on_delivery():
    request = _checkout(email="  ")
    assert request.payment_method.value == "cod"
    assert request.email is None


@pytest.mark.parametrize(
    "field, value",
    [("pincode", "5000"), ("email", "not-an-email"), ("phone", "123"), ("payment_method", "card")],
)
def test_checkout_request_validation(field, value):
    with pytest.raises(ValidationError):
        _checkout(**{field: value})


def test_menu_item_rejects_unknown_category():
    with pytest.raises(ValidationError):
        MenuItemCreate(name="Pizza", price=300, category="italian")

import os
import tempfile
import uuid

import pytest

# Settings are read once at import time, so the environment must be in
# place before anything under storefront is imported.
_TEST_ROOT = tempfile.mkdtemp(prefix="storefront-tests-")

os.environ.update({
    "ENV_MODE": "development",
    "DATABASE_URL": f"sqlite+aiosqlite:///{_TEST_ROOT}/storefront.db",
    "REDIS_URL": "redis://localhost:6390/0",
    "CELERY_ALWAYS_EAGER": "true",
    "MOCK_FAILURE_RATE": "0",
    "MOCK_MIN_LATENCY": "0",
    "MOCK_MAX_LATENCY": "0",
    "CATALOG_SOURCE": "static",
    "ADMIN_USER_IDS": "admin-1",
    "DATA_DIRECTORY": os.path.join(_TEST_ROOT, "data"),
    "CART_STORAGE_DIRECTORY": os.path.join(_TEST_ROOT, "carts"),
    "EXCEL_LOCK_TIMEOUT": "5",
})

from fastapi.testclient import TestClient  # noqa: E402

from storefront.main import app  # noqa: E402


ADMIN_HEADERS = {"x-user-id": "admin-1", "x-user-email": "admin@example.com"}

DELIVERY_AREAS = [
    {"pincode": "500001", "area_name": "Abids", "city": "Hyderabad",
     "delivery_fee": 30.0, "estimated_delivery_minutes": 40},
    {"pincode": "522001", "area_name": "Brodipet", "city": "Guntur",
     "delivery_fee": 40.0, "estimated_delivery_minutes": 50},
    {"pincode": "500099", "area_name": "Old Airport", "city": "Hyderabad",
     "delivery_fee": 30.0, "estimated_delivery_minutes": 40, "is_serviceable": False},
]


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        for area in DELIVERY_AREAS:
            response = test_client.post(
                "/api/admin/delivery-areas", json=area, headers=ADMIN_HEADERS
            )
            assert response.status_code in (201, 409), response.text
        yield test_client


@pytest.fixture
def admin_headers():
    return dict(ADMIN_HEADERS)


@pytest.fixture
def user_headers():
    user_id = f"user-{uuid.uuid4().hex[:8]}"
    return {"x-user-id": user_id, "x-user-email": f"{user_id}@example.com"}


@pytest.fixture
def cart_id():
    return f"cart-{uuid.uuid4().hex[:12]}"


@pytest.fixture
def checkout_payload(cart_id):
    return {
        "cart_id": cart_id,
        "customer_name": "Lakshmi Devi",
        "phone": "+91 98765 43210",
        "email": "lakshmi@example.com",
        "delivery_address": "12-3-45, Temple Street",
        "city": "Hyderabad",
        "pincode": "500001",
        "payment_method": "cod",
    }


@pytest.fixture
def place_order(client, cart_id, checkout_payload):
    """Fill a cart with two biryanis and a dosa, then check it out."""
    def _place(headers=None, **overrides):
        client.post(f"/api/cart/{cart_id}/items", json={"dish_id": "1"})
        client.post(f"/api/cart/{cart_id}/items", json={"dish_id": "1"})
        client.post(f"/api/cart/{cart_id}/items", json={"dish_id": "2"})
        response = client.post(
            "/api/checkout", json={**checkout_payload, **overrides}, headers=headers or {}
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _place

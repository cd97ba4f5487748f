from sqlalchemy import select

from storefront.data.dishes import DISHES
from storefront.database import get_sync_engine
from storefront.main import app
from storefront.models import Order
from storefront.services.cart_store import CartStorageError, CartStore
from storefront.services.catalog import StaticCatalogService, get_catalog_service
from storefront.services.excel_manager import ExcelManager


def _without_dish(dish_id):
    """Catalog as it looks after a dish is taken off the menu."""
    return StaticCatalogService(dishes=[raw for raw in DISHES if raw["id"] != dish_id])


def _exported_flag(order_id):
    with get_sync_engine().connect() as conn:
        return conn.execute(
            select(Order.exported_to_excel).where(Order.id == order_id)
        ).scalar_one()


def test_root_and_health(client):
    root = client.get("/")
    assert root.status_code == 200
    assert root.json()["menu"] == "/api/menu"

    health = client.get("/health")
    assert health.status_code == 200
    data = health.json()
    assert data["database"] == "healthy"
    assert data["catalog_service"] == "healthy"
    assert data["notification_service"] == "healthy"
    assert data["status"] in ("operational", "degraded")


# =============================================================================
# MENU
# =============================================================================

def test_menu_lists_all_dishes(client):
    response = client.get("/api/menu")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 8
    assert data["dishes"][0]["name"] == "Special Hyderabadi Biryani"


def test_menu_filters_and_sort(client):
    response = client.get(
        "/api/menu", params={"type": "veg", "category": "tiffins", "sort": "price_asc"}
    )

    assert [dish["id"] for dish in response.json()["dishes"]] == ["7", "2"]


def test_menu_rejects_unknown_sort(client):
    assert client.get("/api/menu", params={"sort": "spiciest"}).status_code == 422


def test_menu_categories_and_dish_detail(client):
    categories = client.get("/api/menu/categories").json()
    assert len(categories) == 5
    assert categories[2]["local_name"] == "ఊరగాయలు"

    dish = client.get("/api/menu/4").json()
    assert dish["name"] == "Avakaya Mango Pickle"
    assert dish["nutrition"]["calories"] is not None

    assert client.get("/api/menu/404").status_code == 404


# =============================================================================
# CART
# =============================================================================

def test_cart_lifecycle(client, cart_id):
    assert client.get(f"/api/cart/{cart_id}").json()["total_items"] == 0

    added = client.post(f"/api/cart/{cart_id}/items", json={"dish_id": "1"})
    assert added.status_code == 200
    assert added.json()["message"] == "Special Hyderabadi Biryani added successfully"

    again = client.post(f"/api/cart/{cart_id}/items", json={"dish_id": "1"}).json()
    assert again["message"] == "Special Hyderabadi Biryani quantity increased"
    assert again["total_items"] == 2
    assert again["total_price"] == 500.0

    client.post(f"/api/cart/{cart_id}/items", json={"dish_id": "7"})
    updated = client.patch(f"/api/cart/{cart_id}/items/7", json={"quantity": 4}).json()
    assert updated["total_items"] == 6
    assert updated["total_price"] == 740.0

    removed = client.patch(f"/api/cart/{cart_id}/items/1", json={"quantity": 0}).json()
    assert [line["dish_id"] for line in removed["items"]] == ["7"]

    cleared = client.delete(f"/api/cart/{cart_id}").json()
    assert cleared["items"] == []
    assert cleared["total_price"] == 0


def test_cart_errors(client, cart_id):
    assert client.post(f"/api/cart/{cart_id}/items", json={"dish_id": "99"}).status_code == 404
    assert client.delete(f"/api/cart/{cart_id}/items/1").status_code == 404
    assert client.patch(f"/api/cart/{cart_id}/items/1", json={"quantity": 2}).status_code == 404
    assert client.get("/api/cart/bad.id").status_code == 400


# =============================================================================
# CHECKOUT
# =============================================================================

def test_checkout_places_order_and_clears_cart(client, cart_id, place_order):
    order = place_order()

    assert order["success"] is True
    assert order["subtotal"] == 580.0
    assert order["delivery_fee"] == 30.0
    assert order["packaging_fee"] == 20.0
    assert order["total_amount"] == 630.0
    assert order["payment_method"] == "cod"
    assert order["estimated_delivery_time"]

    assert client.get(f"/api/cart/{cart_id}").json()["items"] == []

    detail = client.get(f"/api/orders/{order['order_id']}").json()
    assert detail["status"] == "placed"
    assert detail["phone"] == "9876543210"
    assert detail["item_count"] == 3
    assert detail["items"][0] == {
        "dish_id": "1",
        "name": "Special Hyderabadi Biryani",
        "price": 250.0,
        "quantity": 2,
        "line_total": 500.0,
    }
    assert detail["tracking"]["stage_index"] == 0


def test_checkout_uses_area_delivery_fee(client, place_order):
    order = place_order(pincode="522001", city="Guntur")
    assert order["delivery_fee"] == 40.0
    assert order["total_amount"] == 640.0


def test_checkout_empty_cart(client, checkout_payload):
    response = client.post("/api/checkout", json=checkout_payload)

    assert response.status_code == 400
    assert response.json()["detail"] == "Your cart is empty"


def test_checkout_upi_is_not_available(client, cart_id, checkout_payload):
    client.post(f"/api/cart/{cart_id}/items", json={"dish_id": "2"})
    response = client.post("/api/checkout", json={**checkout_payload, "payment_method": "upi"})

    assert response.status_code == 400
    assert "coming soon" in response.json()["detail"]
    assert client.get(f"/api/cart/{cart_id}").json()["total_items"] == 1


def test_checkout_unserviceable_pincodes(client, cart_id, checkout_payload):
    client.post(f"/api/cart/{cart_id}/items", json={"dish_id": "2"})

    unknown = client.post("/api/checkout", json={**checkout_payload, "pincode": "110001"})
    assert unknown.status_code == 400
    assert "110001" in unknown.json()["detail"]

    inactive = client.post("/api/checkout", json={**checkout_payload, "pincode": "500099"})
    assert inactive.status_code == 400
    assert "temporarily unavailable" in inactive.json()["detail"]

    assert client.get(f"/api/cart/{cart_id}").json()["total_items"] == 1


def test_checkout_validates_contact_details(client, checkout_payload):
    response = client.post("/api/checkout", json={**checkout_payload, "phone": "12345"})
    assert response.status_code == 422


def test_checkout_refuses_dish_gone_from_menu(client, cart_id, checkout_payload):
    client.post(f"/api/cart/{cart_id}/items", json={"dish_id": "1"})
    client.post(f"/api/cart/{cart_id}/items", json={"dish_id": "2"})

    app.dependency_overrides[get_catalog_service] = lambda: _without_dish("1")
    try:
        response = client.post("/api/checkout", json=checkout_payload)
    finally:
        app.dependency_overrides.pop(get_catalog_service, None)

    assert response.status_code == 409
    assert response.json()["detail"] == (
        "Special Hyderabadi Biryani is no longer available. Please remove it from your cart."
    )

    cart = client.get(f"/api/cart/{cart_id}").json()
    assert [item["dish_id"] for item in cart["items"]] == ["1", "2"]


def test_checkout_succeeds_when_cart_cannot_be_cleared(client, cart_id, place_order, monkeypatch):
    def busy(self):
        raise CartStorageError(f"Cart {self.cart_id} is busy, try again")

    monkeypatch.setattr(CartStore, "clear", busy)

    order = place_order()

    assert client.get(f"/api/orders/{order['order_id']}").status_code == 200
    assert client.get(f"/api/cart/{cart_id}").json()["total_items"] == 3


def test_checkout_flags_order_once_exported(client, place_order):
    order_id = place_order()["order_id"]

    rows = [row for row in ExcelManager.get_all_orders() if row["order_id"] == order_id]
    assert len(rows) == 1
    assert rows[0]["total_amount"] == 630.0
    assert _exported_flag(order_id) is True


def test_failed_export_is_retried_and_not_flagged(client, place_order, monkeypatch):
    attempts = []

    def broken_export(order_data):
        attempts.append(order_data["order_id"])
        raise OSError("disk full")

    monkeypatch.setattr(ExcelManager, "export_order", broken_export)

    order_id = place_order()["order_id"]

    assert len(attempts) > 1
    assert set(attempts) == {order_id}
    assert _exported_flag(order_id) is False


def test_unknown_order_is_404(client):
    assert client.get("/api/orders/does-not-exist").status_code == 404


# =============================================================================
# SIGNED-IN CUSTOMER
# =============================================================================

def test_order_history_requires_sign_in(client):
    response = client.get("/api/orders")
    assert response.status_code == 401


def test_order_history_lists_own_orders(client, user_headers, place_order):
    first = place_order(headers=user_headers)
    second = place_order(headers=user_headers)
    place_order()

    history = client.get("/api/orders", headers=user_headers).json()

    assert history["total"] == 2
    assert [o["id"] for o in history["orders"]] == [second["order_id"], first["order_id"]]
    assert all(o["item_count"] == 3 for o in history["orders"])


def test_favorites_toggle_and_add_to_cart(client, user_headers, cart_id):
    assert client.get("/api/favorites").status_code == 401

    added = client.post("/api/favorites/3/toggle", headers=user_headers).json()
    assert added["is_favorite"] is True
    client.post("/api/favorites/5/toggle", headers=user_headers)

    favorites = client.get("/api/favorites", headers=user_headers).json()
    assert favorites["dish_ids"] == ["3", "5"]
    assert [dish["name"] for dish in favorites["dishes"]] == ["Andhra Chicken Curry", "Bellam Ariselu"]

    cart = client.post(
        "/api/favorites/add-to-cart", json={"cart_id": cart_id}, headers=user_headers
    ).json()
    assert cart["total_items"] == 2
    assert cart["total_price"] == 300.0
    assert cart["message"] == "Added 2 items to cart"

    removed = client.post("/api/favorites/3/toggle", headers=user_headers).json()
    assert removed["is_favorite"] is False
    assert client.get("/api/favorites", headers=user_headers).json()["dish_ids"] == ["5"]

    assert client.post("/api/favorites/99/toggle", headers=user_headers).status_code == 404


def test_favorite_can_be_removed_after_dish_leaves_menu(client, user_headers):
    client.post("/api/favorites/3/toggle", headers=user_headers)

    app.dependency_overrides[get_catalog_service] = lambda: _without_dish("3")
    try:
        removed = client.post("/api/favorites/3/toggle", headers=user_headers)
        added_again = client.post("/api/favorites/3/toggle", headers=user_headers)
    finally:
        app.dependency_overrides.pop(get_catalog_service, None)

    assert removed.status_code == 200
    assert removed.json()["is_favorite"] is False
    assert added_again.status_code == 404
    assert client.get("/api/favorites", headers=user_headers).json()["dish_ids"] == []


def test_profile_created_on_first_read_and_updated(client, user_headers):
    profile = client.get("/api/profile", headers=user_headers).json()
    assert profile["id"] == user_headers["x-user-id"]
    assert profile["email"] == user_headers["x-user-email"]
    assert profile["name"] is None

    updated = client.put(
        "/api/profile",
        json={"name": "Sita", "phone": "+91 91234 56789", "pincode": "500001"},
        headers=user_headers,
    ).json()
    assert updated["name"] == "Sita"
    assert updated["phone"] == "9123456789"

    bad = client.put("/api/profile", json={"pincode": "5000"}, headers=user_headers)
    assert bad.status_code == 422

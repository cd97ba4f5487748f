import asyncio
import json

import pytest
from starlette.websockets import WebSocketDisconnect

import storefront.api.orders as orders_api
from storefront.database import async_session_maker
from storefront.main import app
from storefront.services.excel_manager import ExcelManager
from storefront.services.tracking import get_order_broker


def test_admin_routes_require_admin_role(client, user_headers):
    assert client.get("/api/admin/stats").status_code == 401
    assert client.get("/api/admin/stats", headers=user_headers).status_code == 403


# =============================================================================
# ORDERS
# =============================================================================

def test_status_change_and_listing(client, admin_headers, place_order):
    order_id = place_order()["order_id"]

    response = client.patch(
        f"/api/admin/orders/{order_id}/status",
        json={"status": "out_for_delivery"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "out_for_delivery"
    assert response.json()["tracking"]["progress_percent"] == 66.7

    listed = client.get(
        "/api/admin/orders", params={"status": "out_for_delivery"}, headers=admin_headers
    ).json()
    assert order_id in [o["id"] for o in listed["orders"]]
    assert all(o["status"] == "out_for_delivery" for o in listed["orders"])


def test_status_change_validation(client, admin_headers, place_order):
    order_id = place_order()["order_id"]

    bad = client.patch(
        f"/api/admin/orders/{order_id}/status", json={"status": "teleported"}, headers=admin_headers
    )
    assert bad.status_code == 422

    missing = client.patch(
        "/api/admin/orders/nope/status", json={"status": "delivered"}, headers=admin_headers
    )
    assert missing.status_code == 404

    invalid_filter = client.get("/api/admin/orders", params={"status": "lost"}, headers=admin_headers)
    assert invalid_filter.status_code == 400


def test_delete_and_export_order(client, admin_headers, place_order):
    order_id = place_order()["order_id"]

    exported = client.post(f"/api/admin/orders/{order_id}/export", headers=admin_headers)
    assert exported.status_code == 200

    deleted = client.delete(f"/api/admin/orders/{order_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/orders/{order_id}").status_code == 404
    assert client.delete(f"/api/admin/orders/{order_id}", headers=admin_headers).status_code == 404


def test_export_again_replaces_workbook_row(client, admin_headers, place_order):
    order_id = place_order()["order_id"]
    client.patch(
        f"/api/admin/orders/{order_id}/status", json={"status": "delivered"}, headers=admin_headers
    )

    assert client.post(f"/api/admin/orders/{order_id}/export", headers=admin_headers).status_code == 200
    assert client.post(f"/api/admin/orders/{order_id}/export", headers=admin_headers).status_code == 200

    rows = [row for row in ExcelManager.get_all_orders() if row["order_id"] == order_id]
    assert len(rows) == 1
    assert rows[0]["order_status"] == "delivered"


def test_stats_are_consistent(client, admin_headers, place_order):
    order_id = place_order()["order_id"]
    client.patch(
        f"/api/admin/orders/{order_id}/status", json={"status": "delivered"}, headers=admin_headers
    )

    stats = client.get("/api/admin/stats", headers=admin_headers).json()

    assert stats["total_orders"] >= 1
    assert stats["completed_orders"] >= 1
    assert sum(stats["orders_by_status"].values()) == stats["total_orders"]
    assert stats["pending_orders"] == stats["total_orders"] - (
        stats["completed_orders"] + stats["cancelled_orders"]
    )
    assert stats["avg_order_value"] == pytest.approx(
        stats["total_revenue"] / stats["total_orders"], abs=0.01
    )


# =============================================================================
# MENU ITEMS
# =============================================================================

def test_menu_item_crud(client, admin_headers):
    created = client.post(
        "/api/admin/menu-items",
        json={
            "name": "Gongura Pachadi",
            "price": 140.0,
            "category": "pickles",
            "region": "andhra",
            "ingredients": ["Gongura", "Red Chilli"],
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    item = created.json()
    assert item["ingredients"] == ["Gongura", "Red Chilli"]
    assert item["is_available"] is True

    updated = client.patch(
        f"/api/admin/menu-items/{item['id']}",
        json={"price": 160.0, "is_available": False},
        headers=admin_headers,
    ).json()
    assert updated["price"] == 160.0
    assert updated["is_available"] is False

    listed = client.get("/api/admin/menu-items", headers=admin_headers).json()
    assert item["id"] in [row["id"] for row in listed]

    assert client.delete(f"/api/admin/menu-items/{item['id']}", headers=admin_headers).status_code == 200
    assert client.patch(
        f"/api/admin/menu-items/{item['id']}", json={"price": 1.0}, headers=admin_headers
    ).status_code == 404


def test_menu_item_validation(client, admin_headers):
    response = client.post(
        "/api/admin/menu-items",
        json={"name": "Pizza", "price": 300.0, "category": "italian"},
        headers=admin_headers,
    )
    assert response.status_code == 422


# =============================================================================
# DELIVERY AREAS
# =============================================================================

def test_delivery_area_crud(client, admin_headers):
    created = client.post(
        "/api/admin/delivery-areas",
        json={"pincode": "530001", "area_name": "Dwaraka Nagar", "city": "Visakhapatnam",
              "delivery_fee": 50.0, "estimated_delivery_minutes": 60},
        headers=admin_headers,
    )
    assert created.status_code == 201
    area = created.json()

    duplicate = client.post(
        "/api/admin/delivery-areas",
        json={"pincode": "530001", "area_name": "Again", "city": "Visakhapatnam"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409

    clash = client.patch(
        f"/api/admin/delivery-areas/{area['id']}", json={"pincode": "500001"}, headers=admin_headers
    )
    assert clash.status_code == 409

    updated = client.patch(
        f"/api/admin/delivery-areas/{area['id']}", json={"is_serviceable": False}, headers=admin_headers
    ).json()
    assert updated["is_serviceable"] is False
    assert client.get("/api/delivery-areas/530001").json()["is_serviceable"] is False

    listed = client.get("/api/admin/delivery-areas", headers=admin_headers).json()
    cities = [row["city"] for row in listed]
    assert cities == sorted(cities)

    assert client.delete(f"/api/admin/delivery-areas/{area['id']}", headers=admin_headers).status_code == 200
    assert client.get("/api/delivery-areas/530001").json()["is_serviceable"] is False
    assert client.delete(f"/api/admin/delivery-areas/{area['id']}", headers=admin_headers).status_code == 404


# =============================================================================
# USERS
# =============================================================================

def test_users_view(client, admin_headers, user_headers, place_order):
    client.get("/api/profile", headers=user_headers)
    client.get("/api/profile", headers=admin_headers)
    place_order(headers=user_headers)

    users = {u["id"]: u for u in client.get("/api/admin/users", headers=admin_headers).json()}

    customer = users[user_headers["x-user-id"]]
    assert customer["is_admin"] is False
    assert customer["order_count"] == 1
    assert users["admin-1"]["is_admin"] is True


# =============================================================================
# LIVE TRACKING
# =============================================================================

def test_websocket_streams_status_changes(client, admin_headers, place_order):
    order_id = place_order()["order_id"]

    with client.websocket_connect(f"/ws/orders/{order_id}") as websocket:
        snapshot = websocket.receive_json()
        assert snapshot["type"] == "order_update"
        assert snapshot["order"]["status"] == "placed"
        assert snapshot["changed"] is False

        client.patch(
            f"/api/admin/orders/{order_id}/status", json={"status": "preparing"}, headers=admin_headers
        )
        update = websocket.receive_json()

        assert update["changed"] is True
        assert update["previous_status"] == "placed"
        assert update["order"]["status"] == "preparing"
        assert update["tracking"]["stage_index"] == 1
        assert update["notification"]["title"] == "Preparing"


def test_websocket_unknown_order_closes(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/orders/unknown-order") as websocket:
            websocket.receive_json()

    assert exc_info.value.code == 4404


@pytest.fixture
def order_id(place_order):
    return place_order()["order_id"]


async def _track(order_id, disconnect_after):
    """Drive the tracking socket over raw ASGI; leave after N updates."""
    incoming = asyncio.Queue()
    await incoming.put({"type": "websocket.connect"})
    sent = []

    async def receive():
        return await incoming.get()

    async def send(message):
        sent.append(message)
        if message["type"] == "websocket.send" and len(_updates(sent)) == disconnect_after:
            await incoming.put({"type": "websocket.disconnect", "code": 1001})

    scope = {
        "type": "websocket",
        "asgi": {"version": "3.0"},
        "scheme": "ws",
        "path": f"/ws/orders/{order_id}",
        "raw_path": f"/ws/orders/{order_id}".encode(),
        "query_string": b"",
        "root_path": "",
        "headers": [(b"host", b"testserver")],
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
        "subprotocols": [],
    }
    await asyncio.wait_for(app(scope, receive, send), timeout=5)
    return sent


def _updates(sent):
    return [json.loads(m["text"]) for m in sent if m["type"] == "websocket.send"]


@pytest.mark.asyncio
async def test_websocket_client_leaving_releases_subscription(order_id):
    sent = await _track(order_id, disconnect_after=1)

    assert [m["type"] for m in sent] == ["websocket.accept", "websocket.send"]
    assert get_order_broker().subscriber_count(order_id) == 0


@pytest.mark.asyncio
async def test_websocket_sees_update_published_while_loading_snapshot(order_id, monkeypatch):
    def session_after_status_change():
        get_order_broker().publish(order_id, {"status": "preparing"})
        return async_session_maker()

    monkeypatch.setattr(orders_api, "async_session_maker", session_after_status_change)

    snapshot, update = _updates(await _track(order_id, disconnect_after=2))

    assert snapshot["order"]["status"] == "placed"
    assert update["order"]["status"] == "preparing"
    assert update["changed"] is True
    assert get_order_broker().subscriber_count(order_id) == 0

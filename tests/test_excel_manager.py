import pytest
from filelock import FileLock, Timeout

from storefront.services.excel_manager import ORDERS_FILE, ORDERS_LOCK, ExcelManager


def _order(order_id, status="placed"):
    return {
        "order_id": order_id,
        "customer_name": "Lakshmi Devi",
        "phone": "9876543210",
        "city": "Hyderabad",
        "pincode": "500001",
        "items": "[]",
        "item_count": 3,
        "subtotal": 580.0,
        "delivery_fee": 30.0,
        "packaging_fee": 20.0,
        "total_amount": 630.0,
        "payment_method": "cod",
        "order_status": status,
    }


@pytest.fixture(autouse=True)
def empty_workbook():
    ExcelManager.clear_all()
    yield
    ExcelManager.clear_all()


def test_export_writes_one_row_per_order():
    ExcelManager.export_order(_order("order-a"))
    result = ExcelManager.export_order(_order("order-b"))

    assert result["success"] is True
    assert result["replaced_rows"] == 0
    assert [row["order_id"] for row in ExcelManager.get_all_orders()] == ["order-a", "order-b"]


def test_export_again_replaces_existing_row():
    ExcelManager.export_order(_order("order-a"))
    ExcelManager.export_order(_order("order-b"))

    result = ExcelManager.export_order(_order("order-a", status="delivered"))

    assert result["replaced_rows"] == 1
    rows = ExcelManager.get_all_orders()
    assert [row["order_id"] for row in rows] == ["order-b", "order-a"]
    assert rows[1]["order_status"] == "delivered"


def test_lock_timeout_is_raised_for_retry(monkeypatch):
    monkeypatch.setattr(ExcelManager, "LOCK_TIMEOUT", 0.1)
    ExcelManager._ensure_data_dir()

    with FileLock(str(ORDERS_LOCK)):
        with pytest.raises(Timeout):
            ExcelManager.export_order(_order("order-a"))

    assert ExcelManager.get_all_orders() == []


def test_clear_all_removes_workbook():
    ExcelManager.export_order(_order("order-a"))
    assert ORDERS_FILE.exists()

    assert ExcelManager.clear_all() is True
    assert not ORDERS_FILE.exists()
    assert ExcelManager.get_all_orders() == []

"""
Excel File Manager with Concurrency Control

Process-safe appends of placed orders to the orders workbook,
used by the back-office for bookkeeping.

Version: 1.0.0
"""

from datetime import datetime
from typing import Any
from pathlib import Path

import pandas as pd
from filelock import FileLock, Timeout

from storefront.core.config import get_settings
import logging

settings = get_settings()
logger = logging.getLogger(__name__)

DATA_DIR = Path(settings.data_directory)
ORDERS_FILE = DATA_DIR / settings.excel_filename
ORDERS_LOCK = DATA_DIR / f"{settings.excel_filename}.lock"


class ExcelManager:
    """Process-safe Excel file manager."""

    LOCK_TIMEOUT = settings.excel_lock_timeout

    ORDER_COLUMNS = [
        "order_id",
        "date_time",
        "customer_name",
        "phone",
        "email",
        "delivery_address",
        "city",
        "pincode",
        "items",
        "item_count",
        "subtotal",
        "delivery_fee",
        "packaging_fee",
        "total_amount",
        "payment_method",
        "order_status",
        "estimated_delivery_time",
        "exported_at",
    ]

    @classmethod
    def _ensure_data_dir(cls) -> None:
        """Create data directory if needed."""
        if not DATA_DIR.exists():
            DATA_DIR.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {DATA_DIR}")

    @classmethod
    def _load_or_create_df(cls, file_path: Path, columns: list) -> pd.DataFrame:
        """Load existing file or create new DataFrame."""
        if file_path.exists():
            try:
                return pd.read_excel(file_path, engine="openpyxl")
            except Exception as e:
                logger.warning(f"Error reading {file_path}: {e}")
                return pd.DataFrame(columns=columns)
        return pd.DataFrame(columns=columns)

    @classmethod
    def export_order(cls, order_data: dict[str, Any]) -> dict[str, Any]:
        """
        Write one order row to the workbook with file locking.

        An order exported again replaces its earlier row.

        Raises:
            Timeout: The workbook lock was not acquired in time
        """
        cls._ensure_data_dir()

        order_id = order_data.get("order_id", "unknown")
        lock = FileLock(str(ORDERS_LOCK), timeout=cls.LOCK_TIMEOUT)

        try:
            with lock:
                logger.debug(f"Lock acquired for Order {order_id}")

                df = cls._load_or_create_df(ORDERS_FILE, cls.ORDER_COLUMNS)

                export_time = datetime.now().isoformat()
                new_row = {
                    "order_id": order_id,
                    "date_time": order_data.get("created_at", export_time),
                    "customer_name": order_data.get("customer_name"),
                    "phone": order_data.get("phone"),
                    "email": order_data.get("email"),
                    "delivery_address": order_data.get("delivery_address"),
                    "city": order_data.get("city"),
                    "pincode": order_data.get("pincode"),
                    "items": order_data.get("items"),
                    "item_count": order_data.get("item_count", 0),
                    "subtotal": order_data.get("subtotal"),
                    "delivery_fee": order_data.get("delivery_fee"),
                    "packaging_fee": order_data.get("packaging_fee"),
                    "total_amount": order_data.get("total_amount"),
                    "payment_method": order_data.get("payment_method", "cod"),
                    "order_status": order_data.get("order_status"),
                    "estimated_delivery_time": order_data.get("estimated_delivery_time"),
                    "exported_at": export_time,
                }

                replaced = 0
                if not df.empty and "order_id" in df.columns:
                    existing = df["order_id"].astype(str) == str(order_id)
                    replaced = int(existing.sum())
                    df = df[~existing]

                new_df = pd.DataFrame([new_row], columns=cls.ORDER_COLUMNS)
                df = new_df if df.empty else pd.concat([df, new_df], ignore_index=True)
                df.to_excel(str(ORDERS_FILE), index=False, engine="openpyxl")

            logger.debug(f"Lock released for Order {order_id}")

        except Timeout:
            logger.error(f"Lock timeout ({cls.LOCK_TIMEOUT}s) for Order {order_id}")
            raise

        action = "re-exported" if replaced else "exported"
        logger.info(f"Order {order_id} {action} to Excel")

        return {
            "success": True,
            "message": f"Order {order_id} {action}",
            "order_id": order_id,
            "exported_at": export_time,
            "replaced_rows": replaced,
        }

    @classmethod
    def get_all_orders(cls) -> list[dict[str, Any]]:
        """Get all exported orders from Excel."""
        cls._ensure_data_dir()

        if not ORDERS_FILE.exists():
            return []

        try:
            df = pd.read_excel(ORDERS_FILE, engine="openpyxl")
            return df.to_dict("records")
        except Exception as e:
            logger.error(f"Error reading orders: {e}")
            return []

    @classmethod
    def clear_all(cls) -> bool:
        """Delete the workbook and its lock file."""
        try:
            for f in [ORDERS_FILE, ORDERS_LOCK]:
                if f.exists():
                    f.unlink()
            logger.info("Excel files cleared")
            return True
        except Exception as e:
            logger.error(f"Error clearing files: {e}")
            return False

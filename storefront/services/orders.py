"""
Order Service

Checkout, status changes and reporting over the orders table.

Flow of a checkout:
    1. Load the cart and re-price it against the catalog
    2. Gate on delivery serviceability for the pincode
    3. Compute totals and insert the order as "placed"
    4. Clear the cart, queue the Excel export, notify the customer
    5. Publish the new row to tracking subscribers

Version: 1.0.0
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import Order, OrderStatus, PaymentMethod
from storefront.schemas import CheckoutRequest, OrderResponse
from storefront.services.cart_store import CartLine, CartStorageError, CartStore
from storefront.services.catalog import BaseCatalogService
from storefront.services.delivery import (
    ServiceabilityResult,
    calculate_order_totals,
    check_serviceability,
)
from storefront.services.notifications import BaseNotificationService
from storefront.services.tracking import (
    OrderEventBroker,
    STATUS_MESSAGES,
    build_tracking_view,
)

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """
    Checkout was refused.

    Attributes:
        message: Customer-facing reason
        code: Machine-readable reason
        status_code: HTTP status the API should answer with
    """

    def __init__(self, message: str, code: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


# =============================================================================
# SERIALIZATION
# =============================================================================

def serialize_order(order: Order) -> OrderResponse:
    """Build the API view of an order row, items decoded and tracking attached."""
    return OrderResponse(
        id=order.id,
        user_id=order.user_id,
        customer_name=order.customer_name,
        phone=order.phone,
        email=order.email,
        delivery_address=order.delivery_address,
        city=order.city,
        pincode=order.pincode,
        notes=order.notes,
        items=[
            {
                "dish_id": line.get("dish_id"),
                "name": line.get("name", ""),
                "price": float(line.get("price", 0)),
                "quantity": int(line.get("quantity", 0)),
                "line_total": float(
                    line.get("line_total", float(line.get("price", 0)) * int(line.get("quantity", 0)))
                ),
            }
            for line in order.parsed_items
        ],
        item_count=order.item_count,
        subtotal=order.subtotal,
        delivery_fee=order.delivery_fee,
        packaging_fee=order.packaging_fee,
        total_amount=order.total_amount,
        payment_method=order.payment_method.value,
        status=order.status.value,
        estimated_delivery_time=order.estimated_delivery_time,
        created_at=order.created_at,
        updated_at=order.updated_at,
        tracking=build_tracking_view(order.status),
    )


def order_event_payload(order: Order) -> dict[str, Any]:
    """JSON-ready snapshot pushed to tracking subscribers."""
    return serialize_order(order).model_dump(mode="json")


def export_payload(order: Order) -> dict[str, Any]:
    """Row handed to the Excel export task."""
    return {
        "order_id": order.id,
        "customer_name": order.customer_name,
        "phone": order.phone,
        "email": order.email,
        "delivery_address": order.delivery_address,
        "city": order.city,
        "pincode": order.pincode,
        "items": order.items,
        "item_count": order.item_count,
        "subtotal": order.subtotal,
        "delivery_fee": order.delivery_fee,
        "packaging_fee": order.packaging_fee,
        "total_amount": order.total_amount,
        "payment_method": order.payment_method.value,
        "order_status": order.status.value,
        "estimated_delivery_time": (
            order.estimated_delivery_time.isoformat() if order.estimated_delivery_time else None
        ),
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }


def queue_order_export(order: Order) -> bool:
    """
    Hand the order to the Excel export task; failures are logged only.

    The task itself flags the row as exported once the workbook is written.
    """
    # Imported here so the API does not need a broker connection at import time
    from storefront.tasks import export_order_to_excel

    try:
        export_order_to_excel.delay(export_payload(order))
        return True
    except Exception as e:
        logger.warning(f"Could not queue Excel export for order {order.id}: {e}")
        return False


# =============================================================================
# CHECKOUT
# =============================================================================

async def _reprice_lines(
    lines: list[CartLine],
    catalog: BaseCatalogService,
    db: AsyncSession,
) -> list[CartLine]:
    """Refresh cart prices from the catalog; refuse dishes that disappeared."""
    priced = []
    for line in lines:
        dish = await catalog.get_dish(line.dish_id, db)
        if dish is None:
            raise CheckoutError(
                f"{line.name} is no longer available. Please remove it from your cart.",
                code="dish_unavailable",
                status_code=409,
            )
        priced.append(CartLine.from_dish(dish, quantity=line.quantity))
    return priced


async def place_order(
    request: CheckoutRequest,
    db: AsyncSession,
    catalog: BaseCatalogService,
    notifier: BaseNotificationService,
    broker: OrderEventBroker,
    user_id: Optional[str] = None,
    store: Optional[CartStore] = None,
) -> tuple[Order, ServiceabilityResult]:
    """
    Turn the contents of a cart into an order.

    Raises:
        CheckoutError: Empty cart, unsupported payment method,
            unavailable dish or unserviceable pincode
    """
    if request.payment_method != PaymentMethod.COD:
        raise CheckoutError(
            "UPI payments are coming soon. Please choose Cash on Delivery.",
            code="payment_method_unavailable",
        )

    store = store or CartStore(request.cart_id)
    cart = store.load()
    if cart.is_empty:
        raise CheckoutError("Your cart is empty", code="empty_cart")

    lines = await _reprice_lines(cart.lines, catalog, db)

    area = await check_serviceability(request.pincode, db)
    if not area.is_serviceable:
        raise CheckoutError(area.error_message or "Pincode not serviceable", code=area.error_code or "not_serviceable")

    totals = calculate_order_totals(lines, area.delivery_fee or 0.0)
    estimated = datetime.now(timezone.utc) + timedelta(minutes=area.estimated_delivery_minutes or 45)

    order = Order(
        user_id=user_id,
        customer_name=request.customer_name.strip(),
        phone=request.phone,
        email=request.email,
        delivery_address=request.delivery_address.strip(),
        city=request.city.strip(),
        pincode=request.pincode,
        notes=request.notes,
        items=json.dumps([line.to_order_line() for line in lines], ensure_ascii=False),
        subtotal=totals["subtotal"],
        delivery_fee=totals["delivery_fee"],
        packaging_fee=totals["packaging_fee"],
        total_amount=totals["total_amount"],
        payment_method=request.payment_method,
        status=OrderStatus.PLACED,
        estimated_delivery_time=estimated,
    )

    db.add(order)
    await db.commit()
    await db.refresh(order)

    logger.info(f"Order {order.id} placed ({order.item_count} items, total {order.total_amount})")

    # The order exists from here on; nothing below may fail the checkout
    try:
        store.clear()
    except CartStorageError as e:
        logger.warning(f"Cart {store.cart_id} not cleared after order {order.id}: {e}")

    queue_order_export(order)

    summary = ", ".join(f"{line.name} x {line.quantity}" for line in lines)
    try:
        result = await notifier.send_order_confirmation(
            order_id=order.id,
            customer_name=order.customer_name,
            customer_email=order.email,
            customer_phone=order.phone,
            order_summary=summary,
            total_amount=order.total_amount,
            delivery_address=f"{order.delivery_address}, {order.city} {order.pincode}",
            estimated_delivery=estimated.strftime("%I:%M %p"),
        )
        if not result.success:
            logger.warning(f"Confirmation for order {order.id} not sent: {result.error_message}")
    except Exception as e:
        logger.error(f"Confirmation for order {order.id} failed: {e}")

    broker.publish(order.id, order_event_payload(order))

    return order, area


# =============================================================================
# STATUS CHANGES
# =============================================================================

async def get_order(order_id: str, db: AsyncSession) -> Order:
    order = await db.get(Order, order_id)
    if order is None:
        raise LookupError(f"Order {order_id} not found")
    return order


async def update_order_status(
    order_id: str,
    status: OrderStatus,
    db: AsyncSession,
    notifier: BaseNotificationService,
    broker: OrderEventBroker,
) -> Order:
    """
    Move an order to a new status, then notify the customer and publish
    the updated row to tracking subscribers.

    Raises:
        LookupError: Unknown order id
    """
    order = await get_order(order_id, db)
    previous = order.status

    order.status = status
    await db.commit()
    await db.refresh(order)

    logger.info(f"Order {order.id} status {previous.value} -> {status.value}")

    if previous != status:
        try:
            await notifier.send_status_update(
                order_id=order.id,
                customer_name=order.customer_name,
                customer_email=order.email,
                customer_phone=order.phone,
                status=STATUS_MESSAGES[status],
            )
        except Exception as e:
            logger.error(f"Status notification for order {order.id} failed: {e}")

    delivered = broker.publish(order.id, order_event_payload(order))
    logger.debug(f"Order {order.id} update sent to {delivered} subscriber(s)")

    return order


# =============================================================================
# QUERIES
# =============================================================================

async def list_user_orders(user_id: str, db: AsyncSession) -> list[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc())
    )
    return list(result.scalars().all())


async def compute_stats(db: AsyncSession) -> dict[str, Any]:
    """Aggregate order counts and revenue for the admin console."""
    rows = await db.execute(
        select(Order.status, func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0.0))
        .group_by(Order.status)
    )

    by_status = {status.value: 0 for status in OrderStatus}
    total_orders = 0
    total_revenue = 0.0
    for status, count, revenue in rows.all():
        status = status if isinstance(status, OrderStatus) else OrderStatus(status)
        by_status[status.value] = count
        total_orders += count
        total_revenue += float(revenue or 0.0)

    pending = sum(count for value, count in by_status.items() if OrderStatus(value).is_open)

    return {
        "total_orders": total_orders,
        "total_revenue": round(total_revenue, 2),
        "pending_orders": pending,
        "completed_orders": by_status[OrderStatus.DELIVERED.value],
        "cancelled_orders": by_status[OrderStatus.CANCELLED.value],
        "avg_order_value": round(total_revenue / total_orders, 2) if total_orders else 0.0,
        "orders_by_status": by_status,
    }

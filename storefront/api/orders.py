"""
Checkout, order history and live order tracking.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth import CurrentUser, get_current_user, get_optional_user
from storefront.database import async_session_maker, get_db
from storefront.models import Order
from storefront.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    OrderHistoryResponse,
    OrderResponse,
    OrderSummary,
)
from storefront.services.cart_store import CartStorageError
from storefront.services.catalog import BaseCatalogService, get_catalog_service
from storefront.services.notifications import BaseNotificationService, get_notification_service
from storefront.services.orders import (
    CheckoutError,
    get_order,
    list_user_orders,
    order_event_payload,
    place_order,
    serialize_order,
)
from storefront.services.tracking import OrderEventBroker, OrderTracker, get_order_broker

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Orders"])


@router.post(
    "/api/checkout",
    response_model=CheckoutResponse,
    status_code=201,
    summary="Place the contents of a cart as an order",
)
async def checkout(
    request: CheckoutRequest,
    db: AsyncSession = Depends(get_db),
    catalog: BaseCatalogService = Depends(get_catalog_service),
    notifier: BaseNotificationService = Depends(get_notification_service),
    broker: OrderEventBroker = Depends(get_order_broker),
    user: Optional[CurrentUser] = Depends(get_optional_user),
) -> CheckoutResponse:
    """
    Cash on delivery only. The cart is emptied once the order row exists.

    Errors:
        - 400: Empty cart, invalid cart id, UPI, unserviceable pincode
        - 409: A dish in the cart is no longer on the menu
    """
    try:
        order, area = await place_order(
            request,
            db,
            catalog,
            notifier,
            broker,
            user_id=user.id if user else None,
        )
    except CheckoutError as e:
        logger.info(f"Checkout refused for cart {request.cart_id}: {e.code}")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CartStorageError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return CheckoutResponse(
        success=True,
        message=f"Order placed! Delivering to {area.area_name}, {area.city}.",
        order_id=order.id,
        subtotal=order.subtotal,
        delivery_fee=order.delivery_fee,
        packaging_fee=order.packaging_fee,
        total_amount=order.total_amount,
        payment_method=order.payment_method.value,
        estimated_delivery_time=order.estimated_delivery_time,
    )


@router.get("/api/orders", response_model=OrderHistoryResponse, summary="My orders")
async def order_history(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderHistoryResponse:
    orders = await list_user_orders(user.id, db)
    return OrderHistoryResponse(
        total=len(orders),
        orders=[
            OrderSummary(
                id=order.id,
                status=order.status.value,
                total_amount=order.total_amount,
                item_count=order.item_count,
                payment_method=order.payment_method.value,
                created_at=order.created_at,
            )
            for order in orders
        ],
    )


@router.get("/api/orders/{order_id}", response_model=OrderResponse)
async def order_detail(
    order_id: str,
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    try:
        order = await get_order(order_id, db)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return serialize_order(order)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    """Drain client frames until the client goes away."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws/orders/{order_id}")
async def track_order(
    websocket: WebSocket,
    order_id: str,
    broker: OrderEventBroker = Depends(get_order_broker),
):
    """Push the order snapshot, then every update to it as it happens."""
    await websocket.accept()

    # Subscribe before reading the snapshot so no update falls in between
    async with broker.subscribe(order_id) as queue:
        async with async_session_maker() as db:
            order = await db.get(Order, order_id)

        if order is None:
            await websocket.close(code=4404, reason="Order not found")
            return

        tracker = OrderTracker(order_id)
        disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
        try:
            await websocket.send_json(tracker.apply(order_event_payload(order)).to_dict())
            while True:
                next_update = asyncio.create_task(queue.get())
                await asyncio.wait(
                    {next_update, disconnected},
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if disconnected.done():
                    next_update.cancel()
                    break
                await websocket.send_json(tracker.apply(next_update.result()).to_dict())
        except WebSocketDisconnect:
            pass
        finally:
            disconnected.cancel()

    logger.debug(f"Tracking client for order {order_id} disconnected")

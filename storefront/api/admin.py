"""
Admin console endpoints.

Every route requires a user holding the admin role.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth import CurrentUser, require_admin
from storefront.database import get_db
from storefront.models import (
    DeliveryArea,
    MenuItem,
    Order,
    OrderStatus,
    Profile,
    UserRole,
    UserRoleName,
)
from storefront.schemas import (
    AdminUserResponse,
    DeliveryAreaCreate,
    DeliveryAreaResponse,
    DeliveryAreaUpdate,
    MenuItemAdminResponse,
    MenuItemCreate,
    MenuItemUpdate,
    MessageResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    StatsResponse,
)
from storefront.services.catalog import apply_menu_item_fields, menu_item_to_dish
from storefront.services.notifications import BaseNotificationService, get_notification_service
from storefront.services.orders import (
    compute_stats,
    get_order,
    queue_order_export,
    serialize_order,
    update_order_status,
)
from storefront.services.tracking import OrderEventBroker, get_order_broker

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)


# =============================================================================
# ORDERS
# =============================================================================

@router.get("/orders", response_model=OrderListResponse, summary="List Orders")
async def list_orders(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """Retrieve paginated list of orders, newest first."""
    query = select(Order).order_by(Order.created_at.desc())
    count_query = select(func.count(Order.id))

    if status:
        try:
            status_enum = OrderStatus(status.lower())
        except ValueError:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status. Options: {[s.value for s in OrderStatus]}"
            )
        query = query.where(Order.status == status_enum)
        count_query = count_query.where(Order.status == status_enum)

    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    result = await db.execute(query.offset(skip).limit(limit))
    orders = result.scalars().all()

    return OrderListResponse(
        total=total,
        orders=[serialize_order(order) for order in orders],
    )


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def change_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
    notifier: BaseNotificationService = Depends(get_notification_service),
    broker: OrderEventBroker = Depends(get_order_broker),
) -> OrderResponse:
    """Customers watching the order receive the change immediately."""
    try:
        order = await update_order_status(order_id, payload.status, db, notifier, broker)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return serialize_order(order)


@router.delete("/orders/{order_id}", response_model=MessageResponse)
async def delete_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> MessageResponse:
    try:
        order = await get_order(order_id, db)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    await db.delete(order)
    await db.commit()
    logger.info(f"Order {order_id} deleted by {admin.id}")
    return MessageResponse(message=f"Order {order_id} deleted")


@router.post("/orders/{order_id}/export", response_model=MessageResponse)
async def export_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Queue the order for the Excel workbook again."""
    try:
        order = await get_order(order_id, db)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if not queue_order_export(order):
        raise HTTPException(status_code=503, detail="Export queue unavailable")

    return MessageResponse(message=f"Order {order_id} queued for export")


# =============================================================================
# MENU ITEMS
# =============================================================================

def _menu_item_response(item: MenuItem) -> MenuItemAdminResponse:
    return MenuItemAdminResponse(
        **menu_item_to_dish(item).model_dump(),
        is_available=item.is_available,
    )


async def _get_menu_item(item_id: str, db: AsyncSession) -> MenuItem:
    item = await db.get(MenuItem, item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Menu item {item_id} not found")
    return item


@router.get("/menu-items", response_model=list[MenuItemAdminResponse])
async def list_menu_items(db: AsyncSession = Depends(get_db)) -> list[MenuItemAdminResponse]:
    """All rows, including dishes hidden from the storefront."""
    result = await db.execute(select(MenuItem).order_by(MenuItem.created_at, MenuItem.id))
    return [_menu_item_response(item) for item in result.scalars().all()]


@router.post("/menu-items", response_model=MenuItemAdminResponse, status_code=201)
async def create_menu_item(
    payload: MenuItemCreate,
    db: AsyncSession = Depends(get_db),
) -> MenuItemAdminResponse:
    item = apply_menu_item_fields(MenuItem(), payload.model_dump())
    db.add(item)
    await db.commit()
    await db.refresh(item)
    logger.info(f"Menu item {item.id} ({item.name}) created")
    return _menu_item_response(item)


@router.patch("/menu-items/{item_id}", response_model=MenuItemAdminResponse)
async def update_menu_item(
    item_id: str,
    payload: MenuItemUpdate,
    db: AsyncSession = Depends(get_db),
) -> MenuItemAdminResponse:
    item = await _get_menu_item(item_id, db)
    apply_menu_item_fields(item, payload.model_dump(exclude_unset=True))
    await db.commit()
    await db.refresh(item)
    return _menu_item_response(item)


@router.delete("/menu-items/{item_id}", response_model=MessageResponse)
async def delete_menu_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    item = await _get_menu_item(item_id, db)
    await db.delete(item)
    await db.commit()
    logger.info(f"Menu item {item_id} deleted")
    return MessageResponse(message=f"Menu item {item_id} deleted")


# =============================================================================
# DELIVERY AREAS
# =============================================================================

async def _get_area(area_id: str, db: AsyncSession) -> DeliveryArea:
    area = await db.get(DeliveryArea, area_id)
    if area is None:
        raise HTTPException(status_code=404, detail=f"Delivery area {area_id} not found")
    return area


async def _ensure_pincode_free(pincode: str, db: AsyncSession, exclude_id: Optional[str] = None) -> None:
    query = select(DeliveryArea.id).where(DeliveryArea.pincode == pincode)
    if exclude_id:
        query = query.where(DeliveryArea.id != exclude_id)
    result = await db.execute(query)
    if result.first() is not None:
        raise HTTPException(status_code=409, detail=f"Pincode {pincode} already has a delivery area")


@router.get("/delivery-areas", response_model=list[DeliveryAreaResponse])
async def list_delivery_areas(db: AsyncSession = Depends(get_db)) -> list[DeliveryArea]:
    result = await db.execute(
        select(DeliveryArea).order_by(DeliveryArea.city, DeliveryArea.area_name)
    )
    return list(result.scalars().all())


@router.post("/delivery-areas", response_model=DeliveryAreaResponse, status_code=201)
async def create_delivery_area(
    payload: DeliveryAreaCreate,
    db: AsyncSession = Depends(get_db),
) -> DeliveryArea:
    await _ensure_pincode_free(payload.pincode, db)

    area = DeliveryArea(**payload.model_dump())
    db.add(area)
    await db.commit()
    await db.refresh(area)
    logger.info(f"Delivery area {area.pincode} ({area.area_name}, {area.city}) added")
    return area


@router.patch("/delivery-areas/{area_id}", response_model=DeliveryAreaResponse)
async def update_delivery_area(
    area_id: str,
    payload: DeliveryAreaUpdate,
    db: AsyncSession = Depends(get_db),
) -> DeliveryArea:
    area = await _get_area(area_id, db)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("pincode"):
        await _ensure_pincode_free(changes["pincode"], db, exclude_id=area_id)

    for key, value in changes.items():
        if value is not None:
            setattr(area, key, value)
    await db.commit()
    await db.refresh(area)
    return area


@router.delete("/delivery-areas/{area_id}", response_model=MessageResponse)
async def delete_delivery_area(
    area_id: str,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    area = await _get_area(area_id, db)
    await db.delete(area)
    await db.commit()
    logger.info(f"Delivery area {area.pincode} deleted")
    return MessageResponse(message=f"Delivery area {area.pincode} deleted")


# =============================================================================
# USERS & STATS
# =============================================================================

@router.get("/users", response_model=list[AdminUserResponse])
async def list_users(db: AsyncSession = Depends(get_db)) -> list[AdminUserResponse]:
    """Profiles with their admin flag and number of orders."""
    profiles = (await db.execute(
        select(Profile).order_by(Profile.created_at.desc())
    )).scalars().all()

    admin_ids = set((await db.execute(
        select(UserRole.user_id).where(UserRole.role == UserRoleName.ADMIN)
    )).scalars().all())

    order_counts = dict((await db.execute(
        select(Order.user_id, func.count(Order.id))
        .where(Order.user_id.is_not(None))
        .group_by(Order.user_id)
    )).all())

    return [
        AdminUserResponse(
            id=profile.id,
            name=profile.name,
            email=profile.email,
            phone=profile.phone,
            default_address=profile.default_address,
            city=profile.city,
            pincode=profile.pincode,
            is_admin=profile.id in admin_ids,
            order_count=order_counts.get(profile.id, 0),
            created_at=profile.created_at,
        )
        for profile in profiles
    ]


@router.get("/stats", response_model=StatsResponse)
async def stats(db: AsyncSession = Depends(get_db)) -> StatsResponse:
    return StatsResponse(**await compute_stats(db))

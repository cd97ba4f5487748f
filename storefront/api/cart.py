"""
Cart endpoints.

Carts are addressed by a client-chosen id (a device or session id) and
persisted by CartStore.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.schemas import (
    CartAddRequest,
    CartLineResponse,
    CartQuantityRequest,
    CartResponse,
)
from storefront.services.cart_store import Cart, CartStorageError, CartStore
from storefront.services.catalog import BaseCatalogService, get_catalog_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cart", tags=["Cart"])


def cart_to_response(cart: Cart, message: Optional[str] = None) -> CartResponse:
    return CartResponse(
        cart_id=cart.cart_id,
        items=[
            CartLineResponse(
                dish_id=line.dish_id,
                name=line.name,
                price=line.price,
                category=line.category,
                dish_type=line.dish_type,
                image=line.image,
                quantity=line.quantity,
                line_total=line.line_total,
            )
            for line in cart.lines
        ],
        total_items=cart.total_items(),
        total_price=cart.total_price(),
        message=message,
    )


def open_store(cart_id: str) -> CartStore:
    try:
        return CartStore(cart_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _run(operation, *args) -> CartResponse:
    try:
        cart, message = operation(*args)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CartStorageError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return cart_to_response(cart, message)


@router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str) -> CartResponse:
    store = open_store(cart_id)
    try:
        return cart_to_response(store.load())
    except CartStorageError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{cart_id}/items", response_model=CartResponse, summary="Add one of a dish")
async def add_item(
    cart_id: str,
    payload: CartAddRequest,
    db: AsyncSession = Depends(get_db),
    catalog: BaseCatalogService = Depends(get_catalog_service),
) -> CartResponse:
    store = open_store(cart_id)
    dish = await catalog.get_dish(payload.dish_id, db)
    if dish is None:
        raise HTTPException(status_code=404, detail=f"Dish {payload.dish_id} not found")
    return _run(store.add, dish)


@router.patch("/{cart_id}/items/{dish_id}", response_model=CartResponse)
async def update_item(
    cart_id: str,
    dish_id: str,
    payload: CartQuantityRequest,
) -> CartResponse:
    """Set a quantity; zero or less removes the dish."""
    return _run(open_store(cart_id).update_quantity, dish_id, payload.quantity)


@router.delete("/{cart_id}/items/{dish_id}", response_model=CartResponse)
async def remove_item(cart_id: str, dish_id: str) -> CartResponse:
    return _run(open_store(cart_id).remove, dish_id)


@router.delete("/{cart_id}", response_model=CartResponse)
async def clear_cart(cart_id: str) -> CartResponse:
    return _run(open_store(cart_id).clear)

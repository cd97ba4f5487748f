"""
Favorite dishes of the signed-in user.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.cart import cart_to_response, open_store
from storefront.auth import CurrentUser, get_current_user
from storefront.database import get_db
from storefront.models import Favorite
from storefront.schemas import (
    CartResponse,
    FavoritesResponse,
    FavoritesToCartRequest,
    FavoriteToggleResponse,
)
from storefront.services.cart_store import CartStorageError
from storefront.services.catalog import BaseCatalogService, get_catalog_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/favorites", tags=["Favorites"])


async def _favorite_ids(user_id: str, db: AsyncSession) -> list[str]:
    result = await db.execute(
        select(Favorite.dish_id)
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.created_at, Favorite.id)
    )
    return list(result.scalars().all())


@router.get("", response_model=FavoritesResponse)
async def list_favorites(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    catalog: BaseCatalogService = Depends(get_catalog_service),
) -> FavoritesResponse:
    dish_ids = await _favorite_ids(user.id, db)
    return FavoritesResponse(
        dish_ids=dish_ids,
        dishes=await catalog.get_dishes(dish_ids, db),
    )


@router.post("/{dish_id}/toggle", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    dish_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    catalog: BaseCatalogService = Depends(get_catalog_service),
) -> FavoriteToggleResponse:
    """Dishes gone from the menu can still be removed, never added."""
    result = await db.execute(
        select(Favorite).where(Favorite.user_id == user.id, Favorite.dish_id == dish_id)
    )
    existing = result.scalar_one_or_none()
    dish = await catalog.get_dish(dish_id, db)

    if existing:
        await db.delete(existing)
        await db.commit()
        return FavoriteToggleResponse(
            dish_id=dish_id,
            is_favorite=False,
            message=f"{dish.name if dish else 'Dish'} removed from favorites",
        )

    if dish is None:
        raise HTTPException(status_code=404, detail=f"Dish {dish_id} not found")

    db.add(Favorite(user_id=user.id, dish_id=dish_id))
    await db.commit()
    return FavoriteToggleResponse(
        dish_id=dish_id,
        is_favorite=True,
        message=f"{dish.name} added to favorites",
    )


@router.post("/add-to-cart", response_model=CartResponse)
async def add_favorites_to_cart(
    payload: FavoritesToCartRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    catalog: BaseCatalogService = Depends(get_catalog_service),
) -> CartResponse:
    """Add one of every favorite dish still on the menu."""
    store = open_store(payload.cart_id)
    dishes = await catalog.get_dishes(await _favorite_ids(user.id, db), db)

    try:
        cart = store.load()
        for dish in dishes:
            cart, _ = store.add(dish)
    except CartStorageError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return cart_to_response(cart, f"Added {len(dishes)} items to cart")

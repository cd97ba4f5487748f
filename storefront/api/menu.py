"""
Menu and delivery-area lookup endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.schemas import (
    Category,
    Dish,
    MenuResponse,
    MenuSort,
    ServiceabilityResponse,
)
from storefront.services.catalog import BaseCatalogService, CatalogFilter, get_catalog_service
from storefront.services.delivery import check_serviceability

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Menu"])


@router.get("/menu", response_model=MenuResponse, summary="Browse the menu")
async def list_menu(
    category: str = Query("all"),
    region: str = Query("all"),
    dish_type: str = Query("all", alias="type"),
    popular: bool = Query(False),
    search: Optional[str] = Query(None, max_length=100),
    sort: MenuSort = Query(MenuSort.DEFAULT),
    db: AsyncSession = Depends(get_db),
    catalog: BaseCatalogService = Depends(get_catalog_service),
) -> MenuResponse:
    """Filter by category, region and veg/non-veg type, then sort."""
    filters = CatalogFilter(
        category=category,
        region=region,
        dish_type=dish_type,
        popular_only=popular,
        search=search,
        sort=sort,
    )
    dishes = await catalog.list_dishes(filters, db)
    return MenuResponse(total=len(dishes), dishes=dishes)


@router.get("/menu/categories", response_model=list[Category])
async def list_categories(
    catalog: BaseCatalogService = Depends(get_catalog_service),
) -> list[Category]:
    return catalog.list_categories()


@router.get("/menu/{dish_id}", response_model=Dish)
async def get_dish(
    dish_id: str,
    db: AsyncSession = Depends(get_db),
    catalog: BaseCatalogService = Depends(get_catalog_service),
) -> Dish:
    dish = await catalog.get_dish(dish_id, db)
    if dish is None:
        raise HTTPException(status_code=404, detail=f"Dish {dish_id} not found")
    return dish


@router.get(
    "/delivery-areas/{pincode}",
    response_model=ServiceabilityResponse,
    tags=["Delivery"],
    summary="Check whether a pincode is serviceable",
)
async def check_pincode(
    pincode: str,
    db: AsyncSession = Depends(get_db),
) -> ServiceabilityResponse:
    result = await check_serviceability(pincode, db)
    if not result.is_valid:
        raise HTTPException(status_code=400, detail=result.error_message)

    return ServiceabilityResponse(
        pincode=result.pincode,
        is_serviceable=result.is_serviceable,
        area_name=result.area_name,
        city=result.city,
        delivery_fee=result.delivery_fee,
        estimated_delivery_minutes=result.estimated_delivery_minutes,
        message=result.error_message,
    )

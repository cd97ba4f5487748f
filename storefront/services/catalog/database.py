"""
Database Catalog Service

Serves dishes from the menu_items table. Unavailable items are hidden
from the storefront but remain visible to the admin console.

Version: 1.0.0
"""

import json
import logging
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.data.dishes import DISHES
from storefront.models import MenuItem
from storefront.schemas import Dish, NutritionInfo
from storefront.services.catalog.base import (
    BaseCatalogService,
    CatalogFilter,
    apply_filters,
)

logger = logging.getLogger(__name__)


def menu_item_to_dish(item: MenuItem) -> Dish:
    """Convert a menu_items row to the storefront Dish shape."""
    try:
        ingredients = json.loads(item.ingredients) if item.ingredients else []
    except ValueError:
        ingredients = []

    return Dish(
        id=item.id,
        name=item.name,
        local_name=item.local_name,
        description=item.description,
        price=item.price,
        category=item.category,
        region=item.region,
        dish_type=item.dish_type,
        image=item.image,
        popular=bool(item.popular),
        ingredients=ingredients,
        nutrition=NutritionInfo(
            calories=item.calories,
            protein=item.protein,
            carbs=item.carbs,
        ),
    )


def apply_menu_item_fields(item: MenuItem, fields: dict) -> MenuItem:
    """Copy validated request fields onto a row, encoding ingredients."""
    for key, value in fields.items():
        if key == "ingredients":
            value = json.dumps(value or [])
        setattr(item, key, value)
    return item


async def seed_menu_items(db: AsyncSession) -> int:
    """
    Copy the built-in dishes into an empty menu_items table.

    Returns:
        Number of rows inserted (0 when the table already has data)
    """
    existing = await db.execute(select(func.count(MenuItem.id)))
    if (existing.scalar() or 0) > 0:
        return 0

    for raw in DISHES:
        nutrition = raw.get("nutrition", {})
        db.add(MenuItem(
            id=raw["id"],
            name=raw["name"],
            local_name=raw.get("local_name"),
            description=raw.get("description"),
            price=raw["price"],
            category=raw["category"],
            region=raw.get("region", "both"),
            dish_type=raw.get("dish_type", "veg"),
            image=raw.get("image"),
            popular=raw.get("popular", False),
            ingredients=json.dumps(raw.get("ingredients", [])),
            calories=nutrition.get("calories"),
            protein=nutrition.get("protein"),
            carbs=nutrition.get("carbs"),
        ))
    await db.commit()

    logger.info(f"Seeded {len(DISHES)} menu items")
    return len(DISHES)


class DatabaseCatalogService(BaseCatalogService):
    """Catalog backed by the menu_items table."""

    @property
    def provider_name(self) -> str:
        return "database"

    def _require_session(self, db: Optional[AsyncSession]) -> AsyncSession:
        if db is None:
            raise ValueError("DatabaseCatalogService needs a database session")
        return db

    async def list_dishes(
        self,
        filters: Optional[CatalogFilter] = None,
        db: Optional[AsyncSession] = None,
    ) -> list[Dish]:
        session = self._require_session(db)
        result = await session.execute(
            select(MenuItem)
            .where(MenuItem.is_available.is_(True))
            .order_by(MenuItem.created_at, MenuItem.id)
        )
        dishes = [menu_item_to_dish(item) for item in result.scalars().all()]
        return apply_filters(dishes, filters or CatalogFilter())

    async def get_dish(
        self,
        dish_id: str,
        db: Optional[AsyncSession] = None,
    ) -> Optional[Dish]:
        session = self._require_session(db)
        item = await session.get(MenuItem, dish_id)
        if item is None or not item.is_available:
            return None
        return menu_item_to_dish(item)

    async def health_check(self, db: Optional[AsyncSession] = None) -> bool:
        if db is None:
            return False
        try:
            await db.execute(select(func.count(MenuItem.id)))
            return True
        except Exception as e:
            logger.error(f"Catalog health check failed: {e}")
            return False

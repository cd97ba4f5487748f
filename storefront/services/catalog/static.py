"""
Static Catalog Service

Serves the built-in dish list from memory. No database access.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.data.dishes import DISHES
from storefront.schemas import Dish
from storefront.services.catalog.base import (
    BaseCatalogService,
    CatalogFilter,
    apply_filters,
)

logger = logging.getLogger(__name__)


class StaticCatalogService(BaseCatalogService):
    """In-memory catalog built from storefront.data.dishes."""

    def __init__(self, dishes: Optional[list[dict]] = None):
        self._dishes = [Dish(**raw) for raw in (dishes if dishes is not None else DISHES)]
        self._by_id = {dish.id: dish for dish in self._dishes}
        logger.info(f"StaticCatalogService initialized ({len(self._dishes)} dishes)")

    @property
    def provider_name(self) -> str:
        return "static"

    async def list_dishes(
        self,
        filters: Optional[CatalogFilter] = None,
        db: Optional[AsyncSession] = None,
    ) -> list[Dish]:
        return apply_filters(self._dishes, filters or CatalogFilter())

    async def get_dish(
        self,
        dish_id: str,
        db: Optional[AsyncSession] = None,
    ) -> Optional[Dish]:
        return self._by_id.get(dish_id)

    async def health_check(self, db: Optional[AsyncSession] = None) -> bool:
        return bool(self._dishes)

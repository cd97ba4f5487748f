"""
Catalog Service Abstract Base Class

Defines the read contract for the menu. Two implementations exist:
the built-in dish list (StaticCatalogService) and the menu_items
table (DatabaseCatalogService). Filtering and sorting live here so
both sources behave the same way.

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.data.dishes import CATEGORIES
from storefront.schemas import Category, Dish, MenuSort


ALL = "all"


@dataclass
class CatalogFilter:
    """
    Menu query options.

    Attributes:
        category: Category id or "all"
        region: Region or "all"; dishes from "both" match any region
        dish_type: "veg", "nonveg" or "all"
        popular_only: Only return dishes flagged popular
        search: Case-insensitive text matched against names and description
        sort: Ordering of the result
    """
    category: str = ALL
    region: str = ALL
    dish_type: str = ALL
    popular_only: bool = False
    search: Optional[str] = None
    sort: MenuSort = MenuSort.DEFAULT

    def matches(self, dish: Dish) -> bool:
        if self.category != ALL and dish.category != self.category:
            return False
        if self.region != ALL and dish.region not in (self.region, "both"):
            return False
        if self.dish_type != ALL and dish.dish_type != self.dish_type:
            return False
        if self.popular_only and not dish.popular:
            return False
        if self.search:
            needle = self.search.strip().lower()
            haystack = " ".join(
                part for part in (dish.name, dish.local_name, dish.description) if part
            ).lower()
            if needle not in haystack:
                return False
        return True


def apply_filters(dishes: Iterable[Dish], filters: CatalogFilter) -> list[Dish]:
    """Filter then sort dishes; every sort is stable over catalog order."""
    selected = [dish for dish in dishes if filters.matches(dish)]

    if filters.sort == MenuSort.PRICE_ASC:
        selected.sort(key=lambda d: d.price)
    elif filters.sort == MenuSort.PRICE_DESC:
        selected.sort(key=lambda d: d.price, reverse=True)
    elif filters.sort == MenuSort.NAME:
        selected.sort(key=lambda d: d.name.lower())
    elif filters.sort == MenuSort.POPULAR:
        selected.sort(key=lambda d: not d.popular)

    return selected


class BaseCatalogService(ABC):
    """
    Abstract base class for menu sources.

    Example:
        >>> service = get_catalog_service()
        >>> dishes = await service.list_dishes(CatalogFilter(dish_type="veg"), db)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the catalog source ("static", "database")."""
        pass

    @abstractmethod
    async def list_dishes(
        self,
        filters: Optional[CatalogFilter] = None,
        db: Optional[AsyncSession] = None,
    ) -> list[Dish]:
        """Return dishes matching the filters, in the requested order."""
        pass

    @abstractmethod
    async def get_dish(
        self,
        dish_id: str,
        db: Optional[AsyncSession] = None,
    ) -> Optional[Dish]:
        """Return one dish or None when the id is unknown."""
        pass

    async def get_dishes(
        self,
        dish_ids: Iterable[str],
        db: Optional[AsyncSession] = None,
    ) -> list[Dish]:
        """Resolve several ids, keeping their order and skipping unknown ones."""
        wanted = list(dish_ids)
        by_id = {dish.id: dish for dish in await self.list_dishes(None, db)}
        return [by_id[dish_id] for dish_id in wanted if dish_id in by_id]

    def list_categories(self) -> list[Category]:
        return [Category(**category) for category in CATEGORIES]

    @abstractmethod
    async def health_check(self, db: Optional[AsyncSession] = None) -> bool:
        """Verify the catalog can be read."""
        pass

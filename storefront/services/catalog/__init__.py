"""
Catalog Service Factory

Provides a single entry point for obtaining the menu source.
Selects the built-in dish list or the menu_items table based on the
CATALOG_SOURCE configuration.

Usage:
    from storefront.services.catalog import get_catalog_service

    catalog = get_catalog_service()
    dishes = await catalog.list_dishes(CatalogFilter(category="tiffins"), db)
"""

import logging
from functools import lru_cache

from storefront.core.config import get_settings, CatalogSource
from storefront.services.catalog.base import (
    BaseCatalogService,
    CatalogFilter,
    apply_filters,
)
from storefront.services.catalog.static import StaticCatalogService
from storefront.services.catalog.database import (
    DatabaseCatalogService,
    apply_menu_item_fields,
    menu_item_to_dish,
    seed_menu_items,
)

logger = logging.getLogger(__name__)


@lru_cache()
def get_catalog_service() -> BaseCatalogService:
    """
    Get the configured catalog service instance.

    Returns:
        BaseCatalogService: Static or database catalog
    """
    settings = get_settings()

    if settings.catalog_source == CatalogSource.DATABASE:
        logger.info("Catalog Service: Using DatabaseCatalogService")
        return DatabaseCatalogService()

    logger.info("Catalog Service: Using StaticCatalogService")
    return StaticCatalogService()


def reset_catalog_service() -> None:
    """
    Clear the cached catalog service instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_catalog_service.cache_clear()
    logger.debug("Catalog service cache cleared")


__all__ = [
    "get_catalog_service",
    "reset_catalog_service",
    "BaseCatalogService",
    "CatalogFilter",
    "apply_filters",
    "StaticCatalogService",
    "DatabaseCatalogService",
    "apply_menu_item_fields",
    "menu_item_to_dish",
    "seed_menu_items",
]

"""
Core module initialization.
Exports configuration and logging utilities.
"""

from storefront.core.config import get_settings, Settings, EnvironmentMode, CatalogSource

__all__ = ["get_settings", "Settings", "EnvironmentMode", "CatalogSource"]

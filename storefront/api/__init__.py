"""
HTTP and WebSocket routers.
"""

from storefront.api import admin, cart, favorites, menu, orders, profile

routers = [
    menu.router,
    cart.router,
    orders.router,
    favorites.router,
    profile.router,
    admin.router,
]

__all__ = ["routers"]

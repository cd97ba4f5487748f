"""
                        Services Module

Business logic behind the storefront API. External integrations follow
the hybrid pattern: a Mock implementation for development and a Real
one for production, chosen by a cached factory.

Services:
    - catalog: Menu from the built-in dish list or the menu_items table
    - cart_store: File-backed carts with per-cart locking
    - delivery: Pincode serviceability and order totals
    - orders: Checkout, status changes and stats
    - tracking: Delivery progress and live order updates
    - notifications: Twilio SMS / SendGrid email
    - excel_manager: Process-safe Excel operations
"""

from storefront.services.excel_manager import ExcelManager

__all__ = ["ExcelManager"]

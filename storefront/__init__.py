"""
                Home Kitchen Storefront

Backend for a home-style food ordering storefront: menu browsing,
persisted carts, pincode-gated checkout, realtime order tracking,
favorites and an admin back-office.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"

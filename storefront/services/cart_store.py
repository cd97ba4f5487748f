"""
Cart Store with File Persistence

Each cart is an ordered list of (dish, quantity) lines saved as JSON
under the cart storage directory. Every mutation reloads the file under
a lock, applies the change and writes it back, so totals are always
recomputed from the persisted lines.

Version: 1.0.0
"""

import json
import logging
import re
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock, Timeout

from storefront.core.config import get_settings
from storefront.schemas import Dish

logger = logging.getLogger(__name__)

CART_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class CartStorageError(Exception):
    """Raised when a cart file cannot be locked or written."""


@dataclass
class CartLine:
    """A dish snapshot and how many of it are in the cart."""
    dish_id: str
    name: str
    price: float
    quantity: int = 1
    category: Optional[str] = None
    dish_type: Optional[str] = None
    image: Optional[str] = None

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)

    @classmethod
    def from_dish(cls, dish: Dish, quantity: int = 1) -> "CartLine":
        return cls(
            dish_id=dish.id,
            name=dish.name,
            price=dish.price,
            quantity=quantity,
            category=dish.category,
            dish_type=dish.dish_type,
            image=dish.image,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_order_line(self) -> dict[str, Any]:
        """Snapshot stored on the order row."""
        return {
            "dish_id": self.dish_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "line_total": self.line_total,
        }


@dataclass
class Cart:
    cart_id: str
    lines: list[CartLine] = field(default_factory=list)

    def find(self, dish_id: str) -> Optional[CartLine]:
        for line in self.lines:
            if line.dish_id == dish_id:
                return line
        return None

    def total_price(self) -> float:
        return round(sum(line.price * line.quantity for line in self.lines), 2)

    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def to_dict(self) -> dict[str, Any]:
        return {
            "cart_id": self.cart_id,
            "items": [line.to_dict() for line in self.lines],
        }


class CartStore:
    """
    Persisted cart for one cart id.

    Example:
        >>> store = CartStore("guest-42")
        >>> cart, message = store.add(dish)
        >>> cart.total_items()
        1
    """

    def __init__(
        self,
        cart_id: str,
        directory: Optional[str] = None,
        lock_timeout: Optional[int] = None,
    ):
        if not CART_ID_PATTERN.match(cart_id or ""):
            raise ValueError("Cart id must be 1-64 letters, digits, '-' or '_'")

        settings = get_settings()
        self.cart_id = cart_id
        self.directory = Path(directory or settings.cart_storage_directory)
        self.lock_timeout = lock_timeout if lock_timeout is not None else settings.excel_lock_timeout
        self.path = self.directory / f"{cart_id}.json"
        self._lock = FileLock(str(self.directory / f"{cart_id}.json.lock"), timeout=self.lock_timeout)

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _ensure_dir(self) -> None:
        if not self.directory.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created cart directory: {self.directory}")

    def _read(self) -> Cart:
        if not self.path.exists():
            return Cart(cart_id=self.cart_id)
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            lines = [CartLine(**item) for item in raw.get("items", [])]
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable cart {self.cart_id}: {e}")
            return Cart(cart_id=self.cart_id)
        return Cart(cart_id=self.cart_id, lines=[line for line in lines if line.quantity > 0])

    def _write(self, cart: Cart) -> None:
        tmp_path = self.path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(cart.to_dict(), ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)

    def _mutate(self, change) -> tuple[Cart, str]:
        self._ensure_dir()
        try:
            with self._lock:
                cart = self._read()
                message = change(cart)
                self._write(cart)
        except Timeout:
            logger.error(f"Lock timeout for cart {self.cart_id}")
            raise CartStorageError(f"Cart {self.cart_id} is busy, try again")
        logger.debug(
            f"Cart {self.cart_id}: {message} "
            f"(items={cart.total_items()}, total={cart.total_price()})"
        )
        return cart, message

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def load(self) -> Cart:
        """Read the persisted cart; a missing or corrupt file is an empty cart."""
        self._ensure_dir()
        try:
            with self._lock:
                return self._read()
        except Timeout:
            raise CartStorageError(f"Cart {self.cart_id} is busy, try again")

    def add(self, dish: Dish) -> tuple[Cart, str]:
        """Add one of a dish; an existing line has its quantity increased."""
        def change(cart: Cart) -> str:
            line = cart.find(dish.id)
            if line:
                line.quantity += 1
                return f"{dish.name} quantity increased"
            cart.lines.append(CartLine.from_dish(dish))
            return f"{dish.name} added successfully"

        return self._mutate(change)

    def remove(self, dish_id: str) -> tuple[Cart, str]:
        def change(cart: Cart) -> str:
            line = cart.find(dish_id)
            if line is None:
                raise LookupError(f"Dish {dish_id} is not in the cart")
            cart.lines.remove(line)
            return "Item removed successfully"

        return self._mutate(change)

    def update_quantity(self, dish_id: str, quantity: int) -> tuple[Cart, str]:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            return self.remove(dish_id)

        def change(cart: Cart) -> str:
            line = cart.find(dish_id)
            if line is None:
                raise LookupError(f"Dish {dish_id} is not in the cart")
            line.quantity = quantity
            return "Quantity updated"

        return self._mutate(change)

    def clear(self) -> tuple[Cart, str]:
        def change(cart: Cart) -> str:
            cart.lines.clear()
            return "All items removed from cart"

        return self._mutate(change)

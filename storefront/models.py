"""
SQLAlchemy Database Models

Tables behind the storefront:
- Menu items and delivery areas (catalog and serviceability)
- Orders with their JSON line snapshots
- Favorites, profiles and user roles

Version: 1.0.0
"""

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Text,
    Enum,
    Boolean,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from storefront.database import Base
import enum


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PLACED = "placed"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_open(self) -> bool:
        """True until the order is delivered or cancelled."""
        return self not in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class PaymentMethod(str, enum.Enum):
    """Accepted payment methods."""
    COD = "cod"
    UPI = "upi"


class UserRoleName(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


def _new_uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_items(raw) -> list[dict]:
    """Decode stored order items; rows may hold a JSON string or a list."""
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError:
            return []
        return decoded if isinstance(decoded, list) else []
    return list(raw)


class MenuItem(Base):
    """
    A sellable dish served from the database catalog.
    """
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=_new_uuid)
    name = Column(String(120), nullable=False)
    local_name = Column(String(120), nullable=True)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    category = Column(String(20), nullable=False, index=True)
    region = Column(String(20), nullable=False, default="both")
    dish_type = Column(String(10), nullable=False, default="veg")
    image = Column(String(255), nullable=True)
    popular = Column(Boolean, default=False, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)

    # Nutrition / ingredients
    ingredients = Column(Text, nullable=True)  # JSON list of strings
    calories = Column(Integer, nullable=True)
    protein = Column(String(20), nullable=True)
    carbs = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<MenuItem {self.id} - {self.name} - {self.price}>"


class DeliveryArea(Base):
    """
    A pincode the kitchen delivers to, with its fee and delivery time.
    """
    __tablename__ = "delivery_areas"

    id = Column(String(36), primary_key=True, default=_new_uuid)
    pincode = Column(String(6), nullable=False, unique=True, index=True)
    area_name = Column(String(100), nullable=False)
    city = Column(String(60), nullable=False)
    delivery_fee = Column(Float, nullable=False, default=0.0)
    estimated_delivery_minutes = Column(Integer, nullable=False, default=45)
    is_serviceable = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<DeliveryArea {self.pincode} - {self.area_name}, {self.city}>"


class Order(Base):
    """
    Main Order table - a placed cart with customer and delivery details.

    Tracks the lifecycle from placement to delivery or cancellation.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_new_uuid)
    user_id = Column(String(64), nullable=True, index=True)

    # =========================================================================
    # CUSTOMER INFORMATION
    # =========================================================================
    customer_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False, index=True)
    email = Column(String(255), nullable=True)

    # =========================================================================
    # DELIVERY ADDRESS
    # =========================================================================
    delivery_address = Column(String(255), nullable=False)
    city = Column(String(60), nullable=False)
    pincode = Column(String(6), nullable=False)
    notes = Column(Text, nullable=True)

    # =========================================================================
    # ORDER DETAILS
    # =========================================================================
    items = Column(Text, nullable=False)  # JSON string of ordered lines

    # =========================================================================
    # PRICING
    # =========================================================================
    subtotal = Column(Float, nullable=False)
    delivery_fee = Column(Float, nullable=False, default=0.0)
    packaging_fee = Column(Float, nullable=False, default=0.0)
    total_amount = Column(Float, nullable=False)
    payment_method = Column(
        Enum(PaymentMethod),
        default=PaymentMethod.COD,
        nullable=False
    )

    # =========================================================================
    # ORDER STATUS
    # =========================================================================
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PLACED,
        nullable=False,
        index=True
    )
    estimated_delivery_time = Column(DateTime(timezone=True), nullable=True)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    # Microsecond resolution; history and admin listings sort on it
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # =========================================================================
    # EXCEL EXPORT TRACKING
    # =========================================================================
    exported_to_excel = Column(Boolean, default=False)

    @property
    def parsed_items(self) -> list[dict]:
        return parse_items(self.items)

    @property
    def item_count(self) -> int:
        return sum(int(line.get("quantity", 0)) for line in self.parsed_items)

    def __repr__(self):
        return f"<Order {self.id} - {self.customer_name} - {self.status.value}>"


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "dish_id", name="uq_favorite_user_dish"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    dish_id = Column(String(36), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Profile(Base):
    """Customer profile keyed by the upstream user id."""
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    default_address = Column(String(255), nullable=True)
    city = Column(String(60), nullable=True)
    pincode = Column(String(6), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    role = Column(Enum(UserRoleName), nullable=False, default=UserRoleName.USER)

"""
Pydantic Schemas for Request/Response Validation

Covers the menu, carts, checkout, order tracking, favorites,
profiles and the admin console.

Version: 1.0.0
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum
import re

from storefront.data.dishes import CATEGORY_IDS, REGIONS, DISH_TYPES
from storefront.models import OrderStatus, PaymentMethod


PINCODE_PATTERN = re.compile(r"^\d{6}$")
EMAIL_PATTERN = re.compile(r"^[\w\.\+-]+@[\w\.-]+\.\w+$")


def normalize_phone(value: str) -> str:
    """Strip separators and an optional +91 / 0 prefix from an Indian mobile number."""
    digits = re.sub(r"[^\d]", "", value)
    if len(digits) == 12 and digits.startswith("91"):
        digits = digits[2:]
    elif len(digits) == 11 and digits.startswith("0"):
        digits = digits[1:]
    if not re.match(r"^[6-9]\d{9}$", digits):
        raise ValueError("Phone number must be a 10-digit mobile number")
    return digits


def check_pincode(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not PINCODE_PATTERN.match(value):
        raise ValueError("Pincode must be exactly 6 digits")
    return value


def check_email(value: Optional[str]) -> Optional[str]:
    if value is None or value.strip() == "":
        return None
    value = value.strip()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email format")
    return value


# =============================================================================
# ENUMS
# =============================================================================

class MenuSort(str, Enum):
    DEFAULT = "default"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NAME = "name"
    POPULAR = "popular"


# =============================================================================
# MENU
# =============================================================================

class NutritionInfo(BaseModel):
    calories: Optional[int] = None
    protein: Optional[str] = None
    carbs: Optional[str] = None


class Dish(BaseModel):
    """A sellable dish, whichever catalog it came from."""
    id: str
    name: str
    local_name: Optional[str] = None
    description: Optional[str] = None
    price: float
    category: str
    region: str = "both"
    dish_type: str = "veg"
    image: Optional[str] = None
    popular: bool = False
    ingredients: List[str] = Field(default_factory=list)
    nutrition: NutritionInfo = Field(default_factory=NutritionInfo)


class Category(BaseModel):
    id: str
    name: str
    local_name: Optional[str] = None


class MenuResponse(BaseModel):
    total: int
    dishes: List[Dish]


class MenuItemCreate(BaseModel):
    """Admin request to add a dish to the menu_items table."""
    name: str = Field(..., min_length=2, max_length=120, examples=["Gongura Pachadi"])
    local_name: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = Field(None, max_length=1000)
    price: float = Field(..., gt=0, examples=[140.0])
    category: str = Field(..., examples=["pickles"])
    region: str = Field(default="both")
    dish_type: str = Field(default="veg")
    image: Optional[str] = Field(None, max_length=255)
    popular: bool = False
    is_available: bool = True
    ingredients: List[str] = Field(default_factory=list)
    calories: Optional[int] = Field(None, ge=0)
    protein: Optional[str] = Field(None, max_length=20)
    carbs: Optional[str] = Field(None, max_length=20)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if v not in CATEGORY_IDS:
            raise ValueError(f"Invalid category. Options: {CATEGORY_IDS}")
        return v

    @field_validator("region")
    @classmethod
    def validate_region(cls, v: str) -> str:
        if v not in REGIONS:
            raise ValueError(f"Invalid region. Options: {REGIONS}")
        return v

    @field_validator("dish_type")
    @classmethod
    def validate_dish_type(cls, v: str) -> str:
        if v not in DISH_TYPES:
            raise ValueError(f"Invalid dish type. Options: {DISH_TYPES}")
        return v


class MenuItemUpdate(BaseModel):
    """Partial update of a menu item; omitted fields are left unchanged."""
    name: Optional[str] = Field(None, min_length=2, max_length=120)
    local_name: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = Field(None, max_length=1000)
    price: Optional[float] = Field(None, gt=0)
    category: Optional[str] = None
    region: Optional[str] = None
    dish_type: Optional[str] = None
    image: Optional[str] = Field(None, max_length=255)
    popular: Optional[bool] = None
    is_available: Optional[bool] = None
    ingredients: Optional[List[str]] = None
    calories: Optional[int] = Field(None, ge=0)
    protein: Optional[str] = Field(None, max_length=20)
    carbs: Optional[str] = Field(None, max_length=20)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in CATEGORY_IDS:
            raise ValueError(f"Invalid category. Options: {CATEGORY_IDS}")
        return v

    @field_validator("region")
    @classmethod
    def validate_region(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in REGIONS:
            raise ValueError(f"Invalid region. Options: {REGIONS}")
        return v

    @field_validator("dish_type")
    @classmethod
    def validate_dish_type(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in DISH_TYPES:
            raise ValueError(f"Invalid dish type. Options: {DISH_TYPES}")
        return v


class MenuItemAdminResponse(Dish):
    is_available: bool = True


# =============================================================================
# CART
# =============================================================================

class CartLineResponse(BaseModel):
    dish_id: str
    name: str
    price: float
    category: Optional[str] = None
    dish_type: Optional[str] = None
    image: Optional[str] = None
    quantity: int
    line_total: float


class CartResponse(BaseModel):
    cart_id: str
    items: List[CartLineResponse]
    total_items: int
    total_price: float
    message: Optional[str] = None


class CartAddRequest(BaseModel):
    dish_id: str = Field(..., min_length=1, examples=["1"])


class CartQuantityRequest(BaseModel):
    quantity: int = Field(..., le=99, examples=[2])


# =============================================================================
# DELIVERY AREAS
# =============================================================================

class DeliveryAreaCreate(BaseModel):
    pincode: str = Field(..., examples=["500001"])
    area_name: str = Field(..., min_length=2, max_length=100, examples=["Abids"])
    city: str = Field(..., min_length=2, max_length=60, examples=["Hyderabad"])
    delivery_fee: float = Field(default=0.0, ge=0, examples=[30.0])
    estimated_delivery_minutes: int = Field(default=45, ge=1, examples=[45])
    is_serviceable: bool = True

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v: str) -> str:
        return check_pincode(v)


class DeliveryAreaUpdate(BaseModel):
    pincode: Optional[str] = None
    area_name: Optional[str] = Field(None, min_length=2, max_length=100)
    city: Optional[str] = Field(None, min_length=2, max_length=60)
    delivery_fee: Optional[float] = Field(None, ge=0)
    estimated_delivery_minutes: Optional[int] = Field(None, ge=1)
    is_serviceable: Optional[bool] = None

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v: Optional[str]) -> Optional[str]:
        return check_pincode(v)


class DeliveryAreaResponse(BaseModel):
    id: str
    pincode: str
    area_name: str
    city: str
    delivery_fee: float
    estimated_delivery_minutes: int
    is_serviceable: bool

    model_config = ConfigDict(from_attributes=True)


class ServiceabilityResponse(BaseModel):
    pincode: str
    is_serviceable: bool
    area_name: Optional[str] = None
    city: Optional[str] = None
    delivery_fee: Optional[float] = None
    estimated_delivery_minutes: Optional[int] = None
    message: Optional[str] = None


# =============================================================================
# CHECKOUT
# =============================================================================

class CheckoutRequest(BaseModel):
    """Request schema for placing the contents of a cart as an order."""
    cart_id: str = Field(..., min_length=1, max_length=64)
    customer_name: str = Field(..., min_length=2, max_length=100, examples=["Lakshmi Devi"])
    phone: str = Field(..., examples=["98765 43210"])
    email: Optional[str] = Field(None, examples=["lakshmi@example.com"])
    delivery_address: str = Field(..., min_length=5, max_length=255, examples=["12-3-45, Temple Street"])
    city: str = Field(..., min_length=2, max_length=60, examples=["Guntur"])
    pincode: str = Field(..., examples=["522001"])
    payment_method: PaymentMethod = Field(default=PaymentMethod.COD)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return normalize_phone(v)

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v: str) -> str:
        return check_pincode(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return check_email(v)


class CheckoutResponse(BaseModel):
    success: bool
    message: str
    order_id: str
    subtotal: float
    delivery_fee: float
    packaging_fee: float
    total_amount: float
    payment_method: str
    estimated_delivery_time: Optional[datetime] = None


# =============================================================================
# ORDERS & TRACKING
# =============================================================================

class OrderLine(BaseModel):
    dish_id: Optional[str] = None
    name: str
    price: float
    quantity: int
    line_total: float


class TrackingStage(BaseModel):
    status: str
    label: str
    completed: bool


class TrackingView(BaseModel):
    status: str
    label: str
    stage_index: int
    progress_percent: float
    is_cancelled: bool
    stages: List[TrackingStage]


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    id: str
    user_id: Optional[str] = None
    customer_name: str
    phone: str
    email: Optional[str] = None
    delivery_address: str
    city: str
    pincode: str
    notes: Optional[str] = None
    items: List[OrderLine]
    item_count: int
    subtotal: float
    delivery_fee: float
    packaging_fee: float
    total_amount: float
    payment_method: str
    status: str
    estimated_delivery_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tracking: TrackingView


class OrderSummary(BaseModel):
    id: str
    status: str
    total_amount: float
    item_count: int
    payment_method: str
    created_at: Optional[datetime] = None


class OrderHistoryResponse(BaseModel):
    total: int
    orders: List[OrderSummary]


class OrderListResponse(BaseModel):
    """Response for listing multiple orders."""
    total: int
    orders: List[OrderResponse]


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


# =============================================================================
# FAVORITES
# =============================================================================

class FavoritesResponse(BaseModel):
    dish_ids: List[str]
    dishes: List[Dish]


class FavoriteToggleResponse(BaseModel):
    dish_id: str
    is_favorite: bool
    message: str


class FavoritesToCartRequest(BaseModel):
    cart_id: str = Field(..., min_length=1, max_length=64)


# =============================================================================
# PROFILES & USERS
# =============================================================================

class ProfileResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    default_address: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = None
    default_address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=60)
    pincode: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v.strip() == "":
            return None
        return normalize_phone(v)

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.strip() == "":
            return None
        return check_pincode(v)


class AdminUserResponse(ProfileResponse):
    is_admin: bool = False
    order_count: int = 0
    created_at: Optional[datetime] = None


# =============================================================================
# ADMIN STATS
# =============================================================================

class StatsResponse(BaseModel):
    total_orders: int
    total_revenue: float
    pending_orders: int
    completed_orders: int
    cancelled_orders: int
    avg_order_value: float
    orders_by_status: dict[str, int]


# =============================================================================
# GENERIC
# =============================================================================

class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    notification_service: str
    catalog_service: str
    timestamp: datetime

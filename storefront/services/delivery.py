"""
Delivery Serviceability and Pricing

Checks a pincode against the delivery_areas table before checkout and
computes order totals (items + delivery fee + packaging fee).

Use Cases:
    - Pincode lookup on the checkout page
    - Gate for order placement
    - Fee and delivery-time lookup for the order record

Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import get_settings
from storefront.models import DeliveryArea
from storefront.schemas import PINCODE_PATTERN
from storefront.services.cart_store import CartLine

logger = logging.getLogger(__name__)


@dataclass
class ServiceabilityResult:
    """
    Standardized result from a pincode lookup.

    Attributes:
        is_valid: Pincode is well formed
        is_serviceable: An active delivery area covers the pincode
        pincode: The pincode that was checked
        area_name: Name of the matching area
        city: City of the matching area
        delivery_fee: Fee charged for the area
        estimated_delivery_minutes: Promised delivery time
        error_message: Customer-facing reason when not serviceable
        error_code: Machine-readable error code
    """
    is_valid: bool
    is_serviceable: bool = False
    pincode: Optional[str] = None
    area_name: Optional[str] = None
    city: Optional[str] = None
    delivery_fee: Optional[float] = None
    estimated_delivery_minutes: Optional[int] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "is_valid": self.is_valid,
            "is_serviceable": self.is_serviceable,
            "pincode": self.pincode,
            "area_name": self.area_name,
            "city": self.city,
            "delivery_fee": self.delivery_fee,
            "estimated_delivery_minutes": self.estimated_delivery_minutes,
            "error_message": self.error_message,
            "error_code": self.error_code,
        }


async def check_serviceability(pincode: str, db: AsyncSession) -> ServiceabilityResult:
    """
    Look up a pincode in the delivery_areas table.

    Validation rules:
        1. Pincode must be exactly six digits
        2. A delivery area must exist for the pincode
        3. The area must be marked serviceable
    """
    pincode = (pincode or "").strip()

    if not PINCODE_PATTERN.match(pincode):
        return ServiceabilityResult(
            is_valid=False,
            pincode=pincode,
            error_message="Please enter a valid 6-digit pincode",
            error_code="invalid_pincode",
        )

    result = await db.execute(select(DeliveryArea).where(DeliveryArea.pincode == pincode))
    area = result.scalar_one_or_none()

    if area is None:
        logger.debug(f"Pincode {pincode} has no delivery area")
        return ServiceabilityResult(
            is_valid=True,
            pincode=pincode,
            error_message=f"Sorry, we don't deliver to pincode {pincode} yet",
            error_code="not_serviceable",
        )

    if not area.is_serviceable:
        logger.debug(f"Pincode {pincode} area {area.area_name} is inactive")
        return ServiceabilityResult(
            is_valid=True,
            pincode=pincode,
            area_name=area.area_name,
            city=area.city,
            error_message=f"Delivery to {area.area_name} is temporarily unavailable",
            error_code="area_inactive",
        )

    return ServiceabilityResult(
        is_valid=True,
        is_serviceable=True,
        pincode=pincode,
        area_name=area.area_name,
        city=area.city,
        delivery_fee=area.delivery_fee,
        estimated_delivery_minutes=area.estimated_delivery_minutes,
    )


def calculate_order_totals(
    lines: Iterable[CartLine],
    delivery_fee: float,
    packaging_fee: Optional[float] = None,
) -> dict[str, float]:
    """Calculate order subtotal, fees and total."""
    if packaging_fee is None:
        packaging_fee = get_settings().packaging_fee

    subtotal = round(sum(line.price * line.quantity for line in lines), 2)
    total = round(subtotal + delivery_fee + packaging_fee, 2)

    return {
        "subtotal": subtotal,
        "delivery_fee": round(delivery_fee, 2),
        "packaging_fee": round(packaging_fee, 2),
        "total_amount": total,
    }

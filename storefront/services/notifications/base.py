"""
Notification Service Abstract Base Class

Defines interface for sending SMS and Email notifications about orders.
Supports both Mock (development) and Real (production) implementations.

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_sms(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Send an SMS message."""
        pass

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    @abstractmethod
    async def send_order_confirmation(
        self,
        order_id: str,
        customer_name: str,
        customer_email: Optional[str],
        customer_phone: str,
        order_summary: str,
        total_amount: float,
        delivery_address: str,
        estimated_delivery: Optional[str] = None,
    ) -> NotificationResult:
        """Send order confirmation via SMS and, when known, email."""
        pass

    @abstractmethod
    async def send_status_update(
        self,
        order_id: str,
        customer_name: str,
        customer_email: Optional[str],
        customer_phone: str,
        status: str,
    ) -> NotificationResult:
        """Tell the customer their order moved to a new status."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass


def build_confirmation_message(
    store_name: str,
    currency: str,
    order_id: str,
    customer_name: str,
    total_amount: float,
    delivery_address: str,
    estimated_delivery: Optional[str] = None,
) -> str:
    lines = [
        f"Hi {customer_name}! Your order #{order_id[:8]} has been placed.",
        f"Delivery to: {delivery_address}",
        f"Total: {currency}{total_amount:.2f} (Cash on Delivery)",
    ]
    if estimated_delivery:
        lines.append(f"Expected by: {estimated_delivery}")
    lines.append(f"Thank you for ordering from {store_name}!")
    return "\n".join(lines)


def build_status_message(store_name: str, order_id: str, customer_name: str, status_text: str) -> str:
    return f"Hi {customer_name}, order #{order_id[:8]}: {status_text} - {store_name}"

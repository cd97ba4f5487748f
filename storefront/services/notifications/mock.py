"""
Mock Notification Service

Simulates SMS and Email sending for development.
No actual messages are sent - just logged.

Version: 1.0.0
"""

import asyncio
import random
import uuid
import logging
from typing import Optional

from storefront.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
    build_confirmation_message,
    build_status_message,
)
from storefront.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class MockNotificationService(BaseNotificationService):
    """Mock notification service for development."""

    def __init__(
        self,
        failure_rate: float = 0.05,
        min_latency: float = 0.1,
        max_latency: float = 0.3,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max(min_latency, max_latency)
        self.sent: list[dict] = []
        logger.info(f"MockNotificationService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> None:
        """Simulate network latency."""
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send_sms(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Simulate sending SMS."""
        await self._simulate_latency()

        if self._should_fail():
            logger.warning(f"Mock SMS failed (simulated) to {to_phone}")
            return NotificationResult(
                success=False,
                error_message="Simulated SMS failure",
                provider="mock"
            )

        message_id = f"sms_mock_{uuid.uuid4().hex[:12]}"
        self.sent.append({"channel": "sms", "to": to_phone, "body": message, "id": message_id})
        logger.info(f"Mock SMS sent to {to_phone}: {message[:50]}... (ID: {message_id})")

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Simulate sending email."""
        await self._simulate_latency()

        if self._should_fail():
            logger.warning(f"Mock email failed (simulated) to {to_email}")
            return NotificationResult(
                success=False,
                error_message="Simulated email failure",
                provider="mock"
            )

        message_id = f"email_mock_{uuid.uuid4().hex[:12]}"
        self.sent.append({"channel": "email", "to": to_email, "body": subject, "id": message_id})
        logger.info(f"Mock email sent to {to_email}: {subject} (ID: {message_id})")

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

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
        """Send order confirmation."""
        message = build_confirmation_message(
            settings.store_name,
            settings.currency_symbol,
            order_id,
            customer_name,
            total_amount,
            delivery_address,
            estimated_delivery,
        )

        sms_result = await self.send_sms(customer_phone, message)

        email_result = None
        if customer_email:
            email_result = await self.send_email(
                to_email=customer_email,
                subject=f"Order Placed #{order_id[:8]} - {settings.store_name}",
                body_html=f"<h1>Order Placed!</h1><p>{message}</p><p>{order_summary}</p>",
                body_text=message
            )

        return NotificationResult(
            success=sms_result.success or bool(email_result and email_result.success),
            message_id=sms_result.message_id,
            provider="mock"
        )

    async def send_status_update(
        self,
        order_id: str,
        customer_name: str,
        customer_email: Optional[str],
        customer_phone: str,
        status: str,
    ) -> NotificationResult:
        """Send a status change notice."""
        message = build_status_message(settings.store_name, order_id, customer_name, status)
        sms_result = await self.send_sms(customer_phone, message)

        email_result = None
        if customer_email:
            email_result = await self.send_email(
                to_email=customer_email,
                subject=f"Order #{order_id[:8]} update - {settings.store_name}",
                body_html=f"<p>{message}</p>",
                body_text=message,
            )

        return NotificationResult(
            success=sms_result.success or bool(email_result and email_result.success),
            message_id=sms_result.message_id,
            provider="mock"
        )

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True

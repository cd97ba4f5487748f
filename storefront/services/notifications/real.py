"""
Real Notification Service

Production implementation using:
- Twilio for SMS
- SendGrid for Email

Version: 1.0.0
"""

import asyncio
import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from twilio.rest import Client as TwilioClient
from twilio.base.exceptions import TwilioException

from storefront.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
    build_confirmation_message,
    build_status_message,
)
from storefront.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class RealNotificationService(BaseNotificationService):
    """Production notification service using Twilio and SendGrid."""

    def __init__(self):
        # Initialize Twilio
        if settings.twilio_account_sid and settings.twilio_auth_token:
            self.twilio_client = TwilioClient(
                settings.twilio_account_sid,
                settings.twilio_auth_token
            )
            self.twilio_from_number = settings.twilio_phone_number
        else:
            self.twilio_client = None
            logger.warning("Twilio credentials not configured")

        # Initialize SendGrid
        if settings.sendgrid_api_key:
            self.sendgrid_client = SendGridAPIClient(settings.sendgrid_api_key)
            self.sendgrid_from_email = settings.sendgrid_from_email
        else:
            self.sendgrid_client = None
            logger.warning("SendGrid credentials not configured")

        logger.info("RealNotificationService initialized")

    @property
    def provider_name(self) -> str:
        return "real"

    @staticmethod
    def _e164(phone: str) -> str:
        """Stored phones are bare 10-digit Indian mobiles."""
        return phone if phone.startswith("+") else f"+91{phone}"

    async def send_sms(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Send SMS via Twilio."""
        if not self.twilio_client:
            return NotificationResult(
                success=False,
                error_message="Twilio not configured",
                provider="twilio"
            )

        try:
            # The Twilio client is blocking
            result = await asyncio.to_thread(
                self.twilio_client.messages.create,
                body=message,
                from_=self.twilio_from_number,
                to=self._e164(to_phone),
            )

            logger.info(f"SMS sent to {to_phone}: {result.sid}")

            return NotificationResult(
                success=True,
                message_id=result.sid,
                provider="twilio"
            )

        except TwilioException as e:
            logger.error(f"Twilio error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="twilio"
            )

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send email via SendGrid."""
        if not self.sendgrid_client:
            return NotificationResult(
                success=False,
                error_message="SendGrid not configured",
                provider="sendgrid"
            )

        try:
            message = Mail(
                from_email=self.sendgrid_from_email,
                to_emails=to_email,
                subject=subject,
                html_content=body_html,
                plain_text_content=body_text
            )

            response = await asyncio.to_thread(self.sendgrid_client.send, message)

            logger.info(f"Email sent to {to_email}: {response.status_code}")

            return NotificationResult(
                success=response.status_code in [200, 201, 202],
                message_id=response.headers.get('X-Message-Id'),
                provider="sendgrid"
            )

        except Exception as e:
            logger.error(f"SendGrid error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="sendgrid"
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
        """Send order confirmation via SMS and email."""
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
            email_html = f"""
            <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
                <h1 style="color: #d35400;">Order Placed!</h1>
                <p>Hi {customer_name},</p>
                <p>Your order <strong>#{order_id[:8]}</strong> has been placed.</p>
                <div style="background: #fdf6ec; padding: 15px; border-radius: 8px; margin: 20px 0;">
                    <p>{order_summary}</p>
                    <p><strong>Delivery to: {delivery_address}</strong></p>
                    <p>Total: <strong>{settings.currency_symbol}{total_amount:.2f}</strong></p>
                </div>
                <p>Thank you for ordering from {settings.store_name}!</p>
            </div>
            """
            email_result = await self.send_email(
                to_email=customer_email,
                subject=f"Order Placed #{order_id[:8]} - {settings.store_name}",
                body_html=email_html,
                body_text=message
            )

        return NotificationResult(
            success=sms_result.success or bool(email_result and email_result.success),
            message_id=sms_result.message_id,
            provider="real"
        )

    async def send_status_update(
        self,
        order_id: str,
        customer_name: str,
        customer_email: Optional[str],
        customer_phone: str,
        status: str,
    ) -> NotificationResult:
        """Send a status change notice via SMS and email."""
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
            provider="real"
        )

    async def health_check(self) -> bool:
        """Healthy when at least one channel is configured."""
        return self.twilio_client is not None or self.sendgrid_client is not None

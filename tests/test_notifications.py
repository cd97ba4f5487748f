import pytest

from storefront.services.notifications import MockNotificationService
from storefront.services.notifications.base import build_status_message


@pytest.fixture
def notifier():
    return MockNotificationService(failure_rate=0.0, min_latency=0.0, max_latency=0.0)


@pytest.mark.asyncio
async def test_confirmation_goes_out_by_sms_and_email(notifier):
    result = await notifier.send_order_confirmation(
        order_id="3f2a9c1e-0000-0000-0000-000000000000",
        customer_name="Lakshmi",
        customer_email="lakshmi@example.com",
        customer_phone="9876543210",
        order_summary="Biryani x 2",
        total_amount=630.0,
        delivery_address="Temple Street, Hyderabad 500001",
        estimated_delivery="07:30 PM",
    )

    assert result.success is True
    assert [sent["channel"] for sent in notifier.sent] == ["sms", "email"]
    sms = notifier.sent[0]["body"]
    assert "#3f2a9c1e" in sms
    assert "630.00" in sms
    assert "07:30 PM" in sms


@pytest.mark.asyncio
async def test_status_update_without_email_is_sms_only(notifier):
    result = await notifier.send_status_update(
        order_id="abc12345xyz",
        customer_name="Ravi",
        customer_email=None,
        customer_phone="9876543210",
        status="Your order is out for delivery.",
    )

    assert result.success is True
    assert len(notifier.sent) == 1
    assert notifier.sent[0]["to"] == "9876543210"


@pytest.mark.asyncio
async def test_simulated_failure():
    notifier = MockNotificationService(failure_rate=1.0, min_latency=0.0, max_latency=0.0)

    result = await notifier.send_sms("9876543210", "hello")

    assert result.success is False
    assert notifier.sent == []


def test_status_message_uses_short_order_id():
    message = build_status_message("Amma Inti Vantalu", "abc12345xyz", "Ravi", "Delivered")
    assert message == "Hi Ravi, order #abc12345: Delivered - Amma Inti Vantalu"

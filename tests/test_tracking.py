import pytest

from storefront.models import OrderStatus
from storefront.services.tracking import (
    OrderEventBroker,
    OrderTracker,
    build_tracking_view,
    progress_percent,
    stage_index,
)


@pytest.mark.parametrize(
    "status, index, percent",
    [
        ("placed", 0, 0.0),
        ("confirmed", 1, 33.3),
        ("preparing", 1, 33.3),
        ("out_for_delivery", 2, 66.7),
        ("delivered", 3, 100.0),
        ("cancelled", -1, 0.0),
    ],
)
def test_stage_index_and_progress(status, index, percent):
    assert stage_index(status) == index
    assert progress_percent(status) == percent


def test_tracking_view_marks_completed_stages():
    view = build_tracking_view(OrderStatus.OUT_FOR_DELIVERY)

    assert view["label"] == "Out for Delivery"
    assert view["is_cancelled"] is False
    assert [stage["completed"] for stage in view["stages"]] == [True, True, True, False]


def test_cancelled_view_has_no_completed_stages():
    view = build_tracking_view("cancelled")

    assert view["is_cancelled"] is True
    assert not any(stage["completed"] for stage in view["stages"])


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        stage_index("lost")


def test_tracker_notifies_only_on_status_change():
    tracker = OrderTracker("order-1")

    first = tracker.apply({"id": "order-1", "status": "placed", "total_amount": 630.0})
    assert first.changed is False
    assert first.notification is None

    same = tracker.apply({"status": "placed"})
    assert same.changed is False

    moved = tracker.apply({"status": "preparing"})
    assert moved.changed is True
    assert moved.previous_status == "placed"
    assert moved.notification["title"] == "Preparing"
    assert moved.order["total_amount"] == 630.0

    message = moved.to_dict()
    assert message["type"] == "order_update"
    assert message["tracking"]["stage_index"] == 1


@pytest.mark.asyncio
async def test_broker_fans_out_to_every_subscriber():
    broker = OrderEventBroker()

    async with broker.subscribe("order-1") as first, broker.subscribe("order-1") as second:
        assert broker.subscriber_count("order-1") == 2
        assert broker.publish("order-1", {"status": "preparing"}) == 2
        assert broker.publish("order-2", {"status": "delivered"}) == 0

        assert (await first.get())["status"] == "preparing"
        assert (await second.get())["status"] == "preparing"

    assert broker.subscriber_count("order-1") == 0


@pytest.mark.asyncio
async def test_broker_drops_oldest_update_when_queue_full():
    broker = OrderEventBroker(max_queue_size=2)

    async with broker.subscribe("order-1") as queue:
        for status in ("confirmed", "preparing", "out_for_delivery"):
            broker.publish("order-1", {"status": status})

        assert queue.qsize() == 2
        assert (await queue.get())["status"] == "preparing"
        assert (await queue.get())["status"] == "out_for_delivery"

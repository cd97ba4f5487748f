"""
Order Tracking

Maps order statuses onto the fixed delivery progression shown to
customers, and fans order row updates out to live subscribers.

Pieces:
    - TRACKING_STAGES / build_tracking_view: status -> progress view
    - OrderEventBroker: in-process publish/subscribe keyed by order id
    - OrderTracker: per-subscriber state that flags status transitions
      and produces the customer notification for them

Version: 1.0.0
"""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, AsyncIterator, Optional

from storefront.models import OrderStatus

logger = logging.getLogger(__name__)


# =============================================================================
# STAGES
# =============================================================================

TRACKING_STAGES = [
    (OrderStatus.PLACED, "Order Placed"),
    (OrderStatus.PREPARING, "Preparing"),
    (OrderStatus.OUT_FOR_DELIVERY, "Out for Delivery"),
    (OrderStatus.DELIVERED, "Delivered"),
]

# Confirmed orders sit on the same step as preparing ones
_STAGE_INDEX = {
    OrderStatus.PLACED: 0,
    OrderStatus.CONFIRMED: 1,
    OrderStatus.PREPARING: 1,
    OrderStatus.OUT_FOR_DELIVERY: 2,
    OrderStatus.DELIVERED: 3,
    OrderStatus.CANCELLED: -1,
}

STATUS_LABELS = {
    OrderStatus.PLACED: "Order Placed",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}

STATUS_MESSAGES = {
    OrderStatus.PLACED: "Your order has been placed. We'll start cooking soon!",
    OrderStatus.CONFIRMED: "Your order has been confirmed by the kitchen.",
    OrderStatus.PREPARING: "Your food is being freshly prepared.",
    OrderStatus.OUT_FOR_DELIVERY: "Your order is out for delivery.",
    OrderStatus.DELIVERED: "Your order has been delivered. Enjoy your meal!",
    OrderStatus.CANCELLED: "Your order has been cancelled.",
}


def _as_status(status: Any) -> OrderStatus:
    return status if isinstance(status, OrderStatus) else OrderStatus(status)


def stage_index(status: Any) -> int:
    """Position of a status in TRACKING_STAGES; -1 for cancelled orders."""
    return _STAGE_INDEX[_as_status(status)]


def progress_percent(status: Any) -> float:
    index = stage_index(status)
    if index < 0:
        return 0.0
    return round(index / (len(TRACKING_STAGES) - 1) * 100, 1)


def build_tracking_view(status: Any) -> dict[str, Any]:
    """Progress view for one status, shaped like schemas.TrackingView."""
    status = _as_status(status)
    index = stage_index(status)
    return {
        "status": status.value,
        "label": STATUS_LABELS[status],
        "stage_index": index,
        "progress_percent": progress_percent(status),
        "is_cancelled": status == OrderStatus.CANCELLED,
        "stages": [
            {"status": stage.value, "label": label, "completed": i <= index}
            for i, (stage, label) in enumerate(TRACKING_STAGES)
        ],
    }


# =============================================================================
# BROKER
# =============================================================================

class OrderEventBroker:
    """
    Fan-out of order row updates to subscribers of that order.

    Each subscriber owns a bounded queue; when a slow subscriber's queue
    is full the oldest pending update is dropped.
    """

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)

    @asynccontextmanager
    async def subscribe(self, order_id: str) -> AsyncIterator[asyncio.Queue]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers[order_id].add(queue)
        logger.debug(f"Subscriber added for order {order_id}")
        try:
            yield queue
        finally:
            subscribers = self._subscribers.get(order_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[order_id]
            logger.debug(f"Subscriber removed for order {order_id}")

    def publish(self, order_id: str, payload: dict[str, Any]) -> int:
        """
        Queue a row update for every subscriber of the order.

        Returns:
            Number of subscribers the update was queued for
        """
        subscribers = list(self._subscribers.get(order_id, ()))
        for queue in subscribers:
            if queue.full():
                queue.get_nowait()
                logger.warning(f"Dropped stale update for order {order_id}")
            queue.put_nowait(payload)
        return len(subscribers)

    def subscriber_count(self, order_id: str) -> int:
        return len(self._subscribers.get(order_id, ()))


@lru_cache()
def get_order_broker() -> OrderEventBroker:
    """Process-wide broker shared by the admin routes and the websocket."""
    return OrderEventBroker()


# =============================================================================
# TRACKER
# =============================================================================

@dataclass
class TrackingUpdate:
    """One update as delivered to a tracking subscriber."""
    order: dict[str, Any]
    tracking: dict[str, Any]
    changed: bool
    previous_status: Optional[str] = None
    notification: Optional[dict[str, str]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "order_update",
            "order": self.order,
            "tracking": self.tracking,
            "changed": self.changed,
            "previous_status": self.previous_status,
            "notification": self.notification,
        }


@dataclass
class OrderTracker:
    """
    Tracks one order for one subscriber.

    Each incoming row snapshot is merged over the last one; a notification
    is attached only when the status differs from the previous snapshot.
    """
    order_id: str
    order: dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> Optional[str]:
        return self.order.get("status")

    def apply(self, payload: dict[str, Any]) -> TrackingUpdate:
        previous = self.status
        self.order = {**self.order, **payload}
        current = _as_status(self.order["status"])

        changed = previous is not None and previous != current.value
        notification = None
        if changed:
            notification = {
                "title": STATUS_LABELS[current],
                "message": STATUS_MESSAGES[current],
            }
            logger.info(f"Order {self.order_id}: {previous} -> {current.value}")

        return TrackingUpdate(
            order=self.order,
            tracking=build_tracking_view(current),
            changed=changed,
            previous_status=previous,
            notification=notification,
        )

"""Event handlers for Orders domain events.

Notification delivery (SMS, WhatsApp, e-mail) is out of scope for the
order core; handlers record a structured dispatch line instead.
"""

from __future__ import annotations

import structlog

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from shared.domain.bus import IEventBus, IEventHandler

logger = structlog.get_logger(__name__)

# Statuses the customer is told about
CUSTOMER_NOTIFIED_STATUSES = frozenset(
    {
        OrderStatus.CONFIRMED,
        OrderStatus.READY,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    }
)


def dispatch_notification(channel: str, template: str, event_name: str, **context) -> None:
    logger.info(
        "notification.dispatched",
        channel=channel,
        template=template,
        source_event=event_name,
        **context,
    )


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        order_id = str(event.aggregate_id)
        dispatch_notification(
            "merchant_dashboard",
            "new_order",
            event.event_name,
            order_id=order_id,
            order_number=event.data.get("order_number"),
            merchant_id=event.data.get("merchant_id"),
        )
        dispatch_notification(
            "sms",
            "order_received",
            event.event_name,
            order_id=order_id,
            order_number=event.data.get("order_number"),
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        new_status = event.data.get("to")
        if new_status not in CUSTOMER_NOTIFIED_STATUSES:
            logger.debug(
                "notification.skipped",
                order_id=str(event.aggregate_id),
                status=new_status,
            )
            return
        dispatch_notification(
            "sms",
            f"order_{str(new_status).lower()}",
            event.event_name,
            order_id=str(event.aggregate_id),
            order_number=event.data.get("order_number"),
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        dispatch_notification(
            "sms",
            "order_cancelled",
            event.event_name,
            order_id=str(event.aggregate_id),
            order_number=event.data.get("order_number"),
            reason=event.data.get("reason", ""),
        )


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()


def register_handlers(bus: IEventBus) -> None:
    """Subscribe the order notification handlers; safe to call more than once."""
    bus.subscribe(OrderCreated, order_created_handler)
    bus.subscribe(OrderStatusChanged, order_status_changed_handler)
    bus.subscribe(OrderCancelled, order_cancelled_handler)

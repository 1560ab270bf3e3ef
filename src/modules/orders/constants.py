"""Order domain constants.

Status, fulfilment and payment enums plus the transition table of the
order state machine, expressed as target -> allowed source statuses.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    PREPARING = "PREPARING", "Preparing"
    READY = "READY", "Ready"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY", "Out for delivery"
    DELIVERED = "DELIVERED", "Delivered"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"
    REFUNDED = "REFUNDED", "Refunded"


class DeliveryMethod(models.TextChoices):
    DELIVERY = "DELIVERY", "Delivery"
    PICKUP = "PICKUP", "Pickup"
    DINE_IN = "DINE_IN", "Dine in"


class PaymentMethod(models.TextChoices):
    PAYNOW = "PAYNOW", "PayNow"
    CASH = "CASH", "Cash"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"
    REFUNDED = "REFUNDED", "Refunded"


ALLOWED_SOURCES: dict[str, frozenset[str]] = {
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PENDING}),
    OrderStatus.PREPARING: frozenset({OrderStatus.CONFIRMED}),
    OrderStatus.READY: frozenset({OrderStatus.CONFIRMED, OrderStatus.PREPARING}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.READY}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.READY, OrderStatus.OUT_FOR_DELIVERY}),
    OrderStatus.COMPLETED: frozenset(
        {OrderStatus.READY, OrderStatus.DELIVERED, OrderStatus.OUT_FOR_DELIVERY}
    ),
    OrderStatus.CANCELLED: frozenset(
        {
            OrderStatus.PENDING,
            OrderStatus.CONFIRMED,
            OrderStatus.PREPARING,
            OrderStatus.READY,
            OrderStatus.OUT_FOR_DELIVERY,
        }
    ),
    OrderStatus.REFUNDED: frozenset({OrderStatus.COMPLETED, OrderStatus.DELIVERED}),
}

# Reachable only by orders with delivery_method == DELIVERY
DELIVERY_ONLY_TARGETS: frozenset[str] = frozenset(
    {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED}
)

TERMINAL_STATES: frozenset[str] = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
)

STATUS_TIMESTAMP_FIELDS: dict[str, str] = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.PREPARING: "preparing_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.OUT_FOR_DELIVERY: "out_for_delivery_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
    OrderStatus.REFUNDED: "refunded_at",
}

ORDER_NUMBER_PREFIX = "ORD"
ORDER_NUMBER_MAX_RETRIES = 5

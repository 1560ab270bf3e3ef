"""Order, OrderItem and OrderEvent models.

- Orders are created once, from a completed checkout session, and are
  never deleted; cancellation and refund are statuses.
- ``order_number`` is ``ORD`` + base-36 millisecond timestamp + two
  random base-36 characters, regenerated on collision.
- Status changes go through ``OrderService`` which updates the row
  conditionally on the expected current status.
- OrderItem snapshots product name and price; ``total`` is always
  ``product_price * quantity``.
- OrderEvent is the append-only audit trail, read in creation order.
"""

from __future__ import annotations

import secrets
import string
import time
from decimal import Decimal
from typing import Any

import structlog
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import AppendOnlyModel, BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    ORDER_NUMBER_PREFIX,
    TERMINAL_STATES,
    DeliveryMethod,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from modules.orders.state_machine import can_transition
from modules.orders.variants import normalise_variant
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def _money_field(**kwargs: Any) -> models.DecimalField:
    return models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        **kwargs,
    )


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root."""

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    merchant = models.ForeignKey(
        "merchants.Merchant",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
        null=True,
        blank=True,
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    delivery_method = models.CharField(
        max_length=20,
        choices=DeliveryMethod.choices,
        default=DeliveryMethod.PICKUP,
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.PAYNOW,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )

    subtotal = _money_field()
    delivery_fee = _money_field()
    discount = _money_field()
    tax = _money_field()
    total = _money_field()

    customer_name = models.CharField(max_length=255)
    customer_phone = models.CharField(max_length=20)
    customer_email = models.EmailField(blank=True, default="")
    delivery_address = models.ForeignKey(
        "customers.Address",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )
    delivery_notes = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")

    payment_reference = models.CharField(max_length=32, blank=True, default="", db_index=True)
    payment_proof_url = models.URLField(max_length=500, blank=True, default="")
    payment_confirmed_at = models.DateTimeField(null=True, blank=True)
    payment_confirmed_by = models.CharField(max_length=255, blank=True, default="")
    cancellation_reason = models.TextField(blank=True, default="")

    confirmed_at = models.DateTimeField(null=True, blank=True)
    preparing_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    out_for_delivery_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["merchant", "status"], name="orders_merchant_status_idx"),
            models.Index(fields=["merchant", "-created_at"], name="orders_merchant_created_idx"),
            models.Index(fields=["payment_status"], name="orders_payment_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(total__gte=0),
                name="orders_total_non_negative",
            ),
            models.CheckConstraint(
                check=(
                    models.Q(delivery_method=DeliveryMethod.DELIVERY)
                    | models.Q(delivery_address__isnull=True)
                ),
                name="orders_address_only_for_delivery",
            ),
        ]

    # ------------------------------------------------------------------
    # State machine helpers
    # ------------------------------------------------------------------

    @property
    def is_pickup(self) -> bool:
        return self.delivery_method != DeliveryMethod.DELIVERY

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        return can_transition(self.status, new_status, self.is_pickup)

    # ------------------------------------------------------------------
    # Order number
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        millis = int(time.time() * 1000)
        suffix = "".join(secrets.choice(_BASE36) for _ in range(2))
        return f"{ORDER_NUMBER_PREFIX}{to_base36(millis)}{suffix}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate a unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "merchants.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=255)
    product_price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    total = models.DecimalField(max_digits=10, decimal_places=2, editable=False)
    variant = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True, default="")
    is_prepared = models.BooleanField(default=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.variant = normalise_variant(self.variant)
        self.total = self.product_price * self.quantity
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} (${self.total})"


class OrderEvent(AppendOnlyModel):
    """Audit entry: ``status_changed``, ``payment_verified``, ``payment_rejected``..."""

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="events",
    )
    event = models.CharField(max_length=50)
    data = models.JSONField(default=dict, blank=True)
    actor = models.CharField(max_length=255, null=True, blank=True)  # noqa: DJ01

    class Meta:
        db_table = "order_events"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="order_events_order_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.event}"

"""Order service layer (Use Cases).

Owns the order lifecycle after checkout: the state machine, the audit
trail and the merchant-facing queries.  Every write is atomic and the
service defines the unit-of-work boundary.

Status changes use optimistic concurrency instead of row locks: the new
status is written with ``WHERE status = <expected>``; if another request
moved the order first, zero rows match and the caller gets
``InvalidOrderStatus`` with the order left as the winner wrote it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

import structlog
from django.conf import settings
from django.db import models, transaction
from django.utils import timezone

from modules.customers.dtos import normalise_phone
from modules.orders.constants import STATUS_TIMESTAMP_FIELDS, OrderStatus
from modules.orders.dtos import BulkFailureDTO, BulkUpdateResultDTO
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    BulkLimitExceeded,
    InvalidOrderStatus,
    OrderClosed,
    OrderItemNotFound,
    OrderNotFound,
    UnknownOrderStatus,
)
from shared.domain.exceptions import DomainError

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order, OrderItem
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def parse_status(value: Any) -> str:
    """Normalise a client-supplied status; unknown values are a validation error."""
    candidate = str(value or "").strip().upper()
    if candidate not in OrderStatus.values:
        raise UnknownOrderStatus(f"Unknown order status '{value}'.", attr="status")
    return candidate


class OrderService:
    """Application service for Order use-cases.

    Receives its repository via constructor injection (DIP).
    """

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, actor: Optional[str] = None) -> Order:
        """Persist a fully priced order (called by checkout completion)."""
        order = self._order_repo.create(dto)

        self._order_repo.add_event(
            order.id,
            "order_created",
            {
                "status": order.status,
                "total": order.total,
                "delivery_method": order.delivery_method,
                "payment_reference": order.payment_reference,
            },
            actor=actor,
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                data={
                    "order_number": order.order_number,
                    "merchant_id": str(order.merchant_id),
                    "total": str(order.total),
                    "delivery_method": order.delivery_method,
                },
            )
        )
        self._order_repo.record_domain_events(order)

        logger.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            merchant_id=str(order.merchant_id),
            total=str(order.total),
        )
        return order

    def apply_transition(
        self,
        order: Order,
        new_status: str,
        actor: Optional[str] = None,
        notes: str = "",
        changes: Optional[Dict[str, Any]] = None,
        audit_event: str = "status_changed",
        audit_data: Optional[Dict[str, Any]] = None,
    ) -> Order:
        """Move ``order`` to ``new_status`` with extra column ``changes``.

        Must run inside a transaction: the conditional update, the audit
        entry and the outbox rows commit together.  Payment verification
        and rejection reuse this with their own audit event.

        Raises:
            InvalidOrderStatus: the table forbids the move, or the stored
                status no longer matches ``order.status``.
        """
        previous = order.status
        log = logger.bind(
            order_id=str(order.id),
            current_status=previous,
            new_status=new_status,
        )

        if not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot change order {order.order_number} from {previous} to {new_status}.",
                attr="status",
                current_status=previous,
                requested_status=new_status,
            )

        values: Dict[str, Any] = {"status": new_status, **(changes or {})}
        timestamp_field = STATUS_TIMESTAMP_FIELDS.get(new_status)
        if timestamp_field:
            values[timestamp_field] = timezone.now()

        if not self._order_repo.compare_and_set(order.id, previous, values):
            log.warning("order.concurrent_update")
            raise InvalidOrderStatus(
                f"Order {order.order_number} was updated by another request.",
                attr="status",
                current_status=previous,
                requested_status=new_status,
            )

        for field_name, value in values.items():
            setattr(order, field_name, value)

        self._order_repo.add_event(
            order.id,
            audit_event,
            {"from": previous, "to": new_status, "notes": notes, **(audit_data or {})},
            actor=actor,
        )

        event_data = {
            "from": previous,
            "to": new_status,
            "order_number": order.order_number,
            "merchant_id": str(order.merchant_id),
        }
        order.add_domain_event(OrderStatusChanged(aggregate_id=order.id, data=event_data))
        if new_status == OrderStatus.CANCELLED:
            order.add_domain_event(
                OrderCancelled(
                    aggregate_id=order.id,
                    data={**event_data, "reason": order.cancellation_reason},
                )
            )
        self._order_repo.record_domain_events(order)

        log.info("order.status_updated", actor=actor)
        return order

    @transaction.atomic
    def update_status(
        self,
        order_id: Any,
        new_status: Any,
        actor: Optional[str] = None,
        merchant_id: Any = None,
        notes: str = "",
    ) -> Order:
        """Transition a merchant's order to a new status.

        Raises:
            UnknownOrderStatus: ``new_status`` is not an order status.
            OrderNotFound: unknown order, or another merchant's.
            InvalidOrderStatus: transition not allowed or lost a race.
        """
        target = parse_status(new_status)
        order = self._load(order_id, merchant_id)
        self.apply_transition(order, target, actor=actor, notes=notes)
        return self._reload(order)

    @transaction.atomic
    def cancel_order(
        self,
        order_id: Any,
        reason: str,
        actor: Optional[str] = None,
        merchant_id: Any = None,
    ) -> Order:
        order = self._load(order_id, merchant_id)
        order.cancellation_reason = reason
        self.apply_transition(
            order,
            OrderStatus.CANCELLED,
            actor=actor,
            notes=reason,
            changes={"cancellation_reason": reason},
            audit_data={"reason": reason},
        )
        return self._reload(order)

    def bulk_update_status(
        self,
        order_ids: Iterable[Any],
        new_status: Any,
        actor: Optional[str] = None,
        merchant_id: Any = None,
        notes: str = "",
    ) -> BulkUpdateResultDTO:
        """Apply one status to many orders; each order succeeds or fails alone.

        Duplicate ids are collapsed.  Failures are reported per order and
        never roll back the orders that did move.
        """
        target = parse_status(new_status)
        unique_ids = list(dict.fromkeys(str(order_id) for order_id in order_ids))
        limit = settings.BULK_STATUS_MAX_ORDERS
        if not unique_ids:
            raise BulkLimitExceeded("Select at least one order.", attr="order_ids")
        if len(unique_ids) > limit:
            raise BulkLimitExceeded(
                f"At most {limit} orders can be updated at once.",
                attr="order_ids",
                requested=len(unique_ids),
            )

        success_count = 0
        failures = []
        for order_id in unique_ids:
            try:
                with transaction.atomic():
                    order = self._load(order_id, merchant_id)
                    self.apply_transition(order, target, actor=actor, notes=notes)
            except DomainError as exc:
                failures.append(
                    BulkFailureDTO(order_id=order_id, code=exc.code, detail=exc.detail)
                )
            else:
                success_count += 1

        logger.info(
            "order.bulk_status_updated",
            new_status=target,
            success_count=success_count,
            failed_count=len(failures),
            actor=actor,
        )
        return BulkUpdateResultDTO(
            success_count=success_count,
            total_count=len(unique_ids),
            failures=failures,
        )

    @transaction.atomic
    def set_item_prepared(
        self,
        order_id: Any,
        item_id: Any,
        prepared: bool = True,
        actor: Optional[str] = None,
        merchant_id: Any = None,
    ) -> OrderItem:
        order = self._load(order_id, merchant_id)
        if order.is_terminal:
            raise OrderClosed(
                f"Order {order.order_number} is {order.status}; items can no longer change."
            )
        item = self._order_repo.set_item_prepared(order.id, str(item_id), prepared)
        if not item:
            raise OrderItemNotFound(f"Item {item_id} is not part of order {order.order_number}.")

        self._order_repo.add_event(
            order.id,
            "item_prepared" if prepared else "item_unprepared",
            {"item_id": str(item.id), "product_name": item.product_name},
            actor=actor,
        )
        return item

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any, merchant_id: Any = None) -> Order:
        """Raises ``OrderNotFound`` for unknown ids and for other merchants' orders."""
        return self._load(order_id, merchant_id)

    def list_orders(
        self,
        merchant_id: Any,
        filters: Optional[Dict[str, Any]] = None,
    ) -> models.QuerySet:
        return self._order_repo.list({"merchant_id": merchant_id, **(filters or {})})

    def track_order(self, order_number: str, phone: str) -> Order:
        """Public look-up; a wrong phone is indistinguishable from an unknown number."""
        order = self._order_repo.get_by_number(order_number)
        if not order:
            raise OrderNotFound()
        try:
            matches = normalise_phone(phone) == normalise_phone(order.customer_phone)
        except ValueError:
            matches = False
        if not matches:
            logger.info("order.tracking_denied", order_number=order.order_number)
            raise OrderNotFound()
        return order

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, order_id: Any, merchant_id: Any = None) -> Order:
        if merchant_id is None:
            order = self._order_repo.get_by_id(str(order_id))
        else:
            order = self._order_repo.get_for_merchant(str(order_id), merchant_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _reload(self, order: Order) -> Order:
        return self._order_repo.get_by_id(str(order.id)) or order

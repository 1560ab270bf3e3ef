"""Django ORM implementation of the Order repository.

Status changes never load-modify-save: ``compare_and_set`` issues
``UPDATE ... WHERE id = ? AND status = <expected>`` so two API instances
racing on the same order cannot both win.  Domain events collected on
the aggregate are written to the outbox inside the caller's transaction.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.orders.models import Order, OrderEvent, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    def _base_queryset(self) -> models.QuerySet:
        return Order.objects.select_related(
            "merchant", "customer", "delivery_address"
        ).prefetch_related("items", "events")

    @transaction.atomic
    def create(self, dto: CreateOrderDTO) -> Order:
        order = Order(
            merchant_id=dto.merchant_id,
            customer_id=dto.customer_id,
            delivery_method=dto.delivery_method,
            payment_method=dto.payment_method,
            payment_status=dto.payment_status,
            subtotal=dto.subtotal,
            delivery_fee=dto.delivery_fee,
            discount=dto.discount,
            tax=dto.tax,
            total=dto.total,
            customer_name=dto.customer_name,
            customer_phone=dto.customer_phone,
            customer_email=dto.customer_email,
            delivery_address_id=dto.delivery_address_id,
            delivery_notes=dto.delivery_notes,
            notes=dto.notes,
            payment_reference=dto.payment_reference,
            payment_proof_url=dto.payment_proof_url,
        )
        order.save()

        for item in dto.items:
            OrderItem(
                order=order,
                product_id=item.product_id,
                product_name=item.product_name,
                product_price=item.product_price,
                quantity=item.quantity,
                variant=item.variant,
                notes=item.notes,
            ).save()

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(dto.items),
        )
        return order

    def get_by_id(self, id: str) -> Optional[Order]:
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_merchant(self, id: str, merchant_id: Any) -> Optional[Order]:
        try:
            return self._base_queryset().filter(id=id, merchant_id=merchant_id).first()
        except (ValueError, ValidationError):
            return None

    def lock(self, id: Any) -> Optional[Order]:
        # no select_related: FOR UPDATE cannot cover the nullable side of a join
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_number(self, order_number: str) -> Optional[Order]:
        if not order_number:
            return None
        return self._base_queryset().filter(order_number=order_number.upper()).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = Order.objects.select_related("customer").prefetch_related("items")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        self.record_domain_events(entity)
        return entity

    def compare_and_set(self, id: UUID, expected_status: str, changes: Dict[str, Any]) -> bool:
        values = {**changes, "updated_at": timezone.now()}
        updated = Order.objects.filter(id=id, status=expected_status).update(**values)
        return updated == 1

    def update_fields(self, id: UUID, changes: Dict[str, Any]) -> None:
        Order.objects.filter(id=id).update(**changes, updated_at=timezone.now())

    def add_event(
        self,
        order_id: UUID,
        event: str,
        data: Dict[str, Any],
        actor: Optional[str] = None,
    ) -> OrderEvent:
        entry = OrderEvent(order_id=order_id, event=event, data=_to_json(data), actor=actor)
        entry.save()
        logger.info("order.event_recorded", order_id=str(order_id), audit_event=event, actor=actor)
        return entry

    def record_domain_events(self, order: Order) -> int:
        events = order.domain_events
        for event in events:
            OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=_to_json(asdict(event)),
                topic=event.topic,
            )
        order.clear_domain_events()
        return len(events)

    def set_item_prepared(self, order_id: UUID, item_id: str, prepared: bool) -> Optional[OrderItem]:
        try:
            item = OrderItem.objects.filter(id=item_id, order_id=order_id).first()
        except (ValueError, ValidationError):
            return None
        if not item:
            return None
        item.is_prepared = prepared
        item.save(update_fields=["is_prepared"])
        return item


def _to_json(value: Any) -> Any:
    return json.loads(json.dumps(_normalize_for_json(value)))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _normalize_for_json(val) for key, val in value.items()}
    return value

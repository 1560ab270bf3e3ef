"""Unit tests for domain events: registration on aggregates and rebuild from outbox rows."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.models import Order
from modules.payments.events import PaymentVerified
from shared.domain.events import EVENT_REGISTRY, DomainEvent

pytestmark = pytest.mark.unit


def test_order_registers_and_clears_domain_events():
    order = Order(order_number="ORDTEST0001", status=OrderStatus.PENDING)

    assert order.domain_events == []

    event = OrderCreated(aggregate_id=order.id)
    order.add_domain_event(event)

    assert order.domain_events == [event]
    assert event.event_name == "OrderCreated"

    order.clear_domain_events()
    assert order.domain_events == []


def test_domain_events_returns_a_copy():
    order = Order(order_number="ORDTEST0002")
    order.add_domain_event(OrderCreated(aggregate_id=order.id))
    order.domain_events.clear()
    assert len(order.domain_events) == 1


def test_concrete_events_are_registered_by_name():
    for event_class in (OrderCreated, OrderStatusChanged, OrderCancelled, PaymentVerified):
        assert EVENT_REGISTRY[event_class.__name__] is event_class


def test_topics():
    assert OrderCreated.topic == "orders"
    assert PaymentVerified.topic == "payments"


def test_from_record_rebuilds_event():
    aggregate_id = uuid4()
    event_id = uuid4()
    occurred_on = datetime(2026, 3, 1, 12, 30, tzinfo=timezone.utc)

    event = DomainEvent.from_record(
        "OrderStatusChanged",
        str(aggregate_id),
        {
            "event_id": str(event_id),
            "occurred_on": occurred_on.isoformat(),
            "data": {"from": "PENDING", "to": "CONFIRMED"},
        },
    )

    assert isinstance(event, OrderStatusChanged)
    assert event.aggregate_id == aggregate_id
    assert event.event_id == event_id
    assert event.occurred_on == occurred_on
    assert event.data == {"from": "PENDING", "to": "CONFIRMED"}


def test_from_record_without_optional_fields():
    event = DomainEvent.from_record("OrderCreated", str(uuid4()), {})
    assert isinstance(event.event_id, UUID)
    assert event.data == {}


def test_from_record_unknown_name():
    with pytest.raises(LookupError):
        DomainEvent.from_record("InventoryReserved", str(uuid4()), {})

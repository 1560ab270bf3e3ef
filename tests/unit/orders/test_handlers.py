"""Unit tests for order/payment event handlers and the in-memory bus."""

from __future__ import annotations

import logging
from uuid import uuid4

import pytest

from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.handlers import (
    OrderCancelledHandler,
    OrderCreatedHandler,
    OrderStatusChangedHandler,
)
from modules.payments.events import PaymentRejected, PaymentVerified
from modules.payments.handlers import PaymentRejectedHandler, PaymentVerifiedHandler
from shared.infrastructure.bus import InMemoryEventBus, event_bus

pytestmark = pytest.mark.unit


def _dispatched(caplog) -> list[str]:
    return [
        record.getMessage()
        for record in caplog.records
        if "notification.dispatched" in record.getMessage()
    ]


def test_order_created_notifies_merchant_and_customer(caplog):
    event = OrderCreated(aggregate_id=uuid4(), data={"order_number": "ORDABC12"})

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderCreatedHandler().handle(event)

    messages = _dispatched(caplog)
    assert len(messages) == 2
    assert any("new_order" in message for message in messages)
    assert any("order_received" in message for message in messages)


def test_status_change_to_ready_notifies_customer(caplog):
    event = OrderStatusChanged(aggregate_id=uuid4(), data={"from": "PREPARING", "to": "READY"})

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderStatusChangedHandler().handle(event)

    messages = _dispatched(caplog)
    assert len(messages) == 1
    assert "order_ready" in messages[0]


def test_status_change_to_preparing_is_silent(caplog):
    event = OrderStatusChanged(aggregate_id=uuid4(), data={"from": "CONFIRMED", "to": "PREPARING"})

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderStatusChangedHandler().handle(event)

    assert _dispatched(caplog) == []


def test_order_cancelled_handler_logs(caplog):
    event = OrderCancelled(aggregate_id=uuid4(), data={"reason": "Sold out"})

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderCancelledHandler().handle(event)

    messages = _dispatched(caplog)
    assert len(messages) == 1
    assert "order_cancelled" in messages[0]


@pytest.mark.parametrize(
    "handler, event",
    [
        (PaymentVerifiedHandler(), PaymentVerified(aggregate_id=uuid4())),
        (PaymentRejectedHandler(), PaymentRejected(aggregate_id=uuid4(), data={"reason": "No transfer"})),
    ],
)
def test_payment_handlers_dispatch(caplog, handler, event):
    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        handler.handle(event)

    assert _dispatched(caplog)


def test_in_memory_event_bus_routes_events():
    bus = InMemoryEventBus()
    handled = []

    class CapturingHandler:
        def handle(self, event) -> None:
            handled.append(event)

    handler = CapturingHandler()
    event = OrderCreated(aggregate_id=uuid4())

    bus.subscribe(OrderCreated, handler)
    bus.subscribe(OrderCreated, handler)
    bus.publish(event)
    bus.publish(OrderCancelled(aggregate_id=uuid4()))

    assert handled == [event]


def test_bus_propagates_handler_errors():
    bus = InMemoryEventBus()

    class FailingHandler:
        def handle(self, event) -> None:
            raise RuntimeError("sms gateway down")

    bus.subscribe(OrderCreated, FailingHandler())
    with pytest.raises(RuntimeError):
        bus.publish(OrderCreated(aggregate_id=uuid4()))


def test_app_ready_subscribes_handlers():
    assert event_bus.handlers_for(OrderCreated)
    assert event_bus.handlers_for(OrderStatusChanged)
    assert event_bus.handlers_for(PaymentVerified)


def test_register_handlers_is_idempotent():
    from modules.orders.handlers import register_handlers as register_order_handlers
    from modules.payments.handlers import register_handlers as register_payment_handlers

    bus = InMemoryEventBus()
    for _ in range(2):
        register_order_handlers(bus)
        register_payment_handlers(bus)

    assert len(bus.handlers_for(OrderCancelled)) == 1
    assert len(bus.handlers_for(PaymentRejected)) == 1

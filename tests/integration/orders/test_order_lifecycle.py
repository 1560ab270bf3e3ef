"""Integration tests for OrderService against the real database.

Covers:
- Status transitions, per-status timestamps and the audit trail.
- Rejected moves leave the stored order untouched.
- Delivery-only statuses for pickup orders.
- Optimistic concurrency: a stale instance loses the race.
- Cancellation, bulk updates with partial failures, kitchen item flags.
- Public tracking by order number and phone.
"""

from __future__ import annotations

import logging

import pytest

from modules.orders.constants import DeliveryMethod, OrderStatus
from modules.orders.exceptions import (
    BulkLimitExceeded,
    InvalidOrderStatus,
    OrderClosed,
    OrderItemNotFound,
    OrderNotFound,
    UnknownOrderStatus,
)
from modules.orders.models import Order

pytestmark = pytest.mark.integration


class TestCreateOrder:
    def test_order_is_persisted_with_items_and_audit_entry(self, make_order):
        order = make_order(quantity=3)

        stored = Order.objects.get(pk=order.pk)
        assert stored.status == OrderStatus.PENDING
        assert stored.order_number.startswith("ORD")
        assert [item.quantity for item in stored.items.all()] == [3]
        assert [event.event for event in stored.events.all()] == ["order_created"]
        assert stored.events.get().actor == "customer"

    def test_audit_entry_is_logged(self, make_order, caplog):
        with caplog.at_level(logging.INFO, logger="modules.orders.repositories.django_repository"):
            order = make_order()

        recorded = [r.getMessage() for r in caplog.records if "order.event_recorded" in r.getMessage()]
        assert len(recorded) == 1
        assert "order_created" in recorded[0]
        assert str(order.id) in recorded[0]


class TestUpdateStatus:
    def test_happy_path_stamps_each_status(self, order_service, make_order, merchant):
        order = make_order(delivery_method=DeliveryMethod.DELIVERY)

        for target in ("CONFIRMED", "PREPARING", "READY", "OUT_FOR_DELIVERY", "DELIVERED", "COMPLETED"):
            order = order_service.update_status(order.id, target, actor="hawker", merchant_id=merchant.id)

        assert order.status == OrderStatus.COMPLETED
        for field_name in (
            "confirmed_at",
            "preparing_at",
            "ready_at",
            "out_for_delivery_at",
            "delivered_at",
            "completed_at",
        ):
            assert getattr(order, field_name) is not None, field_name
        assert order.cancelled_at is None

    def test_audit_trail_records_from_and_to(self, order_service, make_order, merchant):
        order = make_order()
        order_service.update_status(
            order.id, "confirmed", actor="hawker", merchant_id=merchant.id, notes="paid at counter"
        )

        entry = Order.objects.get(pk=order.pk).events.filter(event="status_changed").get()
        assert entry.data == {"from": "PENDING", "to": "CONFIRMED", "notes": "paid at counter"}
        assert entry.actor == "hawker"

    def test_skipping_ahead_is_rejected_and_nothing_changes(self, order_service, make_order, merchant):
        order = make_order()

        with pytest.raises(InvalidOrderStatus):
            order_service.update_status(order.id, "READY", merchant_id=merchant.id)

        stored = Order.objects.get(pk=order.pk)
        assert stored.status == OrderStatus.PENDING
        assert stored.ready_at is None
        assert not stored.events.filter(event="status_changed").exists()

    def test_pickup_order_cannot_go_out_for_delivery(self, order_service, make_order, merchant):
        order = make_order(delivery_method=DeliveryMethod.PICKUP)
        for target in ("CONFIRMED", "READY"):
            order_service.update_status(order.id, target, merchant_id=merchant.id)

        with pytest.raises(InvalidOrderStatus):
            order_service.update_status(order.id, "OUT_FOR_DELIVERY", merchant_id=merchant.id)

        completed = order_service.update_status(order.id, "COMPLETED", merchant_id=merchant.id)
        assert completed.status == OrderStatus.COMPLETED

    def test_unknown_status(self, order_service, make_order, merchant):
        order = make_order()
        with pytest.raises(UnknownOrderStatus):
            order_service.update_status(order.id, "ARCHIVED", merchant_id=merchant.id)

    def test_other_merchants_order_is_not_found(self, order_service, make_order, other_merchant):
        order = make_order()
        with pytest.raises(OrderNotFound):
            order_service.update_status(order.id, "CONFIRMED", merchant_id=other_merchant.id)

    def test_malformed_id_is_not_found(self, order_service, merchant):
        with pytest.raises(OrderNotFound):
            order_service.update_status("not-a-uuid", "CONFIRMED", merchant_id=merchant.id)


class TestConcurrentTransitions:
    def test_stale_instance_loses_the_race(self, order_service, make_order):
        order = make_order()
        stale = Order.objects.get(pk=order.pk)
        order_service.apply_transition(Order.objects.get(pk=order.pk), OrderStatus.CONFIRMED)

        with pytest.raises(InvalidOrderStatus):
            order_service.apply_transition(stale, OrderStatus.CANCELLED)

        stored = Order.objects.get(pk=order.pk)
        assert stored.status == OrderStatus.CONFIRMED
        assert stored.cancelled_at is None
        assert stored.events.filter(event="status_changed").count() == 1


class TestCancelOrder:
    def test_cancel_records_reason(self, order_service, make_order, merchant):
        order = make_order()

        cancelled = order_service.cancel_order(
            order.id, "Out of chicken", actor="hawker", merchant_id=merchant.id
        )

        assert cancelled.status == OrderStatus.CANCELLED
        assert cancelled.cancellation_reason == "Out of chicken"
        assert cancelled.cancelled_at is not None
        entry = cancelled.events.filter(event="status_changed").get()
        assert entry.data["reason"] == "Out of chicken"

    def test_completed_order_cannot_be_cancelled(self, order_service, make_order, merchant):
        order = make_order()
        for target in ("CONFIRMED", "READY", "COMPLETED"):
            order_service.update_status(order.id, target, merchant_id=merchant.id)

        with pytest.raises(InvalidOrderStatus):
            order_service.cancel_order(order.id, "Changed mind", merchant_id=merchant.id)


class TestBulkUpdate:
    def test_partial_failure_keeps_successes(self, order_service, make_order, merchant):
        first = make_order()
        second = make_order()
        already_cancelled = make_order()
        order_service.cancel_order(already_cancelled.id, "Duplicate", merchant_id=merchant.id)

        result = order_service.bulk_update_status(
            [first.id, second.id, already_cancelled.id, first.id],
            "CONFIRMED",
            actor="hawker",
            merchant_id=merchant.id,
        )

        assert result.success_count == 2
        assert result.total_count == 3
        assert [f.order_id for f in result.failures] == [str(already_cancelled.id)]
        assert result.failures[0].code == "invalid_transition"
        assert Order.objects.filter(status=OrderStatus.CONFIRMED).count() == 2

    def test_foreign_orders_fail_individually(self, order_service, make_order, merchant, other_merchant):
        mine = make_order()
        theirs = make_order(target_merchant=other_merchant)

        result = order_service.bulk_update_status(
            [mine.id, theirs.id], "CONFIRMED", merchant_id=merchant.id
        )

        assert result.success_count == 1
        assert result.failures[0].code == "order_not_found"
        assert Order.objects.get(pk=theirs.pk).status == OrderStatus.PENDING

    def test_limit(self, order_service, make_order, merchant, settings):
        settings.BULK_STATUS_MAX_ORDERS = 2
        ids = [make_order().id for _ in range(3)]

        with pytest.raises(BulkLimitExceeded):
            order_service.bulk_update_status(ids, "CONFIRMED", merchant_id=merchant.id)
        assert not Order.objects.filter(status=OrderStatus.CONFIRMED).exists()

    def test_empty_selection(self, order_service, merchant):
        with pytest.raises(BulkLimitExceeded):
            order_service.bulk_update_status([], "CONFIRMED", merchant_id=merchant.id)


class TestItemPrepared:
    def test_toggle_item(self, order_service, make_order, merchant):
        order = make_order()
        item = order.items.get()

        updated = order_service.set_item_prepared(order.id, item.id, True, merchant_id=merchant.id)
        assert updated.is_prepared

        order_service.set_item_prepared(order.id, item.id, False, merchant_id=merchant.id)
        events = list(Order.objects.get(pk=order.pk).events.values_list("event", flat=True))
        assert events[-2:] == ["item_prepared", "item_unprepared"]

    def test_unknown_item(self, order_service, make_order, merchant):
        order = make_order()
        with pytest.raises(OrderItemNotFound):
            order_service.set_item_prepared(
                order.id, "00000000-0000-0000-0000-000000000000", merchant_id=merchant.id
            )

    def test_closed_order(self, order_service, make_order, merchant):
        order = make_order()
        order_service.cancel_order(order.id, "Closed early", merchant_id=merchant.id)
        with pytest.raises(OrderClosed):
            order_service.set_item_prepared(order.id, order.items.get().id, merchant_id=merchant.id)


class TestTrackOrder:
    def test_phone_spelling_does_not_matter(self, order_service, make_order):
        order = make_order()
        tracked = order_service.track_order(order.order_number.lower(), "+65 8123 4567")
        assert tracked.pk == order.pk

    @pytest.mark.parametrize("phone", ["91234567", "not a phone", ""])
    def test_wrong_phone_looks_like_unknown_order(self, order_service, make_order, phone):
        order = make_order()
        with pytest.raises(OrderNotFound):
            order_service.track_order(order.order_number, phone)

    def test_unknown_number(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.track_order("ORDNOPE", "81234567")

"""Integration tests for the merchant order endpoints and public tracking.

Covers:
- Auth: anonymous 401, authenticated non-merchant 403.
- List scoping, filters, search and pagination.
- Detail, status change, cancel, bulk status and kitchen item flags.
- Error envelope for conflicts and unknown statuses.
- Public tracking by order number and phone.
"""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.orders.constants import DeliveryMethod, OrderStatus
from modules.orders.models import Order

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


def _detail(order) -> str:
    return f"{ORDERS_URL}{order.id}/"


class TestAccess:
    def test_anonymous_is_rejected(self, api_client):
        response = api_client.get(ORDERS_URL)
        assert response.status_code == 401
        assert response.json()["type"] == "client_error"

    def test_user_without_merchant_is_forbidden(self):
        user = get_user_model().objects.create_user("diner", password="diner-pass-123")
        client = APIClient()
        client.force_authenticate(user=user)

        response = client.get(ORDERS_URL)

        assert response.status_code == 403
        assert response.json()["errors"][0]["code"] == "permission_denied"


class TestListOrders:
    def test_only_own_orders_are_listed(self, merchant_client, make_order, other_merchant):
        mine = make_order()
        make_order(target_merchant=other_merchant)

        response = merchant_client.get(ORDERS_URL)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        card = data["results"][0]
        assert card["id"] == str(mine.id)
        assert card["item_count"] == 2
        assert "events" not in card

    def test_filter_by_status(self, merchant_client, make_order, order_service, merchant):
        confirmed = make_order()
        make_order()
        order_service.update_status(confirmed.id, "CONFIRMED", merchant_id=merchant.id)

        response = merchant_client.get(ORDERS_URL, {"status": "CONFIRMED"})

        assert [row["id"] for row in response.json()["results"]] == [str(confirmed.id)]

    def test_filter_by_several_statuses(self, merchant_client, make_order, order_service, merchant):
        cancelled = make_order()
        make_order()
        order_service.cancel_order(cancelled.id, "No stock", merchant_id=merchant.id)

        response = merchant_client.get(f"{ORDERS_URL}?status=PENDING&status=CANCELLED")

        assert response.json()["count"] == 2

    def test_filter_by_delivery_method(self, merchant_client, make_order):
        delivery = make_order(delivery_method=DeliveryMethod.DELIVERY)
        make_order(delivery_method=DeliveryMethod.PICKUP)

        response = merchant_client.get(ORDERS_URL, {"delivery_method": "DELIVERY"})

        assert [row["id"] for row in response.json()["results"]] == [str(delivery.id)]

    def test_search_by_order_number(self, merchant_client, make_order):
        target = make_order()
        make_order()

        response = merchant_client.get(ORDERS_URL, {"search": target.order_number})

        assert [row["id"] for row in response.json()["results"]] == [str(target.id)]

    def test_newest_first_and_page_size(self, merchant_client, make_order):
        orders = [make_order() for _ in range(3)]

        response = merchant_client.get(ORDERS_URL, {"page_size": 2})

        data = response.json()
        assert data["count"] == 3
        assert data["next"] is not None
        assert [row["id"] for row in data["results"]] == [str(orders[2].id), str(orders[1].id)]


class TestRetrieveOrder:
    def test_detail_includes_items_events_and_next_moves(self, merchant_client, make_order):
        order = make_order()

        response = merchant_client.get(_detail(order))

        assert response.status_code == 200
        data = response.json()
        assert data["order_number"] == order.order_number
        assert data["allowed_transitions"] == ["CONFIRMED", "CANCELLED"]
        assert data["items"][0]["product_name"] == "Roasted Chicken Rice"
        assert data["items"][0]["total"] == "11.00"
        assert data["events"][0]["event"] == "order_created"

    def test_foreign_order_is_not_found(self, other_merchant_client, make_order):
        order = make_order()

        response = other_merchant_client.get(_detail(order))

        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "order_not_found"


class TestUpdateStatus:
    def test_patch_status(self, merchant_client, make_order):
        order = make_order()

        response = merchant_client.patch(_detail(order), {"status": "CONFIRMED"}, format="json")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "CONFIRMED"
        assert data["confirmed_at"] is not None
        assert data["events"][-1]["actor"] == "hawker"

    def test_invalid_transition_is_a_conflict(self, merchant_client, make_order):
        order = make_order()

        response = merchant_client.patch(_detail(order), {"status": "READY"}, format="json")

        assert response.status_code == 409
        body = response.json()
        assert body["type"] == "client_error"
        assert body["errors"][0]["code"] == "invalid_transition"
        assert body["errors"][0]["attr"] == "status"
        assert Order.objects.get(pk=order.pk).status == OrderStatus.PENDING

    def test_unknown_status_is_a_validation_error(self, merchant_client, make_order):
        order = make_order()

        response = merchant_client.patch(_detail(order), {"status": "LOST"}, format="json")

        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"
        assert response.json()["errors"][0]["code"] == "unknown_status"

    def test_missing_status(self, merchant_client, make_order):
        order = make_order()

        response = merchant_client.patch(_detail(order), {}, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "status"


class TestCancel:
    def test_cancel(self, merchant_client, make_order):
        order = make_order()

        response = merchant_client.post(
            f"{_detail(order)}cancel/", {"reason": "Ran out of rice"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        assert response.json()["cancellation_reason"] == "Ran out of rice"

    def test_reason_is_required(self, merchant_client, make_order):
        order = make_order()

        response = merchant_client.post(f"{_detail(order)}cancel/", {"reason": ""}, format="json")

        assert response.status_code == 400
        assert Order.objects.get(pk=order.pk).status == OrderStatus.PENDING


class TestBulkStatus:
    def test_partial_success_is_reported(self, merchant_client, make_order, other_merchant):
        first = make_order()
        second = make_order()
        foreign = make_order(target_merchant=other_merchant)

        response = merchant_client.post(
            f"{ORDERS_URL}bulk-status/",
            {"order_ids": [str(first.id), str(second.id), str(foreign.id)], "status": "CONFIRMED"},
            format="json",
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success_count"] == 2
        assert data["failed_count"] == 1
        assert data["total_count"] == 3
        assert data["failures"][0]["order_id"] == str(foreign.id)

    def test_too_many_orders(self, merchant_client, make_order, settings):
        settings.BULK_STATUS_MAX_ORDERS = 1
        ids = [str(make_order().id), str(make_order().id)]

        response = merchant_client.post(
            f"{ORDERS_URL}bulk-status/", {"order_ids": ids, "status": "CONFIRMED"}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "bulk_limit_exceeded"


class TestItemFlag:
    def test_mark_item_prepared(self, merchant_client, make_order):
        order = make_order()
        item = order.items.get()

        response = merchant_client.patch(
            f"{_detail(order)}items/{item.id}/", {"is_prepared": True}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["is_prepared"] is True

    def test_item_of_closed_order(self, merchant_client, make_order, order_service, merchant):
        order = make_order()
        order_service.cancel_order(order.id, "Closed", merchant_id=merchant.id)

        response = merchant_client.patch(
            f"{_detail(order)}items/{order.items.get().id}/", {"is_prepared": True}, format="json"
        )

        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "order_closed"


class TestTracking:
    def test_track_with_matching_phone(self, api_client, make_order, order_service, merchant):
        order = make_order()
        order_service.update_status(order.id, "CONFIRMED", merchant_id=merchant.id)

        response = api_client.get(f"/api/v1/track/{order.order_number}/", {"phone": "+6581234567"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "CONFIRMED"
        assert [step["status"] for step in data["timeline"]] == ["PENDING", "CONFIRMED"]
        assert "customer_phone" not in data
        assert data["items"] == [{"product_name": "Roasted Chicken Rice", "quantity": 2, "total": "11.00"}]

    def test_wrong_phone_is_not_found(self, api_client, make_order):
        order = make_order()

        response = api_client.get(f"/api/v1/track/{order.order_number}/", {"phone": "91234567"})

        assert response.status_code == 404

    def test_phone_is_required(self, api_client, make_order):
        order = make_order()

        response = api_client.get(f"/api/v1/track/{order.order_number}/")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "phone"

"""Integration tests for the payment endpoints."""

from __future__ import annotations

import uuid

import pytest

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.models import Order
from modules.payments.models import Payment

pytestmark = pytest.mark.integration


@pytest.fixture()
def placed_order(make_order):
    order = make_order()
    Payment.objects.create(order=order, amount=order.total)
    return order


def _url(order, action: str) -> str:
    return f"/api/v1/payments/{order.id}/{action}/"


class TestCustomerEndpoints:
    def test_upload_proof(self, api_client, placed_order):
        response = api_client.post(
            _url(placed_order, "proof"),
            {"proof_url": "https://cdn.example.sg/proof.png", "transaction_id": "FAST123"},
            format="json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PROCESSING"
        assert data["order_id"] == str(placed_order.id)
        assert data["transaction_id"] == "FAST123"

    def test_upload_proof_requires_url(self, api_client, placed_order):
        response = api_client.post(_url(placed_order, "proof"), {"proof_url": "nope"}, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "proof_url"

    def test_upload_proof_unknown_order(self, api_client):
        response = api_client.post(
            f"/api/v1/payments/{uuid.uuid4()}/proof/",
            {"proof_url": "https://cdn.example.sg/proof.png"},
            format="json",
        )
        assert response.status_code == 404

    def test_status(self, api_client, placed_order):
        response = api_client.get(_url(placed_order, "status"))

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["amount"] == "11.00"
        assert data["currency"] == "SGD"
        assert data["paid_at"] is None


class TestMerchantDecisions:
    def test_verify(self, merchant_client, placed_order):
        response = merchant_client.post(
            _url(placed_order, "verify"), {"transaction_id": "FAST123"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"
        assert response.json()["payment_status"] == "COMPLETED"
        assert response.json()["payment_confirmed_by"] == "hawker"

    def test_verify_twice_is_idempotent(self, merchant_client, placed_order):
        merchant_client.post(_url(placed_order, "verify"), {}, format="json")

        response = merchant_client.post(_url(placed_order, "verify"), {}, format="json")

        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"

    def test_reject_after_verify_conflicts(self, merchant_client, placed_order):
        merchant_client.post(_url(placed_order, "verify"), {}, format="json")

        response = merchant_client.post(_url(placed_order, "reject"), {"reason": "Duplicate"}, format="json")

        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "payment_already_processed"

    def test_reject(self, merchant_client, placed_order):
        response = merchant_client.post(
            _url(placed_order, "reject"), {"reason": "No transfer received"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        assert response.json()["payment_status"] == "FAILED"

    def test_reject_short_reason(self, merchant_client, placed_order):
        response = merchant_client.post(_url(placed_order, "reject"), {"reason": "x"}, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0] == {
            "code": "invalid_reason",
            "detail": "Give a reason of at least 2 characters.",
            "attr": "reason",
        }

    def test_verify_after_reject_conflicts(self, merchant_client, placed_order):
        merchant_client.post(_url(placed_order, "reject"), {"reason": "Fake slip"}, format="json")

        response = merchant_client.post(_url(placed_order, "verify"), {}, format="json")

        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "payment_not_pending"
        assert Order.objects.get(pk=placed_order.pk).status == OrderStatus.CANCELLED

    def test_foreign_order(self, other_merchant_client, placed_order):
        response = other_merchant_client.post(_url(placed_order, "verify"), {}, format="json")

        assert response.status_code == 404
        assert Order.objects.get(pk=placed_order.pk).payment_status == PaymentStatus.PENDING

    def test_anonymous_cannot_verify(self, api_client, placed_order):
        response = api_client.post(_url(placed_order, "verify"), {}, format="json")
        assert response.status_code == 401


class TestMerchantQueries:
    def test_pending(self, merchant_client, api_client, placed_order, make_order):
        make_order()
        api_client.post(
            _url(placed_order, "proof"), {"proof_url": "https://cdn.example.sg/p.png"}, format="json"
        )

        response = merchant_client.get("/api/v1/payments/pending/")

        assert response.status_code == 200
        assert [row["order_number"] for row in response.json()] == [placed_order.order_number]

    def test_pending_is_scoped_to_merchant(self, other_merchant_client, api_client, placed_order):
        api_client.post(
            _url(placed_order, "proof"), {"proof_url": "https://cdn.example.sg/p.png"}, format="json"
        )

        assert other_merchant_client.get("/api/v1/payments/pending/").json() == []

    def test_qr(self, merchant_client):
        response = merchant_client.post(
            "/api/v1/payments/qr/", {"amount": "12.34", "reference": "TABLE 5"}, format="json"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["payload"].startswith("000201010212")
        assert data["amount"] == "12.34"
        assert data["merchant_name"] == "Ah Hock Chicken Rice"

    def test_qr_reference_too_long(self, merchant_client):
        response = merchant_client.post(
            "/api/v1/payments/qr/", {"amount": "1.00", "reference": "R" * 30}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "reference_too_long"

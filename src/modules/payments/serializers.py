"""Payment DRF serializers."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers


class UploadProofSerializer(serializers.Serializer):
    proof_url = serializers.URLField(max_length=500)
    transaction_id = serializers.CharField(required=False, default="", allow_blank=True, max_length=100)


class VerifyPaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0.00"),
        required=False,
        allow_null=True,
        default=None,
    )
    transaction_id = serializers.CharField(required=False, default="", allow_blank=True, max_length=100)


class RejectPaymentSerializer(serializers.Serializer):
    # Length is enforced by the service so the error code stays the same for every caller
    reason = serializers.CharField(max_length=1000, allow_blank=True)


class GenerateQRSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0.00"),
        required=False,
        default=Decimal("0.00"),
    )
    reference = serializers.CharField(required=False, allow_blank=True, default="", max_length=64)


class PaymentSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    order_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField()
    method = serializers.CharField()
    status = serializers.CharField()
    transaction_id = serializers.CharField()
    processed_at = serializers.DateTimeField(allow_null=True)
    created_at = serializers.DateTimeField()


class PaymentStatusSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    order_number = serializers.CharField()
    status = serializers.CharField()
    method = serializers.CharField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField()
    paid_at = serializers.DateTimeField(allow_null=True)
    payment_id = serializers.UUIDField(allow_null=True)
    payment_reference = serializers.CharField()


class PayNowQRSerializer(serializers.Serializer):
    payload = serializers.CharField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    reference = serializers.CharField(allow_null=True)
    merchant_name = serializers.CharField()


class PendingPaymentSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    order_number = serializers.CharField()
    customer_name = serializers.CharField()
    customer_phone = serializers.CharField()
    total = serializers.DecimalField(max_digits=10, decimal_places=2)
    payment_reference = serializers.CharField()
    payment_proof_url = serializers.CharField()
    created_at = serializers.DateTimeField()

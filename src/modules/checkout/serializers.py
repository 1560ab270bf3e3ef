"""Checkout DRF serializers (storefront input shapes)."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.checkout.dtos import MAX_ITEM_QUANTITY
from modules.customers.dtos import normalise_phone


class CheckoutItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_ITEM_QUANTITY)
    # Object or JSON-encoded string; normalised by the DTO
    variant = serializers.JSONField(required=False, default=dict)
    notes = serializers.CharField(required=False, default="", allow_blank=True, max_length=500)


class CreateSessionSerializer(serializers.Serializer):
    merchant_id = serializers.UUIDField()
    items = CheckoutItemSerializer(many=True, allow_empty=False)


class ContactInfoSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=255)
    phone = serializers.CharField(max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True, default="")

    def validate_phone(self, value: str) -> str:
        try:
            return normalise_phone(value)
        except ValueError as exc:
            raise serializers.ValidationError(str(exc)) from exc


class DeliveryAddressSerializer(serializers.Serializer):
    line1 = serializers.CharField(max_length=255)
    line2 = serializers.CharField(required=False, default="", allow_blank=True, max_length=255)
    postal_code = serializers.RegexField(r"^\d{6}$", max_length=6)
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, required=False, allow_null=True, default=None)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, required=False, allow_null=True, default=None)


class CompleteCheckoutSerializer(serializers.Serializer):
    contact_info = ContactInfoSerializer()
    delivery_address = DeliveryAddressSerializer(required=False, allow_null=True, default=None)
    delivery_notes = serializers.CharField(required=False, default="", allow_blank=True, max_length=1000)
    payment_proof_url = serializers.URLField(required=False, allow_null=True, default=None, max_length=500)


class DeliveryFeeSerializer(serializers.Serializer):
    merchant_id = serializers.UUIDField()
    postal_code = serializers.RegexField(r"^\d{6}$", max_length=6)
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0.00"))
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, required=False, allow_null=True, default=None)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, required=False, allow_null=True, default=None)


class SessionItemOutputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    product_name = serializers.CharField()
    product_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    quantity = serializers.IntegerField()
    total = serializers.DecimalField(max_digits=10, decimal_places=2)
    variant = serializers.JSONField()
    notes = serializers.CharField()


class MerchantSummarySerializer(serializers.Serializer):
    id = serializers.UUIDField()
    business_name = serializers.CharField()
    delivery_enabled = serializers.BooleanField()
    pickup_enabled = serializers.BooleanField()
    delivery_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    minimum_order = serializers.DecimalField(max_digits=10, decimal_places=2)
    has_paynow = serializers.BooleanField()


class CheckoutSessionOutputSerializer(serializers.Serializer):
    session_id = serializers.CharField()
    status = serializers.CharField()
    merchant = MerchantSummarySerializer()
    items = SessionItemOutputSerializer(many=True)
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2)
    payment_reference = serializers.CharField()
    expires_at = serializers.DateTimeField()
    order_id = serializers.UUIDField(allow_null=True)
    order_number = serializers.CharField(allow_null=True)


class CompletedCheckoutSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    order_number = serializers.CharField()
    total = serializers.DecimalField(max_digits=10, decimal_places=2)
    payment_reference = serializers.CharField()
    paynow_payload = serializers.CharField(allow_null=True)


class DeliveryQuoteSerializer(serializers.Serializer):
    fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    pricing_model = serializers.CharField()
    zone = serializers.CharField()
    is_special_area = serializers.BooleanField()
    distance_km = serializers.DecimalField(max_digits=6, decimal_places=1, allow_null=True)
    estimated_minutes_min = serializers.IntegerField(allow_null=True)
    estimated_minutes_max = serializers.IntegerField(allow_null=True)
    free_delivery_applied = serializers.BooleanField()

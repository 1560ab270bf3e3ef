"""Merchant DRF serializers."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.merchants.models import Merchant
from modules.pricing.calculator import policy_from_merchant
from modules.pricing.dtos import PricingModel

MAX_DISTANCE_TIERS = 5
MAX_DELIVERY_KM = Decimal("50")


def _money(max_value: str, **kwargs) -> serializers.DecimalField:
    return serializers.DecimalField(
        max_digits=6,
        decimal_places=2,
        min_value=Decimal("0"),
        max_value=Decimal(max_value),
        **kwargs,
    )


class MerchantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Merchant
        fields = [
            "id",
            "business_name",
            "slug",
            "status",
            "accepting_orders",
            "delivery_enabled",
            "pickup_enabled",
            "delivery_fee",
            "minimum_order",
            "approved_at",
            "created_at",
        ]
        read_only_fields = fields


# ---------------------------------------------------------------------------
# Storefront settings
# ---------------------------------------------------------------------------


class ZoneRatesSerializer(serializers.Serializer):
    same_zone = _money("50")
    adjacent_zone = _money("50")
    cross_zone = _money("50")
    special_area = _money("100")


class DistanceTierSerializer(serializers.Serializer):
    min_km = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=Decimal("0"))
    max_km = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), max_value=MAX_DELIVERY_KM
    )
    additional_fee = _money("100")

    def validate(self, attrs):
        if attrs["max_km"] <= attrs["min_km"]:
            raise serializers.ValidationError({"max_km": "Must be greater than min_km."})
        return attrs


class DistanceRatesSerializer(serializers.Serializer):
    base_rate = _money("50")
    per_km_rate = _money("10", required=False)
    tiers = DistanceTierSerializer(many=True, required=False, max_length=MAX_DISTANCE_TIERS)


class DeliverySettingsSerializer(serializers.Serializer):
    """A complete delivery pricing policy; it replaces the stored one."""

    pricing_model = serializers.ChoiceField(choices=[model.value for model in PricingModel])
    flat_rate = _money("50", required=False)
    zone_rates = ZoneRatesSerializer(required=False)
    distance_rates = DistanceRatesSerializer(required=False)
    free_delivery_minimum = _money("500", required=False, allow_null=True)
    special_area_surcharge = _money("50", required=False)


class UpdateMerchantSettingsSerializer(serializers.Serializer):
    accepting_orders = serializers.BooleanField(required=False)
    delivery_enabled = serializers.BooleanField(required=False)
    pickup_enabled = serializers.BooleanField(required=False)
    delivery_radius_km = serializers.DecimalField(
        max_digits=5,
        decimal_places=1,
        min_value=Decimal("1"),
        max_value=MAX_DELIVERY_KM,
        required=False,
        allow_null=True,
    )
    preparation_minutes = serializers.IntegerField(min_value=5, max_value=180, required=False)
    minimum_order = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0"), required=False
    )
    paynow_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    delivery_settings = DeliverySettingsSerializer(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("No settings to update.")
        return attrs


class MerchantSettingsSerializer(serializers.ModelSerializer):
    delivery_settings = serializers.SerializerMethodField()

    class Meta:
        model = Merchant
        fields = [
            "id",
            "business_name",
            "accepting_orders",
            "delivery_enabled",
            "pickup_enabled",
            "delivery_fee",
            "delivery_radius_km",
            "preparation_minutes",
            "minimum_order",
            "paynow_number",
            "delivery_settings",
            "updated_at",
        ]
        read_only_fields = fields

    def get_delivery_settings(self, obj: Merchant) -> dict:
        # stored keys merged over the defaults, as the calculator sees them
        return policy_from_merchant(obj).model_dump(mode="json", exclude_none=True)

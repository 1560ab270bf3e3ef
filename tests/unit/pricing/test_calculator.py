"""Unit tests for the order totals calculator.

Pure functions, so no database: every test builds a policy and a
fulfilment context and checks the resulting amounts.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.pricing.calculator import (
    calculate_delivery_fee,
    calculate_subtotal,
    calculate_totals,
    ensure_minimum_order,
    policy_from_settings,
    to_money,
)
from modules.pricing.dtos import (
    DeliveryContext,
    DeliveryPolicy,
    DeliveryZone,
    FulfilmentMethod,
    LineItem,
    PricingModel,
)
from modules.pricing.exceptions import InvalidDeliverySettings, MinimumOrderNotMet

pytestmark = pytest.mark.unit

PICKUP = DeliveryContext(method=FulfilmentMethod.PICKUP)


def delivery(**kwargs) -> DeliveryContext:
    return DeliveryContext(method=FulfilmentMethod.DELIVERY, **kwargs)


def items(*pairs) -> list[LineItem]:
    return [LineItem(unit_price=Decimal(price), quantity=qty) for price, qty in pairs]


class TestSubtotal:
    def test_sums_line_totals(self):
        assert calculate_subtotal(items(("5.50", 2), ("2.00", 3))) == Decimal("17.00")

    def test_empty_cart_is_zero(self):
        assert calculate_subtotal([]) == Decimal("0.00")

    def test_rounds_to_cents_half_up(self):
        assert to_money("1.005") == Decimal("1.01")
        assert to_money(None) == Decimal("0.00")


class TestTotals:
    def test_pickup_has_no_delivery_fee(self):
        policy = DeliveryPolicy(flat_rate=Decimal("5"))
        totals = calculate_totals(items(("10.00", 1)), policy, PICKUP)
        assert totals.delivery_fee == Decimal("0.00")
        assert totals.total == Decimal("10.00")

    def test_flat_delivery(self):
        policy = DeliveryPolicy(flat_rate=Decimal("5"))
        totals = calculate_totals(items(("10.00", 2)), policy, delivery())
        assert totals.subtotal == Decimal("20.00")
        assert totals.delivery_fee == Decimal("5.00")
        assert totals.total == Decimal("25.00")

    def test_total_formula_with_discount_and_tax(self):
        policy = DeliveryPolicy(flat_rate=Decimal("3"))
        totals = calculate_totals(
            items(("10.00", 1)), policy, delivery(), discount=Decimal("2"), tax=Decimal("0.90")
        )
        assert totals.total == Decimal("11.90")

    def test_total_never_negative(self):
        totals = calculate_totals(
            items(("5.00", 1)), DeliveryPolicy(), PICKUP, discount=Decimal("50")
        )
        assert totals.total == Decimal("0.00")

    def test_negative_discount_is_ignored(self):
        totals = calculate_totals(
            items(("5.00", 1)), DeliveryPolicy(), PICKUP, discount=Decimal("-3")
        )
        assert totals.discount == Decimal("0.00")
        assert totals.total == Decimal("5.00")

    def test_same_inputs_same_totals(self):
        policy = DeliveryPolicy(
            pricing_model=PricingModel.DISTANCE,
            distance_rates={"base_rate": "4", "per_km_rate": "0.75"},
        )
        context = delivery(distance_km=Decimal("3.4"))
        cart = items(("7.80", 3))
        assert calculate_totals(cart, policy, context) == calculate_totals(cart, policy, context)


class TestFreeDelivery:
    policy = DeliveryPolicy(flat_rate=Decimal("5"), free_delivery_minimum=Decimal("50"))

    def test_at_threshold_is_free(self):
        assert calculate_delivery_fee(Decimal("50.00"), self.policy, delivery()) == Decimal("0")

    def test_just_below_threshold_is_charged(self):
        assert calculate_delivery_fee(Decimal("49.99"), self.policy, delivery()) == Decimal("5.00")

    def test_zero_threshold_never_applies(self):
        policy = DeliveryPolicy(flat_rate=Decimal("5"), free_delivery_minimum=Decimal("0"))
        assert calculate_delivery_fee(Decimal("1.00"), policy, delivery()) == Decimal("5.00")

    def test_free_model(self):
        policy = DeliveryPolicy(pricing_model=PricingModel.FREE, flat_rate=Decimal("5"))
        assert calculate_delivery_fee(Decimal("1.00"), policy, delivery()) == Decimal("0")


class TestZonePricing:
    policy = DeliveryPolicy(pricing_model=PricingModel.ZONE)

    @pytest.mark.parametrize(
        "zone, expected",
        [
            (DeliveryZone.SAME, Decimal("5.00")),
            (DeliveryZone.ADJACENT, Decimal("7.00")),
            (DeliveryZone.CROSS, Decimal("10.00")),
        ],
    )
    def test_default_zone_rates(self, zone, expected):
        assert calculate_delivery_fee(Decimal("10"), self.policy, delivery(zone=zone)) == expected

    def test_special_area_overrides_zone(self):
        context = delivery(zone=DeliveryZone.SAME, is_special_area=True)
        assert calculate_delivery_fee(Decimal("10"), self.policy, context) == Decimal("15.00")

    def test_unknown_zone_prices_as_cross_zone(self):
        assert calculate_delivery_fee(Decimal("10"), self.policy, delivery()) == Decimal("10.00")

    def test_custom_rates_from_camel_case_settings(self):
        policy = policy_from_settings(
            {"pricingModel": "ZONE", "zoneRates": {"sameZone": 3, "adjacentZone": 4.5}}
        )
        context = delivery(zone=DeliveryZone.ADJACENT)
        assert calculate_delivery_fee(Decimal("10"), policy, context) == Decimal("4.50")


class TestDistancePricing:
    policy = DeliveryPolicy(
        pricing_model=PricingModel.DISTANCE,
        distance_rates={
            "base_rate": "5",
            "per_km_rate": "0.50",
            "tiers": [
                {"min_km": "10", "additional_fee": "3"},
                {"min_km": "5", "additional_fee": "2"},
            ],
        },
    )

    def test_base_plus_per_km(self):
        context = delivery(distance_km=Decimal("4"))
        assert calculate_delivery_fee(Decimal("10"), self.policy, context) == Decimal("7.00")

    def test_tiers_are_cumulative(self):
        context = delivery(distance_km=Decimal("12"))
        # 5 + 12 * 0.50 + 2 + 3
        assert calculate_delivery_fee(Decimal("10"), self.policy, context) == Decimal("16.00")

    def test_tier_applies_only_above_its_minimum(self):
        context = delivery(distance_km=Decimal("5"))
        assert calculate_delivery_fee(Decimal("10"), self.policy, context) == Decimal("7.50")

    def test_unknown_distance_uses_base_rate(self):
        assert calculate_delivery_fee(Decimal("10"), self.policy, delivery()) == Decimal("5.00")

    def test_special_area_surcharge_added(self):
        policy = self.policy.model_copy(update={"special_area_surcharge": Decimal("4")})
        context = delivery(distance_km=Decimal("4"), is_special_area=True)
        assert calculate_delivery_fee(Decimal("10"), policy, context) == Decimal("11.00")


class TestMinimumOrder:
    def test_below_minimum_is_rejected(self):
        with pytest.raises(MinimumOrderNotMet) as exc_info:
            ensure_minimum_order(Decimal("19.90"), Decimal("20.00"))
        assert exc_info.value.context == {"minimum": "20.00", "subtotal": "19.90"}

    def test_exact_minimum_is_accepted(self):
        ensure_minimum_order(Decimal("20.00"), Decimal("20.00"))

    def test_no_minimum(self):
        ensure_minimum_order(Decimal("0.50"), None)
        ensure_minimum_order(Decimal("0.50"), Decimal("0"))


class TestPolicyFromSettings:
    def test_empty_settings_use_merchant_fee_as_flat_rate(self):
        policy = policy_from_settings({}, Decimal("4.5"))
        assert policy.pricing_model == PricingModel.FLAT
        assert policy.flat_rate == Decimal("4.50")

    def test_stored_flat_rate_wins_over_merchant_fee(self):
        policy = policy_from_settings({"flat_rate": "3"}, Decimal("4.5"))
        assert policy.flat_rate == Decimal("3")

    def test_unknown_pricing_model_is_rejected(self):
        with pytest.raises(InvalidDeliverySettings):
            policy_from_settings({"pricingModel": "SURGE"})

    def test_negative_rate_is_rejected(self):
        with pytest.raises(InvalidDeliverySettings):
            policy_from_settings({"flatRate": "-1"})

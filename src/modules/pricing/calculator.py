"""Order totals and delivery fee calculator.

Pure functions: identical inputs give identical outputs, so the same
computation runs when a checkout session is created and again when the
order is finalised.  All amounts are ``Decimal`` rounded half-up to
cents.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, Optional

import structlog
from pydantic import ValidationError

from modules.pricing.dtos import (
    ZERO,
    DeliveryContext,
    DeliveryPolicy,
    DeliveryZone,
    LineItem,
    PricingModel,
    Totals,
)
from modules.pricing.exceptions import InvalidDeliverySettings, MinimumOrderNotMet

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    return Decimal(str(value if value is not None else 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_subtotal(items: Iterable[LineItem]) -> Decimal:
    return to_money(sum((item.line_total for item in items), ZERO))


def qualifies_for_free_delivery(subtotal: Decimal, policy: DeliveryPolicy) -> bool:
    threshold = policy.free_delivery_minimum
    return bool(threshold) and subtotal >= threshold


def calculate_delivery_fee(
    subtotal: Decimal, policy: DeliveryPolicy, context: DeliveryContext
) -> Decimal:
    if not context.is_delivery:
        return ZERO
    if qualifies_for_free_delivery(subtotal, policy):
        return ZERO

    model = policy.pricing_model
    if model == PricingModel.FREE:
        return ZERO

    if model == PricingModel.ZONE:
        zone = DeliveryZone.SPECIAL if context.is_special_area else context.zone
        return to_money(policy.zone_rates.rate_for(zone or DeliveryZone.CROSS))

    surcharge = policy.special_area_surcharge if context.is_special_area else ZERO

    if model == PricingModel.DISTANCE:
        # Unknown distance prices at the base rate
        distance = context.distance_km or ZERO
        rates = policy.distance_rates
        fee = rates.base_rate + rates.per_km_rate * distance
        for tier in rates.tiers:
            if distance > tier.min_km:
                fee += tier.additional_fee
        return to_money(fee + surcharge)

    return to_money(policy.flat_rate + surcharge)


def calculate_totals(
    items: Iterable[LineItem],
    policy: DeliveryPolicy,
    context: DeliveryContext,
    discount: Decimal = ZERO,
    tax: Decimal = ZERO,
) -> Totals:
    """Compute subtotal, delivery fee, discount, tax and total.

    ``total = subtotal + delivery_fee + tax - discount``, never below zero.
    Negative discounts are treated as zero.
    """
    subtotal = calculate_subtotal(items)
    delivery_fee = calculate_delivery_fee(subtotal, policy, context)
    discount = max(to_money(discount), ZERO)
    tax = max(to_money(tax), ZERO)
    total = max(subtotal + delivery_fee + tax - discount, ZERO)
    return Totals(
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        discount=discount,
        tax=tax,
        total=to_money(total),
    )


def ensure_minimum_order(subtotal: Decimal, minimum: Optional[Decimal]) -> None:
    """Reject a cart whose subtotal is below the merchant minimum."""
    minimum = to_money(minimum)
    if minimum > ZERO and subtotal < minimum:
        raise MinimumOrderNotMet(
            f"Minimum order is S${minimum}; the cart subtotal is S${to_money(subtotal)}.",
            minimum=str(minimum),
            subtotal=str(to_money(subtotal)),
        )


def policy_from_settings(
    delivery_settings: Optional[Dict[str, Any]], default_flat_rate: Any = ZERO
) -> DeliveryPolicy:
    """Build a policy from stored settings; empty settings mean FLAT at the merchant fee."""
    data: Dict[str, Any] = {"flat_rate": to_money(default_flat_rate)}
    data.update(delivery_settings or {})
    try:
        return DeliveryPolicy.model_validate(data)
    except ValidationError as exc:
        logger.warning("pricing.invalid_delivery_settings", errors=exc.error_count())
        raise InvalidDeliverySettings(
            "The merchant's delivery settings are invalid.", attr="delivery_settings"
        ) from exc


def policy_from_merchant(merchant: Any) -> DeliveryPolicy:
    return policy_from_settings(
        getattr(merchant, "delivery_settings", None),
        getattr(merchant, "delivery_fee", ZERO),
    )

"""Merchant service layer (Use Cases).

- ``approve_merchant``: the one platform-admin command in the order
  core. It moves a PENDING (or SUSPENDED) merchant to ACTIVE so its
  storefront can take orders.
- ``update_settings``: the merchant's own storefront settings. These are
  the delivery pricing policy, the delivery/pickup toggles, the radius
  and preparation time, and the PayNow number that QR payloads are
  generated for.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict

import structlog
from django.db import transaction
from django.utils import timezone

from modules.merchants.exceptions import (
    MerchantAlreadyActive,
    MerchantNotFound,
    NoFulfilmentMethodEnabled,
)
from modules.merchants.models import MerchantStatus
from modules.payments.exceptions import InvalidPayee
from modules.payments.paynow import PROXY_TYPE_MOBILE, resolve_proxy
from modules.pricing.calculator import policy_from_settings
from modules.pricing.dtos import DeliveryPolicy, PricingModel

if TYPE_CHECKING:
    from modules.merchants.models import Merchant
    from modules.merchants.repositories.interfaces import IMerchantRepository

logger = structlog.get_logger(__name__)

# Plain columns a merchant may change directly
SETTINGS_FIELDS = (
    "accepting_orders",
    "delivery_enabled",
    "pickup_enabled",
    "delivery_radius_km",
    "preparation_minutes",
    "minimum_order",
)


def headline_delivery_fee(policy: DeliveryPolicy) -> Decimal:
    """The fee shown on the storefront card before an address is known."""
    if policy.pricing_model == PricingModel.FLAT:
        return policy.flat_rate
    if policy.pricing_model == PricingModel.ZONE:
        return policy.zone_rates.same_zone
    if policy.pricing_model == PricingModel.DISTANCE:
        return policy.distance_rates.base_rate
    return Decimal("0.00")


def normalise_paynow_number(value: str) -> str:
    """Store mobiles as 8 digits and UENs upper-cased; blank clears the number."""
    if not (value or "").strip():
        return ""
    try:
        proxy_type, proxy_value = resolve_proxy(value)
    except InvalidPayee as exc:
        raise InvalidPayee(attr="paynow_number") from exc
    if proxy_type == PROXY_TYPE_MOBILE:
        return proxy_value.removeprefix("+65")
    return proxy_value


class MerchantService:
    def __init__(self, repository: IMerchantRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def approve_merchant(self, merchant_id: str, actor: str) -> Merchant:
        """Activate a merchant.

        Raises:
            MerchantNotFound: unknown or deleted merchant.
            MerchantAlreadyActive: nothing to approve.
        """
        merchant = self._repo.get_alive(merchant_id)
        if not merchant:
            raise MerchantNotFound(f"Merchant {merchant_id} not found.")

        log = logger.bind(merchant_id=str(merchant.id), actor=actor)
        if merchant.status == MerchantStatus.ACTIVE:
            log.info("merchant.approve_noop")
            raise MerchantAlreadyActive()

        merchant.status = MerchantStatus.ACTIVE
        merchant.approved_at = timezone.now()
        self._repo.save(merchant)
        log.info("merchant.approved")
        return merchant

    def get_merchant(self, merchant_id: str) -> Merchant:
        merchant = self._repo.get_alive(merchant_id)
        if not merchant:
            raise MerchantNotFound(f"Merchant {merchant_id} not found.")
        return merchant

    @transaction.atomic
    def update_settings(self, merchant_id: str, changes: Dict[str, Any], actor: str) -> Merchant:
        """Apply a partial settings update.

        ``changes`` may carry any of ``SETTINGS_FIELDS`` plus
        ``delivery_settings`` (a full pricing policy, replacing the stored
        one) and ``paynow_number``.

        Raises:
            MerchantNotFound: unknown or deleted merchant.
            InvalidDeliverySettings: the policy does not validate.
            InvalidPayee: the PayNow number is neither a mobile nor a UEN.
            NoFulfilmentMethodEnabled: delivery and pickup both switched off.
        """
        merchant = self.get_merchant(merchant_id)

        for field_name in SETTINGS_FIELDS:
            if field_name in changes:
                setattr(merchant, field_name, changes[field_name])

        if not merchant.delivery_enabled and not merchant.pickup_enabled:
            raise NoFulfilmentMethodEnabled(attr="pickup_enabled")

        if "paynow_number" in changes:
            merchant.paynow_number = normalise_paynow_number(changes["paynow_number"])

        if "delivery_settings" in changes:
            policy = policy_from_settings(changes["delivery_settings"], merchant.delivery_fee)
            merchant.delivery_settings = policy.model_dump(
                mode="json", by_alias=True, exclude_none=True
            )
            merchant.delivery_fee = headline_delivery_fee(policy)

        self._repo.save(merchant)
        logger.info(
            "merchant.settings_updated",
            merchant_id=str(merchant.id),
            actor=actor,
            fields=sorted(changes),
        )
        return merchant

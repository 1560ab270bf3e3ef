"""Pricing DTOs.

Framework-agnostic, immutable (``frozen=True``) Pydantic v2 models for
the totals calculator.  Money is always ``Decimal``; floats coming from
JSON settings are converted on validation.

- ``LineItem``: unit price x quantity.
- ``DeliveryPolicy``: how a merchant charges for delivery (FLAT, ZONE,
  DISTANCE, FREE) plus the free-delivery threshold.
- ``DeliveryContext``: facts about one order's fulfilment.
- ``Totals``: calculator output.
"""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ZERO = Decimal("0.00")


class PricingModel(StrEnum):
    FLAT = "FLAT"
    ZONE = "ZONE"
    DISTANCE = "DISTANCE"
    FREE = "FREE"


class DeliveryZone(StrEnum):
    SAME = "same_zone"
    ADJACENT = "adjacent_zone"
    CROSS = "cross_zone"
    SPECIAL = "special_area"


class FulfilmentMethod(StrEnum):
    DELIVERY = "DELIVERY"
    PICKUP = "PICKUP"
    DINE_IN = "DINE_IN"


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class ZoneRates(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    same_zone: Decimal = Field(default=Decimal("5"), ge=0, alias="sameZone")
    adjacent_zone: Decimal = Field(default=Decimal("7"), ge=0, alias="adjacentZone")
    cross_zone: Decimal = Field(default=Decimal("10"), ge=0, alias="crossZone")
    special_area: Decimal = Field(default=Decimal("15"), ge=0, alias="specialArea")

    def rate_for(self, zone: DeliveryZone) -> Decimal:
        return getattr(self, zone.value)


class DistanceTier(BaseModel):
    """Surcharge added once the distance exceeds ``min_km``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min_km: Decimal = Field(ge=0, alias="minKm")
    max_km: Optional[Decimal] = Field(default=None, alias="maxKm")
    additional_fee: Decimal = Field(ge=0, alias="additionalFee")


class DistanceRates(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    base_rate: Decimal = Field(default=Decimal("5"), ge=0, alias="baseRate")
    per_km_rate: Decimal = Field(default=ZERO, ge=0, alias="perKmRate")
    tiers: List[DistanceTier] = Field(default_factory=list)

    @field_validator("tiers")
    @classmethod
    def sort_tiers(cls, v: List[DistanceTier]) -> List[DistanceTier]:
        return sorted(v, key=lambda tier: tier.min_km)


class DeliveryPolicy(BaseModel):
    """A merchant's delivery pricing, as stored in ``delivery_settings``.

    Accepts both snake_case and the camelCase keys the dashboard writes.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pricing_model: PricingModel = Field(default=PricingModel.FLAT, alias="pricingModel")
    flat_rate: Decimal = Field(default=ZERO, ge=0, alias="flatRate")
    zone_rates: ZoneRates = Field(default_factory=ZoneRates, alias="zoneRates")
    distance_rates: DistanceRates = Field(
        default_factory=DistanceRates, alias="distanceRates"
    )
    free_delivery_minimum: Optional[Decimal] = Field(
        default=None, ge=0, alias="freeDeliveryMinimum"
    )
    special_area_surcharge: Decimal = Field(
        default=ZERO, ge=0, alias="specialAreaSurcharge"
    )


class DeliveryContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: FulfilmentMethod = FulfilmentMethod.PICKUP
    distance_km: Optional[Decimal] = Field(default=None, ge=0)
    zone: Optional[DeliveryZone] = None
    is_special_area: bool = False

    @property
    def is_delivery(self) -> bool:
        return self.method == FulfilmentMethod.DELIVERY


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    delivery_fee: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal


class DeliveryQuote(BaseModel):
    """Answer to "what would delivery to this postal code cost?"."""

    model_config = ConfigDict(frozen=True)

    fee: Decimal
    pricing_model: PricingModel
    zone: DeliveryZone
    is_special_area: bool
    distance_km: Optional[Decimal] = None
    estimated_minutes_min: Optional[int] = None
    estimated_minutes_max: Optional[int] = None
    free_delivery_applied: bool = False

"""Checkout DTOs.

``CheckoutSession`` is what the session store keeps: the merchant and
line prices as they were when the cart was priced, so completing the
session charges exactly what the customer was shown.  It round-trips
through JSON (``model_dump(mode="json")`` / ``model_validate``) because
the store is a shared cache.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.orders.variants import normalise_variant

MAX_ITEM_QUANTITY = 99


class CheckoutStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"


class CheckoutItemInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int = Field(ge=1, le=MAX_ITEM_QUANTITY)
    variant: Dict[str, Any] = Field(default_factory=dict)
    notes: str = Field(default="", max_length=500)

    @field_validator("variant", mode="before")
    @classmethod
    def parse_variant(cls, v: Any) -> Any:
        # lists and other JSON values are left for the dict check to reject
        if v is None or isinstance(v, (str, dict)):
            return normalise_variant(v)
        return v


class SessionItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    product_price: Decimal
    quantity: int
    total: Decimal
    variant: Dict[str, Any] = Field(default_factory=dict)
    notes: str = ""


class MerchantSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    business_name: str
    paynow_number: str = ""
    postal_code: str = ""
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    delivery_radius_km: Optional[Decimal] = None
    delivery_enabled: bool
    pickup_enabled: bool
    delivery_fee: Decimal
    minimum_order: Decimal
    delivery_settings: Dict[str, Any] = Field(default_factory=dict)
    preparation_minutes: int = 30

    @classmethod
    def from_merchant(cls, merchant: Any) -> MerchantSnapshot:
        return cls(
            id=merchant.id,
            business_name=merchant.business_name,
            paynow_number=merchant.paynow_number or "",
            postal_code=merchant.postal_code or "",
            latitude=merchant.latitude,
            longitude=merchant.longitude,
            delivery_radius_km=merchant.delivery_radius_km,
            delivery_enabled=merchant.delivery_enabled,
            pickup_enabled=merchant.pickup_enabled,
            delivery_fee=merchant.delivery_fee,
            minimum_order=merchant.minimum_order,
            delivery_settings=merchant.delivery_settings or {},
            preparation_minutes=merchant.preparation_minutes,
        )

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class CheckoutSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    merchant_id: UUID
    merchant: MerchantSnapshot
    items: List[SessionItem]
    subtotal: Decimal
    payment_reference: str
    status: CheckoutStatus = CheckoutStatus.PENDING
    created_at: datetime
    expires_at: datetime
    order_id: Optional[UUID] = None
    order_number: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    @property
    def is_completed(self) -> bool:
        return self.status == CheckoutStatus.COMPLETED


class MerchantSummaryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    business_name: str
    delivery_enabled: bool
    pickup_enabled: bool
    delivery_fee: Decimal
    minimum_order: Decimal
    has_paynow: bool


class CheckoutSessionOutputDTO(BaseModel):
    """What the storefront sees; internal pricing settings stay server-side."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    status: CheckoutStatus
    merchant: MerchantSummaryDTO
    items: List[SessionItem]
    subtotal: Decimal
    payment_reference: str
    expires_at: datetime
    order_id: Optional[UUID] = None
    order_number: Optional[str] = None

    @classmethod
    def from_session(cls, session: CheckoutSession) -> CheckoutSessionOutputDTO:
        merchant = session.merchant
        return cls(
            session_id=session.session_id,
            status=session.status,
            merchant=MerchantSummaryDTO(
                id=merchant.id,
                business_name=merchant.business_name,
                delivery_enabled=merchant.delivery_enabled,
                pickup_enabled=merchant.pickup_enabled,
                delivery_fee=merchant.delivery_fee,
                minimum_order=merchant.minimum_order,
                has_paynow=bool(merchant.paynow_number),
            ),
            items=session.items,
            subtotal=session.subtotal,
            payment_reference=session.payment_reference,
            expires_at=session.expires_at,
            order_id=session.order_id,
            order_number=session.order_number,
        )


class CompletedCheckoutDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    order_number: str
    total: Decimal
    payment_reference: str
    paynow_payload: Optional[str] = None

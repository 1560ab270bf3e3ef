"""Order DTOs for the Service Layer.

Immutable Pydantic v2 contracts between the API/checkout layers and
``OrderService``:

- ``CreateOrderItemDTO`` / ``CreateOrderDTO``: a fully priced order,
  built by checkout from a session; totals come from the calculator.
- ``BulkFailureDTO`` / ``BulkUpdateResultDTO``: partial-success summary
  of a bulk status change.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.orders.constants import DeliveryMethod, PaymentMethod, PaymentStatus


class CreateOrderItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    product_price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)
    variant: Dict[str, Any] = Field(default_factory=dict)
    notes: str = ""


class CreateOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    merchant_id: UUID
    customer_id: Optional[UUID] = None
    delivery_method: DeliveryMethod
    payment_method: PaymentMethod = PaymentMethod.PAYNOW
    payment_status: PaymentStatus = PaymentStatus.PENDING
    items: List[CreateOrderItemDTO]

    subtotal: Decimal = Field(ge=0)
    delivery_fee: Decimal = Field(ge=0)
    discount: Decimal = Field(default=Decimal("0.00"), ge=0)
    tax: Decimal = Field(default=Decimal("0.00"), ge=0)
    total: Decimal = Field(ge=0)

    customer_name: str
    customer_phone: str
    customer_email: str = ""
    delivery_address_id: Optional[UUID] = None
    delivery_notes: str = ""
    notes: str = ""
    payment_reference: str = ""
    payment_proof_url: str = ""

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[CreateOrderItemDTO]) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v


class BulkFailureDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    code: str
    detail: str


class BulkUpdateResultDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    success_count: int
    total_count: int
    failures: List[BulkFailureDTO] = Field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    def as_dict(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["failed_count"] = self.failed_count
        return data

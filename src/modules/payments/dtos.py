"""Payment DTOs returned by ``PaymentService`` queries."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PaymentStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    order_number: str
    status: str
    method: str
    amount: Decimal
    currency: str = "SGD"
    paid_at: Optional[datetime] = None
    payment_id: Optional[UUID] = None
    payment_reference: str = ""


class PayNowQRDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payload: str
    amount: Decimal
    reference: Optional[str] = None
    merchant_name: str

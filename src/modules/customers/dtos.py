"""Customer DTOs for the Service Layer.

Framework-agnostic, immutable Pydantic v2 models shared by checkout:

- ``ContactInfoDTO``: who is ordering (name, e-mail, Singapore phone).
- ``DeliveryAddressDTO``: where to deliver; its presence is what makes
  an order a DELIVERY order.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

_SG_PHONE = re.compile(r"^(?:\+65)?([689]\d{7})$")
_POSTAL_CODE = re.compile(r"^\d{6}$")


def normalise_phone(value: str) -> str:
    """Return the local 8-digit number for any accepted phone spelling."""
    candidate = re.sub(r"[\s()-]", "", value or "")
    match = _SG_PHONE.match(candidate)
    if not match:
        raise ValueError("Enter a valid Singapore phone number.")
    return match.group(1)


class ContactInfoDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=2, max_length=255)
    phone: str
    email: Optional[EmailStr] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @field_validator("phone", mode="before")
    @classmethod
    def check_phone(cls, v: str) -> str:
        return normalise_phone(v)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str):
            v = v.strip().lower()
        return v or None


class DeliveryAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    line1: str = Field(min_length=1, max_length=255)
    line2: str = Field(default="", max_length=255)
    postal_code: str
    label: str = Field(default="Delivery", max_length=50)
    latitude: Optional[Decimal] = Field(default=None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(default=None, ge=-180, le=180)

    @field_validator("postal_code", mode="before")
    @classmethod
    def check_postal_code(cls, v: str) -> str:
        value = (v or "").strip() if isinstance(v, str) else str(v)
        if not _POSTAL_CODE.match(value):
            raise ValueError("Postal code must be 6 digits.")
        return value

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

"""Customer and Address models.

Storefront customers check out as guests: a customer row is matched by
e-mail or phone on every checkout and created when nothing matches.
Addresses are written once per delivery order so the order keeps the
exact address it was delivered to.
"""

from __future__ import annotations

import structlog
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel

logger = structlog.get_logger(__name__)


class Customer(SoftDeleteModel):
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, blank=True, default="", db_index=True)
    phone = models.CharField(max_length=20, blank=True, default="", db_index=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
        ]

    def __str__(self) -> str:
        suffix = self.phone[-4:] if self.phone else "????"
        return f"{self.name} (***{suffix})"


class Address(BaseModel):
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="addresses",
    )
    label = models.CharField(max_length=50, blank=True, default="Delivery")
    line1 = models.CharField(max_length=255)
    line2 = models.CharField(max_length=255, blank=True, default="")
    postal_code = models.CharField(max_length=6)
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    class Meta:
        db_table = "addresses"
        ordering = ["-created_at"]

    @property
    def one_line(self) -> str:
        parts = [self.line1, self.line2, f"Singapore {self.postal_code}"]
        return ", ".join(part for part in parts if part)

    def __str__(self) -> str:
        return self.one_line

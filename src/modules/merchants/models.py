"""Merchant and Product catalog models.

- A merchant takes orders only while ACTIVE and ``accepting_orders``.
- ``delivery_settings`` holds the JSON pricing policy edited from the
  dashboard; it is validated by ``modules.pricing`` when used.
- Products belong to exactly one merchant; only ACTIVE, non-deleted
  products can be put in a checkout session.
- Both are soft deleted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.text import slugify

from modules.core.models import SoftDeleteModel


class MerchantStatus(models.TextChoices):
    PENDING = "PENDING", "Pending approval"
    ACTIVE = "ACTIVE", "Active"
    SUSPENDED = "SUSPENDED", "Suspended"


class Merchant(SoftDeleteModel):
    business_name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=120, unique=True)
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=20, blank=True, default="")
    status = models.CharField(
        max_length=20,
        choices=MerchantStatus.choices,
        default=MerchantStatus.PENDING,
    )
    accepting_orders = models.BooleanField(default=True)

    paynow_number = models.CharField(max_length=20, blank=True, default="")

    postal_code = models.CharField(max_length=6, blank=True, default="")
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    delivery_radius_km = models.DecimalField(
        max_digits=5, decimal_places=1, null=True, blank=True
    )

    delivery_enabled = models.BooleanField(default=True)
    pickup_enabled = models.BooleanField(default=True)
    delivery_fee = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    minimum_order = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    delivery_settings = models.JSONField(default=dict, blank=True)
    preparation_minutes = models.PositiveIntegerField(default=30)

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="merchants",
    )
    # ``sub`` claim of the identity-provider account operating this merchant
    auth_subject = models.CharField(max_length=255, unique=True, null=True, blank=True)  # noqa: DJ01
    approved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "merchants"
        ordering = ["business_name"]
        indexes = [
            models.Index(fields=["status"], name="merchants_status_idx"),
        ]

    @property
    def is_open_for_orders(self) -> bool:
        return (
            self.status == MerchantStatus.ACTIVE
            and self.accepting_orders
            and not self.is_deleted
        )

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.slug:
            self.slug = slugify(self.business_name)[:120]
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.business_name} ({self.status})"


class ProductStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    INACTIVE = "INACTIVE", "Inactive"


class Product(SoftDeleteModel):
    merchant = models.ForeignKey(
        "merchants.Merchant",
        on_delete=models.PROTECT,
        related_name="products",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["merchant", "status"], name="products_merchant_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    @property
    def is_available(self) -> bool:
        return self.status == ProductStatus.ACTIVE and not self.is_deleted

    def __str__(self) -> str:
        return f"{self.name} (${self.price})"

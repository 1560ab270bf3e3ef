"""Django ORM implementation of the merchant catalog repositories.

Null Object style: look-ups return ``None`` (or omit entries) for
missing rows and malformed ids.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError

from modules.merchants.models import Merchant, Product, ProductStatus
from modules.merchants.repositories.interfaces import (
    IMerchantRepository,
    IProductRepository,
)

logger = structlog.get_logger(__name__)


def _parse_uuid(value: Any) -> Optional[uuid.UUID]:
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class MerchantDjangoRepository(IMerchantRepository):
    def get_by_id(self, id: str) -> Optional[Merchant]:
        try:
            return Merchant.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_alive(self, id: str) -> Optional[Merchant]:
        try:
            return Merchant.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_auth_subject(self, sub: str) -> Optional[Merchant]:
        if not sub:
            return None
        return Merchant.objects.alive().filter(auth_subject=sub).first()

    def get_by_owner(self, user_id: object) -> Optional[Merchant]:
        if user_id is None:
            return None
        return Merchant.objects.alive().filter(owner_id=user_id).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Merchant]:
        queryset = Merchant.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def save(self, entity: Merchant) -> Merchant:
        entity.save()
        logger.info("merchant.saved", merchant_id=str(entity.id), status=entity.status)
        return entity


class ProductDjangoRepository(IProductRepository):
    def get_by_id(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        queryset = Product.objects.alive().select_related("merchant")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    def get_available_for_merchant(
        self, merchant_id: str, product_ids: Iterable[str]
    ) -> Dict[str, Product]:
        parsed = {pid for pid in (_parse_uuid(value) for value in product_ids) if pid}
        if not parsed:
            return {}
        queryset = Product.objects.alive().filter(
            merchant_id=merchant_id,
            status=ProductStatus.ACTIVE,
            id__in=parsed,
        )
        return {str(product.id): product for product in queryset}

"""Merchant catalog repositories package."""

from modules.merchants.repositories.django_repository import (
    MerchantDjangoRepository,
    ProductDjangoRepository,
)
from modules.merchants.repositories.interfaces import (
    IMerchantRepository,
    IProductRepository,
)

__all__ = [
    "IMerchantRepository",
    "IProductRepository",
    "MerchantDjangoRepository",
    "ProductDjangoRepository",
]

"""Merchant catalog repository contracts.

The checkout flow depends on these to validate and price cart lines;
it never touches the ORM directly.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.merchants.models import Merchant, Product


class IMerchantRepository(IRepository["Merchant"]):
    @abstractmethod
    def get_alive(self, id: str) -> Optional[Merchant]:
        """Retrieve a non-deleted merchant, whatever its status."""

    @abstractmethod
    def get_by_auth_subject(self, sub: str) -> Optional[Merchant]:
        """Retrieve the merchant linked to an identity-provider subject."""

    @abstractmethod
    def get_by_owner(self, user_id: object) -> Optional[Merchant]:
        """Retrieve the merchant operated by a local user account."""


class IProductRepository(IRepository["Product"]):
    @abstractmethod
    def get_available_for_merchant(
        self, merchant_id: str, product_ids: Iterable[str]
    ) -> Dict[str, Product]:
        """Map product id (string) to product for active products of one merchant.

        Ids that are unknown, inactive, deleted, malformed or owned by
        another merchant are simply absent from the result.
        """

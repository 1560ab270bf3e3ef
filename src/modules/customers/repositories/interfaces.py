"""Customer repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.dtos import DeliveryAddressDTO
    from modules.customers.models import Address, Customer


class ICustomerRepository(IRepository["Customer"]):
    @abstractmethod
    def find_by_contact(self, email: Optional[str], phone: Optional[str]) -> Optional[Customer]:
        """Return the oldest live customer matching the e-mail, else the phone."""

    @abstractmethod
    def add_address(self, customer: Customer, address: DeliveryAddressDTO) -> Address:
        """Store a delivery address for a customer."""

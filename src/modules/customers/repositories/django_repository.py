"""Django ORM implementation of the Customer repository.

Null Object style: look-ups return ``None`` instead of raising; the
service layer decides what a missing customer means.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError

from modules.customers.models import Address, Customer
from modules.customers.repositories.interfaces import ICustomerRepository

if TYPE_CHECKING:
    from modules.customers.dtos import DeliveryAddressDTO

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    def get_by_id(self, id: str) -> Optional[Customer]:
        try:
            return Customer.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Customer]:
        queryset = Customer.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def save(self, entity: Customer) -> Customer:
        is_new = entity._state.adding
        entity.save()
        logger.info("customer.saved", customer_id=str(entity.id), is_new=is_new)
        return entity

    def find_by_contact(self, email: Optional[str], phone: Optional[str]) -> Optional[Customer]:
        queryset = Customer.objects.alive().order_by("created_at")
        if email:
            customer = queryset.filter(email__iexact=email).first()
            if customer:
                return customer
        if phone:
            return queryset.filter(phone=phone).first()
        return None

    def add_address(self, customer: Customer, address: DeliveryAddressDTO) -> Address:
        row = Address.objects.create(
            customer=customer,
            label=address.label,
            line1=address.line1,
            line2=address.line2,
            postal_code=address.postal_code,
            latitude=address.latitude,
            longitude=address.longitude,
        )
        logger.info("customer.address_added", customer_id=str(customer.id), address_id=str(row.id))
        return row

"""Customer service layer (Use Cases).

Checkout identifies guests by contact details rather than accounts:
``resolve_customer`` matches an existing customer by e-mail, then by
phone, and creates one when neither matches.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.customers.models import Customer

if TYPE_CHECKING:
    from modules.customers.dtos import ContactInfoDTO
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerService:
    def __init__(self, repository: ICustomerRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def resolve_customer(self, contact: ContactInfoDTO) -> Customer:
        """Return the matching customer, creating it when needed.

        A matched customer with no e-mail on file picks up the one
        supplied now.
        """
        customer = self._repo.find_by_contact(contact.email, contact.phone)
        if customer:
            if contact.email and not customer.email:
                customer.email = contact.email
                self._repo.save(customer)
            logger.info("customer.matched", customer_id=str(customer.id))
            return customer

        customer = Customer(name=contact.name, email=contact.email or "", phone=contact.phone)
        customer = self._repo.save(customer)
        logger.info("customer.created", customer_id=str(customer.id))
        return customer

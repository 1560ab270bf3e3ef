"""Order repository interface.

Extends ``IRepository[Order]`` with what the order lifecycle needs:
atomic creation with items, merchant-scoped look-ups, the conditional
status update used for optimistic concurrency and the audit trail.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order, OrderEvent, OrderItem


class IOrderRepository(IRepository["Order"]):
    @abstractmethod
    def create(self, dto: CreateOrderDTO) -> Order:
        """Persist an order with its items."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with items and audit events prefetched."""

    @abstractmethod
    def get_for_merchant(self, id: str, merchant_id: Any) -> Optional[Order]:
        """Retrieve an order only if it belongs to ``merchant_id``."""

    @abstractmethod
    def lock(self, id: Any) -> Optional[Order]:
        """Re-read the order under a row lock; call inside a transaction."""

    @abstractmethod
    def get_by_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order by its human-readable number."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Lazy queryset so filter backends and pagination can refine it."""

    @abstractmethod
    def compare_and_set(self, id: UUID, expected_status: str, changes: Dict[str, Any]) -> bool:
        """Apply ``changes`` only while the stored status is ``expected_status``.

        Returns ``False`` when no row matched (the order moved meanwhile).
        """

    @abstractmethod
    def update_fields(self, id: UUID, changes: Dict[str, Any]) -> None:
        """Unconditional column update (payment fields, notes)."""

    @abstractmethod
    def add_event(
        self,
        order_id: UUID,
        event: str,
        data: Dict[str, Any],
        actor: Optional[str] = None,
    ) -> OrderEvent:
        """Append an audit entry."""

    @abstractmethod
    def record_domain_events(self, order: Order) -> int:
        """Move the aggregate's pending domain events into the outbox."""

    @abstractmethod
    def set_item_prepared(self, order_id: UUID, item_id: str, prepared: bool) -> Optional[OrderItem]:
        """Flag a line item as prepared (or not); ``None`` if it is not on the order."""

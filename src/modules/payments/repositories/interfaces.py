from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.payments.models import Payment


class IPaymentRepository(IRepository["Payment"]):
    @abstractmethod
    def get_latest_for_order(self, order_id: Any, for_update: bool = False) -> Optional[Payment]:
        """The most recent payment row of an order, or ``None``.

        ``for_update`` takes a row lock and must run inside a transaction.
        """

    @abstractmethod
    def create(
        self,
        order_id: Any,
        amount: Decimal,
        method: str,
        status: str,
        transaction_id: str = "",
    ) -> Payment:
        """Insert a new payment row."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError

from modules.payments.models import Payment
from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)


class PaymentDjangoRepository(IPaymentRepository):
    def get_by_id(self, id: str) -> Optional[Payment]:
        try:
            return Payment.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Payment]:
        queryset = Payment.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def save(self, entity: Payment) -> Payment:
        entity.save()
        return entity

    def get_latest_for_order(self, order_id: Any, for_update: bool = False) -> Optional[Payment]:
        queryset = Payment.objects.filter(order_id=order_id)
        if for_update:
            queryset = queryset.select_for_update()
        return queryset.order_by("-created_at", "-id").first()

    def create(
        self,
        order_id: Any,
        amount: Decimal,
        method: str,
        status: str,
        transaction_id: str = "",
    ) -> Payment:
        payment = Payment.objects.create(
            order_id=order_id,
            amount=amount,
            method=method,
            status=status,
            transaction_id=transaction_id or "",
        )
        logger.info(
            "payment.created",
            payment_id=str(payment.id),
            order_id=str(order_id),
            status=status,
        )
        return payment

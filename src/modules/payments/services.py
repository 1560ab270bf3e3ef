"""Payment verification workflow.

Customers pay by PayNow bank transfer and upload proof; the merchant
then verifies (order PENDING -> CONFIRMED, payment COMPLETED) or rejects
(order -> CANCELLED, payment FAILED).  Both decisions go through
``OrderService.apply_transition`` so they race safely: whichever commits
first wins and the other gets a conflict.  Verify, reject and proof
upload re-read the order and its latest payment under a row lock, so
Payment and Order never disagree.  Repeating a decision that already
took effect returns the order unchanged.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

import structlog
from django.conf import settings
from django.db import models, transaction
from django.utils import timezone

from modules.merchants.exceptions import MerchantNotFound
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.exceptions import OrderNotFound
from modules.orders.services import OrderService
from modules.payments.dtos import PaymentStatusDTO, PayNowQRDTO
from modules.payments.events import PaymentProofUploaded, PaymentRejected, PaymentVerified
from modules.payments.exceptions import (
    InvalidRejectionReason,
    PaymentAlreadyProcessed,
    PaymentNotPending,
    PayNowNotConfigured,
)
from modules.payments.paynow import build_paynow_payload, merchant_display_name, normalise_amount

if TYPE_CHECKING:
    from modules.merchants.repositories.interfaces import IMerchantRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.models import Payment
    from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)

MIN_REJECTION_REASON_LENGTH = 2


class PaymentService:
    def __init__(
        self,
        payment_repository: IPaymentRepository,
        order_repository: IOrderRepository,
        merchant_repository: IMerchantRepository,
    ) -> None:
        self._payment_repo = payment_repository
        self._order_repo = order_repository
        self._merchant_repo = merchant_repository
        self._orders = OrderService(order_repository)

    # ------------------------------------------------------------------
    # Merchant decisions
    # ------------------------------------------------------------------

    @transaction.atomic
    def verify_payment(
        self,
        order_id: Any,
        actor: Optional[str] = None,
        merchant_id: Any = None,
        amount: Optional[Decimal] = None,
        transaction_id: str = "",
    ) -> Order:
        """Confirm the transfer arrived and move the order to CONFIRMED.

        Raises:
            OrderNotFound: unknown order or another merchant's.
            PaymentAlreadyProcessed: already verified under another transaction id.
            PaymentNotPending: the order is past PENDING (e.g. rejected).
            InvalidOrderStatus: lost a race with a concurrent decision.
        """
        order = self._lock(self._orders.get_order(order_id, merchant_id=merchant_id))
        log = logger.bind(order_id=str(order.id), actor=actor)

        if order.status == OrderStatus.CONFIRMED and order.payment_status == PaymentStatus.COMPLETED:
            latest = self._payment_repo.get_latest_for_order(order.id, for_update=True)
            recorded = latest.transaction_id if latest else ""
            if transaction_id and recorded and transaction_id != recorded:
                raise PaymentAlreadyProcessed(
                    f"Order {order.order_number} was already verified with transaction {recorded}."
                )
            log.info("payment.verify_repeated")
            return order

        if order.status != OrderStatus.PENDING:
            raise PaymentNotPending(
                f"Order {order.order_number} is {order.status}; its payment can no longer be verified."
            )

        now = timezone.now()
        paid = normalise_amount(amount if amount is not None else order.total)
        payment = self._payment_repo.get_latest_for_order(order.id, for_update=True)
        if payment is None:
            payment = self._payment_repo.create(
                order.id, paid, order.payment_method, PaymentStatus.COMPLETED, transaction_id
            )
        else:
            payment.amount = paid
            payment.status = PaymentStatus.COMPLETED
            if transaction_id:
                payment.transaction_id = transaction_id
        payment.processed_at = now
        self._payment_repo.save(payment)

        order.add_domain_event(
            PaymentVerified(
                aggregate_id=order.id,
                data={
                    "order_number": order.order_number,
                    "merchant_id": str(order.merchant_id),
                    "payment_id": str(payment.id),
                    "amount": str(paid),
                },
            )
        )
        self._orders.apply_transition(
            order,
            OrderStatus.CONFIRMED,
            actor=actor,
            changes={
                "payment_status": PaymentStatus.COMPLETED,
                "payment_confirmed_at": now,
                "payment_confirmed_by": actor or "",
            },
            audit_event="payment_verified",
            audit_data={
                "payment_id": str(payment.id),
                "amount": str(paid),
                "transaction_id": payment.transaction_id,
            },
        )
        log.info("payment.verified", payment_id=str(payment.id), amount=str(paid))
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def reject_payment(
        self,
        order_id: Any,
        reason: str,
        actor: Optional[str] = None,
        merchant_id: Any = None,
    ) -> Order:
        """Reject the transfer and cancel the order.

        Raises:
            InvalidRejectionReason: reason shorter than 2 characters.
            OrderNotFound: unknown order or another merchant's.
            PaymentAlreadyProcessed: the payment was already verified.
            InvalidOrderStatus: the order can no longer be cancelled.
        """
        reason = (reason or "").strip()
        if len(reason) < MIN_REJECTION_REASON_LENGTH:
            raise InvalidRejectionReason(attr="reason")

        order = self._lock(self._orders.get_order(order_id, merchant_id=merchant_id))
        log = logger.bind(order_id=str(order.id), actor=actor)

        if order.status == OrderStatus.CANCELLED and order.payment_status == PaymentStatus.FAILED:
            log.info("payment.reject_repeated")
            return order
        if order.payment_status == PaymentStatus.COMPLETED:
            raise PaymentAlreadyProcessed(
                f"Payment for order {order.order_number} was already verified."
            )

        payment = self._payment_repo.get_latest_for_order(order.id, for_update=True)
        if payment is not None:
            payment.status = PaymentStatus.FAILED
            payment.processed_at = timezone.now()
            self._payment_repo.save(payment)

        rejection_note = f"Payment rejected: {reason}"
        notes = f"{order.notes}\n{rejection_note}" if order.notes else rejection_note
        order.cancellation_reason = rejection_note
        payment_id = str(payment.id) if payment else None

        order.add_domain_event(
            PaymentRejected(
                aggregate_id=order.id,
                data={
                    "order_number": order.order_number,
                    "merchant_id": str(order.merchant_id),
                    "payment_id": payment_id,
                    "reason": reason,
                },
            )
        )
        self._orders.apply_transition(
            order,
            OrderStatus.CANCELLED,
            actor=actor,
            notes=reason,
            changes={
                "payment_status": PaymentStatus.FAILED,
                "notes": notes,
                "cancellation_reason": rejection_note,
            },
            audit_event="payment_rejected",
            audit_data={"reason": reason, "payment_id": payment_id},
        )
        log.info("payment.rejected", payment_id=payment_id)
        return self._order_repo.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Customer actions
    # ------------------------------------------------------------------

    @transaction.atomic
    def upload_proof(
        self,
        order_id: Any,
        proof_url: str,
        transaction_id: str = "",
    ) -> Payment:
        order = self._lock(self._orders.get_order(order_id))
        if order.payment_status == PaymentStatus.COMPLETED:
            raise PaymentAlreadyProcessed()
        if order.is_terminal:
            raise PaymentNotPending(
                f"Order {order.order_number} is {order.status}; proof can no longer be attached."
            )

        payment = self._payment_repo.get_latest_for_order(order.id, for_update=True)
        if payment is None or payment.status == PaymentStatus.FAILED:
            payment = self._payment_repo.create(
                order.id, order.total, order.payment_method, PaymentStatus.PROCESSING, transaction_id
            )
        else:
            payment.status = PaymentStatus.PROCESSING
            if transaction_id:
                payment.transaction_id = transaction_id
            self._payment_repo.save(payment)

        self._order_repo.update_fields(
            order.id,
            {"payment_proof_url": proof_url, "payment_status": PaymentStatus.PROCESSING},
        )
        self._order_repo.add_event(
            order.id,
            "payment_proof_uploaded",
            {"payment_id": str(payment.id), "transaction_id": payment.transaction_id},
            actor="customer",
        )
        order.add_domain_event(
            PaymentProofUploaded(
                aggregate_id=order.id,
                data={
                    "order_number": order.order_number,
                    "merchant_id": str(order.merchant_id),
                    "payment_id": str(payment.id),
                },
            )
        )
        self._order_repo.record_domain_events(order)
        logger.info("payment.proof_uploaded", order_id=str(order.id), payment_id=str(payment.id))
        return payment

    def _lock(self, order: Order) -> Order:
        """Re-read ``order`` under a row lock so decisions see committed state."""
        locked = self._order_repo.lock(order.id)
        if locked is None:
            raise OrderNotFound()
        return locked

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_payment_status(self, order_id: Any) -> PaymentStatusDTO:
        order = self._orders.get_order(order_id)
        payment = self._payment_repo.get_latest_for_order(order.id)
        return PaymentStatusDTO(
            order_id=order.id,
            order_number=order.order_number,
            status=order.payment_status,
            method=order.payment_method,
            amount=payment.amount if payment else order.total,
            currency=payment.currency if payment else "SGD",
            paid_at=order.payment_confirmed_at,
            payment_id=payment.id if payment else None,
            payment_reference=order.payment_reference,
        )

    def list_pending_payments(self, merchant_id: Any) -> models.QuerySet:
        """Orders waiting for the merchant to check an uploaded proof."""
        return self._orders.list_orders(
            merchant_id,
            {"payment_status": PaymentStatus.PROCESSING, "status": OrderStatus.PENDING},
        ).exclude(payment_proof_url="").order_by("created_at")

    def generate_qr(
        self,
        merchant_id: Any,
        amount: Optional[Decimal] = None,
        reference: Optional[str] = None,
    ) -> PayNowQRDTO:
        merchant = self._merchant_repo.get_by_id(str(merchant_id))
        if not merchant:
            raise MerchantNotFound()
        if not merchant.paynow_number:
            raise PayNowNotConfigured()

        name = merchant_display_name(
            merchant.business_name or settings.PAYNOW_DEFAULT_MERCHANT_NAME
        )
        payload = build_paynow_payload(
            merchant.paynow_number,
            amount=amount or 0,
            reference=reference,
            merchant_name=name,
            merchant_city=settings.PAYNOW_MERCHANT_CITY,
        )
        return PayNowQRDTO(
            payload=payload,
            amount=normalise_amount(amount or 0),
            reference=reference or None,
            merchant_name=name,
        )

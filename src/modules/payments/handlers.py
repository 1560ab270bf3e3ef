"""Event handlers for Payments domain events."""

from __future__ import annotations

from modules.orders.handlers import dispatch_notification
from modules.payments.events import PaymentProofUploaded, PaymentRejected, PaymentVerified
from shared.domain.bus import IEventBus, IEventHandler


class PaymentProofUploadedHandler(IEventHandler[PaymentProofUploaded]):
    def handle(self, event: PaymentProofUploaded) -> None:
        dispatch_notification(
            "merchant_dashboard",
            "payment_proof_received",
            event.event_name,
            order_id=str(event.aggregate_id),
            order_number=event.data.get("order_number"),
            merchant_id=event.data.get("merchant_id"),
        )


class PaymentVerifiedHandler(IEventHandler[PaymentVerified]):
    def handle(self, event: PaymentVerified) -> None:
        dispatch_notification(
            "email",
            "payment_receipt",
            event.event_name,
            order_id=str(event.aggregate_id),
            order_number=event.data.get("order_number"),
            amount=event.data.get("amount"),
        )


class PaymentRejectedHandler(IEventHandler[PaymentRejected]):
    def handle(self, event: PaymentRejected) -> None:
        dispatch_notification(
            "sms",
            "payment_rejected",
            event.event_name,
            order_id=str(event.aggregate_id),
            order_number=event.data.get("order_number"),
            reason=event.data.get("reason", ""),
        )


payment_proof_uploaded_handler = PaymentProofUploadedHandler()
payment_verified_handler = PaymentVerifiedHandler()
payment_rejected_handler = PaymentRejectedHandler()


def register_handlers(bus: IEventBus) -> None:
    bus.subscribe(PaymentProofUploaded, payment_proof_uploaded_handler)
    bus.subscribe(PaymentVerified, payment_verified_handler)
    bus.subscribe(PaymentRejected, payment_rejected_handler)

"""Domain events for the Payments bounded context.

Recorded on the ``Order`` aggregate so they reach the outbox in the same
transaction as the order change they describe.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class PaymentProofUploaded(DomainEvent):
    topic = "payments"


@dataclass(frozen=True)
class PaymentVerified(DomainEvent):
    topic = "payments"


@dataclass(frozen=True)
class PaymentRejected(DomainEvent):
    topic = "payments"

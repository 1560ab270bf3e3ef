"""Payment domain exceptions.

QR encoder errors are validation errors raised before anything is
encoded; workflow errors follow the shared taxonomy.
"""

from __future__ import annotations

from shared.domain.exceptions import (
    Conflict,
    NotFound,
    PreconditionFailed,
    ValidationFailed,
)


class InvalidPayee(ValidationFailed):
    code = "invalid_payee"
    default_detail = "PayNow payee must be a Singapore mobile number or a UEN."


class InvalidAmount(ValidationFailed):
    code = "invalid_amount"
    default_detail = "Amount must not be negative."


class FieldTooLong(ValidationFailed):
    code = "field_too_long"


class ReferenceTooLong(FieldTooLong):
    code = "reference_too_long"


class InvalidReference(ValidationFailed):
    code = "invalid_reference"


class MalformedPayload(ValidationFailed):
    code = "malformed_payload"


class PaymentNotFound(NotFound):
    code = "payment_not_found"
    default_detail = "Payment not found."


class PaymentAlreadyProcessed(Conflict):
    code = "payment_already_processed"
    default_detail = "This payment has already been processed."


class PaymentNotPending(Conflict):
    """The order cannot take this payment decision from its current state."""

    code = "payment_not_pending"


class PayNowNotConfigured(PreconditionFailed):
    code = "paynow_not_configured"
    default_detail = "The merchant has not configured a PayNow number."


class InvalidRejectionReason(ValidationFailed):
    code = "invalid_reason"
    default_detail = "Give a reason of at least 2 characters."

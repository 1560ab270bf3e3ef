"""Checkout domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import Conflict, NotFound, PreconditionFailed, ValidationFailed


class CheckoutSessionNotFound(NotFound):
    code = "checkout_session_not_found"
    default_detail = "Checkout session not found."


class CheckoutSessionExpired(ValidationFailed):
    """Raised once; the session is evicted and later reads get NotFound."""

    code = "checkout_session_expired"
    default_detail = "Checkout session has expired. Please start again."


class CheckoutSessionCompleted(Conflict):
    code = "checkout_session_completed"
    default_detail = "This checkout session has already been completed."


class EmptyCart(ValidationFailed):
    code = "empty_cart"
    default_detail = "Add at least one item to check out."


class DeliveryMethodUnavailable(PreconditionFailed):
    code = "delivery_method_unavailable"

"""Merchant and catalog domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import Conflict, NotFound, PreconditionFailed, ValidationFailed


class MerchantNotFound(NotFound):
    code = "merchant_not_found"
    default_detail = "Merchant not found."


class ProductNotFound(NotFound):
    """A product is missing, inactive, deleted or belongs to another merchant."""

    code = "product_not_found"
    default_detail = "Product not found."


class MerchantNotAcceptingOrders(PreconditionFailed):
    code = "merchant_not_accepting_orders"
    default_detail = "This merchant is not accepting orders right now."


class MerchantAlreadyActive(Conflict):
    code = "merchant_already_active"
    default_detail = "Merchant is already active."


class NoFulfilmentMethodEnabled(ValidationFailed):
    code = "no_fulfilment_method_enabled"
    default_detail = "At least one of delivery or pickup must stay enabled."

"""Pricing and delivery domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import PreconditionFailed, ValidationFailed


class InvalidDeliverySettings(ValidationFailed):
    """A merchant's stored delivery settings do not describe a valid policy."""

    code = "invalid_delivery_settings"


class InvalidPostalCode(ValidationFailed):
    code = "invalid_postal_code"
    default_detail = "Postal code must be 6 digits."


class MinimumOrderNotMet(PreconditionFailed):
    code = "minimum_order_not_met"


class DeliveryNotOffered(PreconditionFailed):
    code = "delivery_not_offered"
    default_detail = "This merchant does not offer delivery."


class OutsideDeliveryRadius(PreconditionFailed):
    code = "outside_delivery_radius"

"""Order domain exceptions.

Raised by the service layer; the DRF exception handler maps each base
class to its HTTP status.
"""

from __future__ import annotations

from shared.domain.exceptions import Conflict, NotFound, ValidationFailed


class OrderNotFound(NotFound):
    """Unknown order, or one that belongs to another merchant."""

    code = "order_not_found"
    default_detail = "Order not found."


class OrderItemNotFound(NotFound):
    code = "order_item_not_found"
    default_detail = "Order item not found."


class InvalidOrderStatus(Conflict):
    """The transition table does not allow this move, or the order moved concurrently."""

    code = "invalid_transition"
    default_detail = "This status change isn't available for the order."


class UnknownOrderStatus(ValidationFailed):
    code = "unknown_status"


class OrderClosed(Conflict):
    code = "order_closed"
    default_detail = "The order is already closed."


class BulkLimitExceeded(ValidationFailed):
    code = "bulk_limit_exceeded"

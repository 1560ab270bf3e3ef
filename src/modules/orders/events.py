"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """An order was placed from a checkout session."""

    topic = "orders"


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """``data`` carries ``from``, ``to``, ``order_number`` and ``merchant_id``."""

    topic = "orders"


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    topic = "orders"

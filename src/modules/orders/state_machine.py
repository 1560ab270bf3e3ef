"""Order status transition rules.

One table serves pickup and delivery orders alike; the only divergence
is that pickup (and dine-in) orders can never reach the delivery-only
statuses, so they go READY -> COMPLETED directly.
"""

from __future__ import annotations

from typing import List

from modules.orders.constants import (
    ALLOWED_SOURCES,
    DELIVERY_ONLY_TARGETS,
    TERMINAL_STATES,
    OrderStatus,
)


def can_transition(current: str, target: str, is_pickup: bool) -> bool:
    if is_pickup and target in DELIVERY_ONLY_TARGETS:
        return False
    return current in ALLOWED_SOURCES.get(target, frozenset())


def next_statuses(current: str, is_pickup: bool) -> List[str]:
    """Statuses reachable in one step, in lifecycle order (drives kanban drop targets)."""
    return [
        status.value
        for status in OrderStatus
        if can_transition(current, status.value, is_pickup)
    ]


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES

"""Domain event primitives for the modular monolith.

Events are recorded on aggregates, persisted to the transactional outbox
by repositories and later rebuilt from outbox rows by name, which is why
every concrete event class registers itself in ``EVENT_REGISTRY``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Type
from uuid import UUID, uuid4

EVENT_REGISTRY: Dict[str, Type["DomainEvent"]] = {}


@dataclass(frozen=True)
class DomainEvent:
    """Base domain event (immutable).

    ``data`` carries the small, JSON-friendly facts a handler needs
    (old/new status, merchant id, amounts as strings).
    """

    aggregate_id: UUID
    data: Dict[str, Any] = field(default_factory=dict)
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    topic = "domain"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        EVENT_REGISTRY[cls.__name__] = cls

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", self.__class__.__name__)

    @classmethod
    def from_record(
        cls,
        event_name: str,
        aggregate_id: str,
        payload: Dict[str, Any],
    ) -> DomainEvent:
        """Rebuild an event from its outbox representation.

        Raises ``LookupError`` for names no loaded module has registered.
        """
        try:
            event_class = EVENT_REGISTRY[event_name]
        except KeyError as exc:
            raise LookupError(f"Unknown domain event '{event_name}'.") from exc
        kwargs: Dict[str, Any] = {
            "aggregate_id": UUID(str(aggregate_id)),
            "data": dict(payload.get("data") or {}),
        }
        if payload.get("event_id"):
            kwargs["event_id"] = UUID(str(payload["event_id"]))
        if payload.get("occurred_on"):
            kwargs["occurred_on"] = datetime.fromisoformat(payload["occurred_on"])
        return event_class(**kwargs)


class DomainEventMixin:
    """Mixin for aggregate roots that collect domain events in memory."""

    _domain_events: list[DomainEvent]

    def add_domain_event(self, event: DomainEvent) -> None:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        self._domain_events.append(event)

    def clear_domain_events(self) -> None:
        if hasattr(self, "_domain_events"):
            self._domain_events.clear()

    @property
    def domain_events(self) -> list[DomainEvent]:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        return list(self._domain_events)

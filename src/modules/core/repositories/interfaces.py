"""Generic repository contract (Dependency Inversion).

Every module's repository interface extends ``IRepository[T]``; services
depend on these abstractions and receive the Django implementations by
constructor injection.  Look-ups return ``None`` for missing rows and
malformed ids (Null Object); services decide which domain error to raise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by primary key."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[T]:
        """List entities matching ORM-style look-ups."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""

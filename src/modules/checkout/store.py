"""Checkout session storage.

Sessions live in the Django cache (Redis in deployment) so every API
instance sees the same sessions.  Keys expire natively after the session
TTL plus an eviction grace period; the grace keeps an expired session
readable long enough to answer "expired" rather than "not found".

Completion is serialised with ``cache.add`` on a separate claim key,
which only succeeds for the first caller (SET NX on Redis).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import structlog
from django.conf import settings
from django.core.cache import caches

from modules.checkout.dtos import CheckoutSession

logger = structlog.get_logger(__name__)

SESSION_KEY = "checkout:session:{}"
CLAIM_KEY = "checkout:claim:{}"


class ICheckoutSessionStore(ABC):
    @abstractmethod
    def get(self, session_id: str) -> Optional[CheckoutSession]:
        """Stored session, expired or not; ``None`` once evicted."""

    @abstractmethod
    def save(self, session: CheckoutSession) -> None: ...

    @abstractmethod
    def delete(self, session_id: str) -> None: ...

    @abstractmethod
    def claim(self, session_id: str) -> bool:
        """Take the exclusive right to complete a session; ``False`` if someone has it."""

    @abstractmethod
    def release_claim(self, session_id: str) -> None: ...


class CacheCheckoutSessionStore(ICheckoutSessionStore):
    def __init__(self, alias: Optional[str] = None) -> None:
        self._cache = caches[alias or settings.CHECKOUT_SESSION_CACHE_ALIAS]
        self._timeout = (
            settings.CHECKOUT_SESSION_TTL_MINUTES + settings.CHECKOUT_SESSION_EVICTION_GRACE_MINUTES
        ) * 60

    def get(self, session_id: str) -> Optional[CheckoutSession]:
        if not session_id:
            return None
        raw = self._cache.get(SESSION_KEY.format(session_id))
        if raw is None:
            return None
        return CheckoutSession.model_validate(raw)

    def save(self, session: CheckoutSession) -> None:
        self._cache.set(
            SESSION_KEY.format(session.session_id),
            session.model_dump(mode="json"),
            timeout=self._timeout,
        )

    def delete(self, session_id: str) -> None:
        self._cache.delete(SESSION_KEY.format(session_id))
        logger.info("checkout.session_evicted", session_id=session_id)

    def claim(self, session_id: str) -> bool:
        # Held until the key expires on success so a completed session can never be re-claimed
        return self._cache.add(CLAIM_KEY.format(session_id), "1", timeout=self._timeout)

    def release_claim(self, session_id: str) -> None:
        self._cache.delete(CLAIM_KEY.format(session_id))

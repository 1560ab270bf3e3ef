"""Merchant resolution for authenticated principals.

A principal operates a merchant either through a local user account
(``Merchant.owner``) or an identity-provider subject
(``Merchant.auth_subject``).
"""

from __future__ import annotations

from typing import Any, Optional

from rest_framework.permissions import BasePermission

from modules.merchants.models import Merchant
from modules.merchants.repositories.django_repository import MerchantDjangoRepository
from modules.merchants.repositories.interfaces import IMerchantRepository


class MerchantPolicy:
    def __init__(self, repository: Optional[IMerchantRepository] = None) -> None:
        self._repo = repository or MerchantDjangoRepository()

    def resolve(self, principal: Any) -> Optional[Merchant]:
        if principal is None or not getattr(principal, "is_authenticated", False):
            return None
        sub = getattr(principal, "sub", "")
        if sub:
            return self._repo.get_by_auth_subject(sub)
        return self._repo.get_by_owner(getattr(principal, "pk", None))


class IsMerchant(BasePermission):
    """Grant access when the caller operates a merchant; exposes it as ``request.merchant``."""

    message = "A merchant account is required."

    def has_permission(self, request, view) -> bool:
        merchant = MerchantPolicy().resolve(request.user)
        if merchant is None:
            return False
        request.merchant = merchant
        return True

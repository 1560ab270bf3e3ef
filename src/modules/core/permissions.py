"""Platform-level authorization policy.

Admin access is decided in one place: ``AdminPolicy`` built from the
``ADMIN_EMAILS`` setting.  Django superusers always qualify, as do
identity-provider principals holding the ``admin:platform`` permission.
"""

from __future__ import annotations

from typing import Any, Iterable

from django.conf import settings
from rest_framework.permissions import BasePermission

ADMIN_PERMISSION = "admin:platform"


class AdminPolicy:
    def __init__(self, admin_emails: Iterable[str]) -> None:
        self._emails = frozenset(
            email.strip().lower() for email in admin_emails if email and email.strip()
        )

    @classmethod
    def from_settings(cls) -> AdminPolicy:
        return cls(getattr(settings, "ADMIN_EMAILS", []))

    def is_admin(self, principal: Any) -> bool:
        if principal is None or not getattr(principal, "is_authenticated", False):
            return False
        if getattr(principal, "is_superuser", False):
            return True
        if ADMIN_PERMISSION in (getattr(principal, "permissions", None) or []):
            return True
        email = (getattr(principal, "email", "") or "").strip().lower()
        return bool(email) and email in self._emails


class IsPlatformAdmin(BasePermission):
    message = "Platform administrator access required."

    def has_permission(self, request, view) -> bool:
        return AdminPolicy.from_settings().is_admin(request.user)

"""Domain error taxonomy shared by every bounded context.

Services raise subclasses of these classes; the API layer maps the base
class to an HTTP status without inspecting message text:

- ``ValidationFailed``: malformed input, rejected before any side effect.
- ``NotFound``: unknown or foreign id.
- ``Conflict``: state-machine violation or double submission.
- ``PreconditionFailed``: business rule not met (minimum order, method
  not offered, merchant closed).
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for expected business failures."""

    code = "domain_error"
    default_detail = "The request could not be processed."

    def __init__(
        self,
        detail: Optional[str] = None,
        *,
        attr: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.detail = detail or self.default_detail
        self.attr = attr
        self.context: Dict[str, Any] = context
        super().__init__(self.detail)


class ValidationFailed(DomainError):
    code = "invalid"
    default_detail = "Invalid input."


class NotFound(DomainError):
    code = "not_found"
    default_detail = "Resource not found."


class Conflict(DomainError):
    code = "conflict"
    default_detail = "This change is not allowed right now."


class PreconditionFailed(DomainError):
    code = "precondition_failed"
    default_detail = "A business precondition was not met."

"""DRF exception handler rendering every error in one envelope.

Body shape::

    {"type": "validation_error" | "client_error" | "server_error",
     "errors": [{"code": str, "detail": str, "attr": str | None}]}

Domain errors map by base class; DRF's own errors (validation,
authentication, throttling, 404) are flattened into the same list.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from shared.domain.exceptions import (
    Conflict,
    DomainError,
    NotFound,
    PreconditionFailed,
    ValidationFailed,
)

logger = structlog.get_logger(__name__)

_DOMAIN_STATUS = (
    (ValidationFailed, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Conflict, status.HTTP_409_CONFLICT),
    (PreconditionFailed, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def status_for_domain_error(exc: DomainError) -> int:
    for kind, code in _DOMAIN_STATUS:
        if isinstance(exc, kind):
            return code
    return status.HTTP_400_BAD_REQUEST


def error_item(code: str, detail: str, attr: Optional[str] = None) -> Dict[str, Any]:
    return {"code": code, "detail": detail, "attr": attr}


def _flatten(detail: Any, attr: Optional[str] = None) -> Iterator[Dict[str, Any]]:
    if isinstance(detail, list):
        for index, item in enumerate(detail):
            # nested list serializers report one dict per element
            if isinstance(item, dict):
                yield from _flatten(item, f"{attr}.{index}" if attr else str(index))
            else:
                yield from _flatten(item, attr)
    elif isinstance(detail, dict):
        for key, value in detail.items():
            if key in ("detail", "non_field_errors"):
                child = attr
            else:
                child = f"{attr}.{key}" if attr else str(key)
            yield from _flatten(value, child)
    else:
        yield error_item(getattr(detail, "code", "error"), str(detail), attr)


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else None

    if isinstance(exc, DomainError):
        status_code = status_for_domain_error(exc)
        logger.info(
            "api.domain_error",
            view=view_name,
            code=exc.code,
            status_code=status_code,
            detail=exc.detail,
        )
        error_type = (
            "validation_error" if isinstance(exc, ValidationFailed) else "client_error"
        )
        return Response(
            {"type": error_type, "errors": [error_item(exc.code, exc.detail, exc.attr)]},
            status=status_code,
        )

    if isinstance(exc, PydanticValidationError):
        # DTO construction in a view: the serializer let through something the DTO rejects
        return Response(
            {
                "type": "validation_error",
                "errors": [
                    error_item(
                        "invalid",
                        error["msg"],
                        ".".join(str(part) for part in error["loc"]) or None,
                    )
                    for error in exc.errors()
                ],
            },
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = exception_handler(exc, context)
    if response is None:
        logger.exception("api.unhandled_exception", view=view_name)
        return Response(
            {
                "type": "server_error",
                "errors": [error_item("error", "A server error occurred.")],
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        error_type = "validation_error"
    elif response.status_code >= 500:
        error_type = "server_error"
    else:
        error_type = "client_error"

    errors: List[Dict[str, Any]] = list(_flatten(response.data))
    response.data = {"type": error_type, "errors": errors}
    return response

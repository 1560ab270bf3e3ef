import time
from typing import Any, Dict

import structlog
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.permissions import AdminPolicy

logger = structlog.get_logger(__name__)


def _check_database() -> Dict[str, Any]:
    start = time.monotonic()
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return {"status": "up", "response_time_ms": round((time.monotonic() - start) * 1000, 2)}


def _check_cache() -> Dict[str, Any]:
    # Checkout sessions live in this cache, so it is a hard dependency
    start = time.monotonic()
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")
    return {"status": "up", "response_time_ms": round((time.monotonic() - start) * 1000, 2)}


def health_check(request: HttpRequest) -> JsonResponse:
    services: Dict[str, Dict[str, Any]] = {}
    healthy = True

    try:
        services["database"] = _check_database()
    except DatabaseError:
        services["database"] = {"status": "down"}
        healthy = False
        logger.error("health_check_db_failure", exc_info=True)

    try:
        services["cache"] = _check_cache()
    except Exception:  # any backend error (redis, socket) means the cache is down
        services["cache"] = {"status": "down"}
        healthy = False
        logger.error("health_check_cache_failure", exc_info=True)

    overall = "healthy" if healthy else "unhealthy"
    logger.info("health_check_completed", status=overall)

    return JsonResponse(
        {"status": overall, "timestamp": timezone.now().isoformat(), "services": services},
        status=200 if healthy else 503,
    )


class WhoAmIView(APIView):
    """Describe the authenticated principal and the roles it resolves to."""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        from modules.merchants.permissions import MerchantPolicy

        merchant = MerchantPolicy().resolve(request.user)
        return Response(
            {
                "user": str(request.user),
                "is_admin": AdminPolicy.from_settings().is_admin(request.user),
                "merchant_id": str(merchant.id) if merchant else None,
            }
        )

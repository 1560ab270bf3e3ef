"""Order API views.

Merchant dashboard endpoints (kanban list, detail, status changes,
kitchen flags) plus the public tracking page.  Views only translate
HTTP to ``OrderService`` calls; domain errors propagate to the project
exception handler, which renders them with the right status code.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.merchants.permissions import IsMerchant
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    BulkResultSerializer,
    BulkStatusSerializer,
    CancelOrderSerializer,
    ItemPreparedSerializer,
    OrderItemSerializer,
    OrderListSerializer,
    OrderSerializer,
    OrderTrackingSerializer,
    TrackOrderQuerySerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService


def _order_service() -> OrderService:
    return OrderService(order_repository=OrderDjangoRepository())


class OrderViewSet(GenericViewSet):
    """Orders of the calling merchant.

    Does **not** extend ``ModelViewSet``: every write goes through the
    service so the state machine and audit trail cannot be bypassed.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated, IsMerchant]
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer_name", "customer_phone"]
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "order_listing" if self.action in {"list", "retrieve"} else None
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.list_orders(self.request.merchant.id)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    @extend_schema(responses=OrderListSerializer(many=True))
    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/"""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(pk, merchant_id=request.merchant.id)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    @extend_schema(request=UpdateOrderStatusSerializer, responses=OrderSerializer)
    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/"""
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.update_status(
            order_id=pk,
            new_status=serializer.validated_data["status"],
            actor=str(request.user),
            merchant_id=request.merchant.id,
            notes=serializer.validated_data["notes"],
        )
        return Response(OrderSerializer(order).data)

    @extend_schema(request=CancelOrderSerializer, responses=OrderSerializer)
    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.cancel_order(
            order_id=pk,
            reason=serializer.validated_data["reason"],
            actor=str(request.user),
            merchant_id=request.merchant.id,
        )
        return Response(OrderSerializer(order).data)

    @extend_schema(request=BulkStatusSerializer, responses=BulkResultSerializer)
    @action(detail=False, methods=["post"], url_path="bulk-status")
    def bulk_status(self, request: Request) -> Response:
        """POST /api/v1/orders/bulk-status/

        Always 200 once the batch ran; per-order failures are listed in the body.
        """
        serializer = BulkStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._service.bulk_update_status(
            order_ids=serializer.validated_data["order_ids"],
            new_status=serializer.validated_data["status"],
            actor=str(request.user),
            merchant_id=request.merchant.id,
            notes=serializer.validated_data["notes"],
        )
        return Response(BulkResultSerializer(result.as_dict()).data)

    @extend_schema(request=ItemPreparedSerializer, responses=OrderItemSerializer)
    @action(detail=True, methods=["patch"], url_path=r"items/(?P<item_id>[^/.]+)")
    def item(self, request: Request, pk: str | None = None, item_id: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/items/{item_id}/"""
        serializer = ItemPreparedSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = self._service.set_item_prepared(
            order_id=pk,
            item_id=item_id,
            prepared=serializer.validated_data["is_prepared"],
            actor=str(request.user),
            merchant_id=request.merchant.id,
        )
        return Response(OrderItemSerializer(item).data)


class TrackOrderView(APIView):
    """GET /api/v1/track/{order_number}/?phone=..."""

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "order_tracking"

    @extend_schema(parameters=[TrackOrderQuerySerializer], responses=OrderTrackingSerializer)
    def get(self, request: Request, order_number: str) -> Response:
        query = TrackOrderQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        order = _order_service().track_order(order_number, query.validated_data["phone"])
        return Response(OrderTrackingSerializer(order).data, status=status.HTTP_200_OK)

"""Storefront checkout endpoints.

Guests check out without an account, so every view here is public and
throttled under the ``checkout`` scope.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.checkout.dtos import CheckoutItemInput
from modules.checkout.serializers import (
    CheckoutSessionOutputSerializer,
    CompleteCheckoutSerializer,
    CompletedCheckoutSerializer,
    CreateSessionSerializer,
    DeliveryFeeSerializer,
    DeliveryQuoteSerializer,
)
from modules.checkout.services import CheckoutService
from modules.checkout.store import CacheCheckoutSessionStore
from modules.customers.dtos import ContactInfoDTO, DeliveryAddressDTO
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.merchants.repositories.django_repository import (
    MerchantDjangoRepository,
    ProductDjangoRepository,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.payments.repositories.django_repository import PaymentDjangoRepository


def _checkout_service() -> CheckoutService:
    return CheckoutService(
        merchant_repository=MerchantDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        payment_repository=PaymentDjangoRepository(),
        session_store=CacheCheckoutSessionStore(),
    )


class CheckoutView(APIView):
    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "checkout"


class CheckoutSessionCreateView(CheckoutView):
    @extend_schema(request=CreateSessionSerializer, responses=CheckoutSessionOutputSerializer)
    def post(self, request: Request) -> Response:
        """POST /api/v1/checkout/sessions/"""
        serializer = CreateSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        session = _checkout_service().create_session(
            data["merchant_id"],
            [CheckoutItemInput(**item) for item in data["items"]],
        )
        return Response(
            CheckoutSessionOutputSerializer(session.model_dump()).data,
            status=status.HTTP_201_CREATED,
        )


class CheckoutSessionDetailView(CheckoutView):
    @extend_schema(responses=CheckoutSessionOutputSerializer)
    def get(self, request: Request, session_id: str) -> Response:
        """GET /api/v1/checkout/sessions/{session_id}/"""
        session = _checkout_service().get_session(session_id)
        return Response(CheckoutSessionOutputSerializer(session.model_dump()).data)


class CheckoutCompleteView(CheckoutView):
    @extend_schema(request=CompleteCheckoutSerializer, responses=CompletedCheckoutSerializer)
    def post(self, request: Request, session_id: str) -> Response:
        """POST /api/v1/checkout/sessions/{session_id}/complete/"""
        serializer = CompleteCheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        address = data["delivery_address"]
        result = _checkout_service().complete(
            session_id,
            contact=ContactInfoDTO(**data["contact_info"]),
            delivery_address=DeliveryAddressDTO(**address) if address else None,
            delivery_notes=data["delivery_notes"],
            payment_proof_url=data["payment_proof_url"],
        )
        return Response(
            CompletedCheckoutSerializer(result.model_dump()).data,
            status=status.HTTP_201_CREATED,
        )


class DeliveryFeeView(CheckoutView):
    @extend_schema(request=DeliveryFeeSerializer, responses=DeliveryQuoteSerializer)
    def post(self, request: Request) -> Response:
        """POST /api/v1/checkout/delivery-fee/"""
        serializer = DeliveryFeeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quote = _checkout_service().quote_delivery_fee(**serializer.validated_data)
        return Response(DeliveryQuoteSerializer(quote.model_dump()).data)

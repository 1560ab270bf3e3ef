"""Payment API views.

Customers upload proof and poll status without an account (the order id
is the capability); merchants verify, reject, list pending proofs and
generate PayNow QR payloads for their own orders.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.merchants.permissions import IsMerchant
from modules.merchants.repositories.django_repository import MerchantDjangoRepository
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderSerializer
from modules.payments.repositories.django_repository import PaymentDjangoRepository
from modules.payments.serializers import (
    GenerateQRSerializer,
    PaymentSerializer,
    PaymentStatusSerializer,
    PayNowQRSerializer,
    PendingPaymentSerializer,
    RejectPaymentSerializer,
    UploadProofSerializer,
    VerifyPaymentSerializer,
)
from modules.payments.services import PaymentService


def _payment_service() -> PaymentService:
    return PaymentService(
        payment_repository=PaymentDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        merchant_repository=MerchantDjangoRepository(),
    )


class PublicPaymentView(APIView):
    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "checkout"


class MerchantPaymentView(APIView):
    permission_classes = [IsAuthenticated, IsMerchant]


class UploadProofView(PublicPaymentView):
    @extend_schema(request=UploadProofSerializer, responses=PaymentSerializer)
    def post(self, request: Request, order_id: str) -> Response:
        """POST /api/v1/payments/{order_id}/proof/"""
        serializer = UploadProofSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = _payment_service().upload_proof(
            order_id,
            proof_url=serializer.validated_data["proof_url"],
            transaction_id=serializer.validated_data["transaction_id"],
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


class PaymentStatusView(PublicPaymentView):
    throttle_scope = "order_tracking"

    @extend_schema(responses=PaymentStatusSerializer)
    def get(self, request: Request, order_id: str) -> Response:
        """GET /api/v1/payments/{order_id}/status/"""
        result = _payment_service().get_payment_status(order_id)
        return Response(PaymentStatusSerializer(result.model_dump()).data)


class VerifyPaymentView(MerchantPaymentView):
    @extend_schema(request=VerifyPaymentSerializer, responses=OrderSerializer)
    def post(self, request: Request, order_id: str) -> Response:
        """POST /api/v1/payments/{order_id}/verify/"""
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = _payment_service().verify_payment(
            order_id,
            actor=str(request.user),
            merchant_id=request.merchant.id,
            amount=serializer.validated_data["amount"],
            transaction_id=serializer.validated_data["transaction_id"],
        )
        return Response(OrderSerializer(order).data)


class RejectPaymentView(MerchantPaymentView):
    @extend_schema(request=RejectPaymentSerializer, responses=OrderSerializer)
    def post(self, request: Request, order_id: str) -> Response:
        """POST /api/v1/payments/{order_id}/reject/"""
        serializer = RejectPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = _payment_service().reject_payment(
            order_id,
            reason=serializer.validated_data["reason"],
            actor=str(request.user),
            merchant_id=request.merchant.id,
        )
        return Response(OrderSerializer(order).data)


class GenerateQRView(MerchantPaymentView):
    @extend_schema(request=GenerateQRSerializer, responses=PayNowQRSerializer)
    def post(self, request: Request) -> Response:
        """POST /api/v1/payments/qr/"""
        serializer = GenerateQRSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        qr = _payment_service().generate_qr(
            request.merchant.id,
            amount=serializer.validated_data["amount"],
            reference=serializer.validated_data["reference"] or None,
        )
        return Response(PayNowQRSerializer(qr.model_dump()).data)


class PendingPaymentsView(MerchantPaymentView):
    @extend_schema(responses=PendingPaymentSerializer(many=True))
    def get(self, request: Request) -> Response:
        """GET /api/v1/payments/pending/"""
        orders = _payment_service().list_pending_payments(request.merchant.id)
        return Response(PendingPaymentSerializer(orders, many=True).data)

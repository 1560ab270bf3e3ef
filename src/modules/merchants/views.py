"""Merchant endpoints: platform-admin approval and the merchant's own settings."""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.core.permissions import IsPlatformAdmin
from modules.merchants.models import Merchant
from modules.merchants.permissions import IsMerchant
from modules.merchants.repositories.django_repository import MerchantDjangoRepository
from modules.merchants.serializers import (
    MerchantSerializer,
    MerchantSettingsSerializer,
    UpdateMerchantSettingsSerializer,
)
from modules.merchants.services import MerchantService


class AdminMerchantViewSet(GenericViewSet):
    queryset = Merchant.objects.none()
    serializer_class = MerchantSerializer
    permission_classes = [IsPlatformAdmin]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = MerchantService(MerchantDjangoRepository())

    @action(detail=True, methods=["post"])
    def approve(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/admin/merchants/{pk}/approve/"""
        merchant = self._service.approve_merchant(str(pk), actor=str(request.user))
        return Response(MerchantSerializer(merchant).data)


class MerchantSettingsView(APIView):
    """Storefront settings of the calling merchant.

    GET  /api/v1/merchants/me/settings/
    PATCH /api/v1/merchants/me/settings/
    """

    permission_classes = [IsAuthenticated, IsMerchant]

    @extend_schema(responses=MerchantSettingsSerializer)
    def get(self, request: Request) -> Response:
        return Response(MerchantSettingsSerializer(request.merchant).data)

    @extend_schema(request=UpdateMerchantSettingsSerializer, responses=MerchantSettingsSerializer)
    def patch(self, request: Request) -> Response:
        serializer = UpdateMerchantSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        merchant = MerchantService(MerchantDjangoRepository()).update_settings(
            str(request.merchant.id),
            serializer.validated_data,
            actor=str(request.user),
        )
        return Response(MerchantSettingsSerializer(merchant).data)

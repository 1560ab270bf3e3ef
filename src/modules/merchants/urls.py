"""Merchant URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.merchants.views import AdminMerchantViewSet, MerchantSettingsView

router = DefaultRouter(trailing_slash=True)
router.register("admin/merchants", AdminMerchantViewSet, basename="admin-merchant")

urlpatterns = [
    path("merchants/me/settings/", MerchantSettingsView.as_view(), name="merchant-settings"),
    *router.urls,
]

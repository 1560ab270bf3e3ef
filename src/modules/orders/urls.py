"""Order URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import OrderViewSet, TrackOrderView

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")

urlpatterns = [
    path("track/<str:order_number>/", TrackOrderView.as_view(), name="order-track"),
    *router.urls,
]

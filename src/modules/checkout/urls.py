"""Checkout URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.checkout.views import (
    CheckoutCompleteView,
    CheckoutSessionCreateView,
    CheckoutSessionDetailView,
    DeliveryFeeView,
)

urlpatterns = [
    path("checkout/sessions/", CheckoutSessionCreateView.as_view(), name="checkout-session-create"),
    path(
        "checkout/sessions/<str:session_id>/",
        CheckoutSessionDetailView.as_view(),
        name="checkout-session-detail",
    ),
    path(
        "checkout/sessions/<str:session_id>/complete/",
        CheckoutCompleteView.as_view(),
        name="checkout-session-complete",
    ),
    path("checkout/delivery-fee/", DeliveryFeeView.as_view(), name="checkout-delivery-fee"),
]

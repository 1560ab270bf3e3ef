"""Payment URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.payments.views import (
    GenerateQRView,
    PaymentStatusView,
    PendingPaymentsView,
    RejectPaymentView,
    UploadProofView,
    VerifyPaymentView,
)

urlpatterns = [
    path("payments/qr/", GenerateQRView.as_view(), name="payment-qr"),
    path("payments/pending/", PendingPaymentsView.as_view(), name="payment-pending"),
    path("payments/<uuid:order_id>/proof/", UploadProofView.as_view(), name="payment-proof"),
    path("payments/<uuid:order_id>/status/", PaymentStatusView.as_view(), name="payment-status"),
    path("payments/<uuid:order_id>/verify/", VerifyPaymentView.as_view(), name="payment-verify"),
    path("payments/<uuid:order_id>/reject/", RejectPaymentView.as_view(), name="payment-reject"),
]

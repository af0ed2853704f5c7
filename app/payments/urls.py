"""
URL configuration for the payments app.

Routes:
    - POST mpesa/subscribe/ - Send a push payment for a subscription plan
    - POST mpesa/callback/ - M-Pesa STK-push result callback
    - GET mpesa/status/<correlation_id>/ - Payment status

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments.views import PaymentStatusView, SubscribeView
from payments.webhooks.views import mpesa_callback

app_name = "payments"

urlpatterns = [
    path("mpesa/subscribe/", SubscribeView.as_view(), name="mpesa-subscribe"),
    # Provider callback
    path("mpesa/callback/", mpesa_callback, name="mpesa-callback"),
    path(
        "mpesa/status/<str:correlation_id>/",
        PaymentStatusView.as_view(),
        name="mpesa-status",
    ),
]

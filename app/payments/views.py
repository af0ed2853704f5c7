"""
DRF views for payments app.

This module provides API views for:
- Starting a subscription payment (STK push)
- Checking a payment's status

The provider callback is a plain Django view in webhooks/views.py.

Related files:
    - services/: SubscriptionPaymentService, PaymentReconciler
    - serializers.py: Request/response serializers
    - urls.py: URL routing

Endpoints:
    POST /api/v1/payments/mpesa/subscribe/ - Send push payment for a plan
    POST /api/v1/payments/mpesa/callback/ - M-Pesa result callback
    GET /api/v1/payments/mpesa/status/<correlation_id>/ - Payment status
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.serializers import (
    PaymentStatusSerializer,
    SubscribeRequestSerializer,
    SubscribeResponseSerializer,
)
from payments.services import PaymentReconciler, SubscriptionPaymentService

logger = logging.getLogger(__name__)

INITIATION_ERROR_STATUS = {
    "INVALID_PHONE_NUMBER": status.HTTP_400_BAD_REQUEST,
    "INVALID_PLAN": status.HTTP_400_BAD_REQUEST,
    "PAYMENT_INITIATION_FAILED": status.HTTP_400_BAD_REQUEST,
    "ACCOUNT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "UPSTREAM_AUTH_FAILED": status.HTTP_502_BAD_GATEWAY,
    "UPSTREAM_UNAVAILABLE": status.HTTP_502_BAD_GATEWAY,
}


class SubscribeView(APIView):
    """
    Send an STK push for a subscription plan.

    POST /api/v1/payments/mpesa/subscribe/

    Request body:
        {
            "phone_number": "0712345678",
            "plan_id": "premium"
        }

    Returns:
        {"success": true, "message": "...",
         "data": {"correlation_id": "...", "customer_message": "..."}}
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Pay for a subscription plan",
        tags=["Payments"],
        request=SubscribeRequestSerializer,
        responses={
            200: SubscribeResponseSerializer,
            400: OpenApiResponse(description="Invalid input or provider rejection"),
            404: OpenApiResponse(description="No account for this phone number"),
            502: OpenApiResponse(description="Provider unavailable"),
        },
    )
    def post(self, request):
        serializer = SubscribeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = SubscriptionPaymentService().initiate(**serializer.validated_data)
        if not result.success:
            return Response(
                result.to_response(),
                status=INITIATION_ERROR_STATUS.get(
                    result.error_code, status.HTTP_400_BAD_REQUEST
                ),
            )

        receipt = result.data
        return Response(
            {
                "success": True,
                "message": "Payment request sent to your phone",
                "data": SubscribeResponseSerializer(receipt).data,
            }
        )


class PaymentStatusView(APIView):
    """
    Report the current state of a payment.

    GET /api/v1/payments/mpesa/status/<correlation_id>/
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Payment status",
        tags=["Payments"],
        responses={
            200: PaymentStatusSerializer,
            404: OpenApiResponse(description="Transaction not found"),
        },
    )
    def get(self, request, correlation_id: str):
        result = PaymentReconciler().check_status(correlation_id)
        if not result.success:
            return Response(result.to_response(), status=status.HTTP_404_NOT_FOUND)

        return Response(
            {"success": True, "data": PaymentStatusSerializer(result.data).data}
        )

"""
Serializers for payments app.

This module provides DRF serializers for:
- Subscription payment requests
- Payment status snapshots

Related files:
    - views.py: Views that use these serializers
    - services/: PaymentStatusSnapshot
"""

from rest_framework import serializers


class SubscribeRequestSerializer(serializers.Serializer):
    """
    Validate a subscription payment request.

    Format and plan checks are left to SubscriptionPaymentService so
    the error codes stay in one place.
    """

    phone_number = serializers.CharField(max_length=20)
    plan_id = serializers.CharField(max_length=50)


class SubscribeResponseSerializer(serializers.Serializer):
    """Shape of the data returned after a push request was sent."""

    correlation_id = serializers.CharField()
    customer_message = serializers.CharField()


class PaymentStatusSerializer(serializers.Serializer):
    """Serialize a PaymentStatusSnapshot."""

    correlation_id = serializers.CharField()
    status = serializers.CharField()
    amount = serializers.IntegerField()
    purpose_reference = serializers.CharField()
    provider_receipt_number = serializers.CharField(allow_null=True)
    provider_transaction_timestamp = serializers.DateTimeField(allow_null=True)
    result_description = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()
    resolved_at = serializers.DateTimeField(allow_null=True)

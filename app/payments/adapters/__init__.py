"""
Payment adapters for the M-Pesa provider.

All outbound provider calls go through a PaymentGateway so that error
handling, timeouts and logging stay consistent, and so the sandbox can
stand in for the live API.

Usage:
    from payments.adapters import get_payment_gateway

    gateway = get_payment_gateway()
    result = gateway.initiate_push_payment(
        "0712345678", 30, "SUB-BASIC", "Subscription: basic plan"
    )
"""

from payments.adapters.base import PaymentGateway, PushPaymentResult
from payments.adapters.factory import get_payment_gateway, is_sandbox_mode
from payments.adapters.mpesa import MpesaGateway, build_password, provider_timestamp
from payments.adapters.sandbox import (
    SandboxGateway,
    build_sandbox_callback,
    is_sandbox_correlation_id,
)

__all__ = [
    "MpesaGateway",
    "PaymentGateway",
    "PushPaymentResult",
    "SandboxGateway",
    "build_password",
    "build_sandbox_callback",
    "get_payment_gateway",
    "is_sandbox_correlation_id",
    "is_sandbox_mode",
    "provider_timestamp",
]

"""
Payment services for M-Pesa subscription payments.

This module provides:
- SubscriptionPaymentService: Entry point for paying for a plan
- PaymentReconciler: Owns PaymentRequest state (create, resolve, status)

Usage:
    from payments.services import SubscriptionPaymentService

    result = SubscriptionPaymentService().initiate("0712345678", "premium")

    from payments.services import PaymentReconciler

    result = PaymentReconciler().resolve(outcome.correlation_id, outcome)
"""

from payments.services.reconciler import (
    PaymentReconciler,
    PaymentStatusSnapshot,
    ResolutionOutcome,
    ResolutionResult,
)
from payments.services.subscription_payment import (
    InitiationReceipt,
    SubscriptionPaymentService,
    get_subscription_plans,
)

__all__ = [
    "InitiationReceipt",
    "PaymentReconciler",
    "PaymentStatusSnapshot",
    "ResolutionOutcome",
    "ResolutionResult",
    "SubscriptionPaymentService",
    "get_subscription_plans",
]

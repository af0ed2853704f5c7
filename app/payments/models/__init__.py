"""
Payment models.

This package contains the models for M-Pesa subscription payments:
- PaymentRequest: One STK push and its resolution
- CallbackEvent: Audit row per provider callback delivery
- AccountEffectDebt: Subscription upgrade still owed after a failure

Usage:
    from payments.models import PaymentRequest, CallbackEvent, AccountEffectDebt
"""

from payments.models.account_effect_debt import AccountEffectDebt
from payments.models.callback_event import CallbackEvent
from payments.models.payment_request import PaymentRequest

__all__ = [
    "AccountEffectDebt",
    "CallbackEvent",
    "PaymentRequest",
]

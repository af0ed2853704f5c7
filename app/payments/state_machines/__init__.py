"""
State machine definitions for payment models.

Usage:
    from payments.state_machines import PaymentRequestStatus

    if payment.status == PaymentRequestStatus.PENDING:
        payment.complete(...)
"""

from payments.state_machines.states import (
    AccountEffectDebtStatus,
    CallbackEventOutcome,
    CallbackOutcomeKind,
    PaymentRequestStatus,
)

__all__ = [
    "AccountEffectDebtStatus",
    "CallbackEventOutcome",
    "CallbackOutcomeKind",
    "PaymentRequestStatus",
]

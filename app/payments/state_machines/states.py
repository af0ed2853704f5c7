"""
State enums for payment models.

This module defines the state enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

PaymentRequest States:
    pending → completed
    pending → failed
    (completed and failed are terminal)

AccountEffectDebt States:
    open → resolved
    open → abandoned (max attempts exhausted)
"""

from django.db import models


class PaymentRequestStatus(models.TextChoices):
    """
    States for the PaymentRequest lifecycle.

    Terminal states: COMPLETED, FAILED. A terminal record never changes
    status again and never returns to PENDING.
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"

    @classmethod
    def terminal_states(cls) -> frozenset[str]:
        return frozenset({cls.COMPLETED, cls.FAILED})


class CallbackOutcomeKind(models.TextChoices):
    """Outcome reported by a provider callback."""

    SUCCESS = "success", "Success"
    FAILURE = "failure", "Failure"


class CallbackEventOutcome(models.TextChoices):
    """
    What callback ingestion did with a single delivery.

    APPLIED: first resolution of a pending payment
    DUPLICATE: repeat delivery agreeing with the recorded outcome
    CONFLICT: repeat delivery contradicting the recorded outcome
    UNKNOWN: correlation id we never issued
    INVALID: payload could not be parsed
    ERROR: unexpected failure while processing
    """

    RECEIVED = "received", "Received"
    APPLIED = "applied", "Applied"
    DUPLICATE = "duplicate", "Duplicate"
    CONFLICT = "conflict", "Conflict"
    UNKNOWN = "unknown", "Unknown"
    INVALID = "invalid", "Invalid"
    ERROR = "error", "Error"


class AccountEffectDebtStatus(models.TextChoices):
    """
    States for a pending subscription upgrade that failed once.

    Terminal states: RESOLVED, ABANDONED.
    """

    OPEN = "open", "Open"
    RESOLVED = "resolved", "Resolved"
    ABANDONED = "abandoned", "Abandoned"

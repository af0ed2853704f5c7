"""
Payment-specific exceptions for M-Pesa subscription payments.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── ReconciliationError - Callback for an unknown correlation id
    ├── AccountEffectError - Subscription tier update failed after completion
    └── CallbackPayloadError - Malformed provider callback

    PaymentValidationError - Bad caller input (inherits ValidationError)
    ReconciliationConflict - Duplicate callback with a contradicting
        outcome (inherits ConflictError)

    UpstreamError - Provider unreachable or refusing us (inherits
        ExternalServiceError)
    ├── UpstreamAuthError - OAuth credential request rejected (retryable)
    └── UpstreamUnavailableError - Transport fault or timeout (retryable)

Provider rejections of a push request (invalid number, insufficient
balance, etc.) are not exceptions: the gateway returns them as a failed
PushPaymentResult.

Usage:
    from payments.exceptions import UpstreamError

    try:
        gateway.initiate_push_payment(...)
    except UpstreamError as e:
        if e.is_retryable:
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for payment bookkeeping failures.

    None of these reach the provider: callback ingestion logs them and
    still acknowledges the delivery.
    """

    default_error_code: str = "PAYMENT_ERROR"


class PaymentValidationError(ValidationError):
    """
    Raised when caller input for a payment is invalid.

    Use for malformed phone numbers and unknown plan identifiers.
    Maps to HTTP 400 and is never retried.
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class ReconciliationError(PaymentError):
    """
    Raised when a callback references a correlation id we never issued.

    Nothing is created for unknown ids; the event is only logged.
    """

    default_error_code: str = "UNKNOWN_CORRELATION_ID"


class ReconciliationConflict(ConflictError):
    """
    Raised when a duplicate callback contradicts the recorded outcome.

    Example: the payment is completed but a later delivery reports failure.
    The first resolution stands.
    """

    default_error_code: str = "RECONCILIATION_CONFLICT"


class AccountEffectError(PaymentError):
    """
    Raised when the subscription upgrade could not be applied.

    The payment stays completed; the effect is recorded as an
    AccountEffectDebt and retried by a Celery task.
    """

    default_error_code: str = "ACCOUNT_EFFECT_FAILED"


class CallbackPayloadError(PaymentError):
    """Raised when a callback body does not have the expected structure."""

    default_error_code: str = "INVALID_CALLBACK_PAYLOAD"


# =============================================================================
# Upstream (Provider) Exceptions
# =============================================================================


class UpstreamError(ExternalServiceError):
    """
    Base exception for failures talking to the payment provider.

    Attributes:
        status_code: HTTP status returned by the provider, if any
        is_retryable: Whether the operation can be retried safely
    """

    default_error_code: str = "UPSTREAM_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code=error_code, details=details)
        self.status_code = status_code


class UpstreamAuthError(UpstreamError):
    """
    The provider rejected our OAuth credential request.

    Usually a misconfigured consumer key/secret. Retry-safe because no
    payment request was sent.
    """

    default_error_code: str = "UPSTREAM_AUTH_FAILED"
    is_retryable: bool = True


class UpstreamUnavailableError(UpstreamError):
    """
    The provider could not be reached or did not answer in time.

    A push request may or may not have been accepted; no pending record
    is created, so an unmatched callback is logged as unknown.
    """

    default_error_code: str = "UPSTREAM_UNAVAILABLE"
    is_retryable: bool = True

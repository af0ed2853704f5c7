"""
PaymentReconciler owns the lifecycle of a push payment.

It creates the PENDING record after a successful initiation, resolves it
exactly once from the provider callback, applies the subscription
upgrade, and answers status queries.

Resolution rules:
    1. Unknown correlation id: log, create nothing, UNKNOWN
    2. Already terminal: DUPLICATE if the outcome agrees, CONFLICT if not;
       no writes and no side effects either way
    3. Success: PENDING -> COMPLETED, then the account upgrade
    4. Failure: PENDING -> FAILED, no account effect

The row is locked with select_for_update and saved through
ConcurrentTransitionMixin, so two deliveries racing on the same id
resolve it once.

The account upgrade runs after the payment row is committed. If it
fails, the payment stays COMPLETED, an AccountEffectDebt is recorded and
a Celery retry is queued.

Usage:
    from payments.services import PaymentReconciler

    reconciler = PaymentReconciler()
    result = reconciler.resolve(outcome.correlation_id, outcome)
    if result.outcome == ResolutionOutcome.APPLIED:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils import timezone
from django_fsm import ConcurrentTransition

from core.services import BaseService, ServiceResult
from payments.exceptions import (
    AccountEffectError,
    ReconciliationConflict,
    ReconciliationError,
)
from payments.models import AccountEffectDebt, PaymentRequest
from payments.state_machines import (
    AccountEffectDebtStatus,
    CallbackOutcomeKind,
    PaymentRequestStatus,
)

if TYPE_CHECKING:
    from payments.adapters.base import PushPaymentResult
    from payments.webhooks.parser import CallbackOutcome

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_EFFECT_MAX_ATTEMPTS = 5


def _error_text(error: Exception) -> str:
    """Message without the error code prefix for application errors."""
    return getattr(error, "message", None) or str(error)


# =============================================================================
# Result Types
# =============================================================================


class ResolutionOutcome(str, Enum):
    """What resolve() did with a callback outcome."""

    APPLIED = "applied"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"


@dataclass
class ResolutionResult:
    """
    Result of resolving one callback outcome.

    Attributes:
        outcome: What happened
        payment_request: The matching payment, None for UNKNOWN
        account_effect_applied: Whether the subscription upgrade succeeded
            during this call (APPLIED successes only)
    """

    outcome: ResolutionOutcome
    payment_request: PaymentRequest | None = None
    account_effect_applied: bool = False


@dataclass(frozen=True)
class PaymentStatusSnapshot:
    """Read-only view of a payment for status queries."""

    correlation_id: str
    status: str
    amount: int
    purpose_reference: str
    provider_receipt_number: str | None
    provider_transaction_timestamp: datetime | None
    result_description: str | None
    created_at: datetime
    resolved_at: datetime | None

    @classmethod
    def from_payment(cls, payment: PaymentRequest) -> PaymentStatusSnapshot:
        return cls(
            correlation_id=payment.correlation_id,
            status=payment.status,
            amount=payment.amount,
            purpose_reference=payment.purpose_reference,
            provider_receipt_number=payment.provider_receipt_number,
            provider_transaction_timestamp=payment.provider_transaction_timestamp,
            result_description=payment.result_description,
            created_at=payment.created_at,
            resolved_at=payment.resolved_at,
        )


# =============================================================================
# Reconciler
# =============================================================================


class PaymentReconciler(BaseService):
    """
    Single owner of PaymentRequest state changes.

    Stateless; safe to instantiate per request.
    """

    # =========================================================================
    # Creation
    # =========================================================================

    def create_pending(
        self,
        account,
        push_result: PushPaymentResult,
        phone_number: str,
        amount: int,
        purpose_reference: str,
        description: str = "",
    ) -> PaymentRequest:
        """
        Persist a PENDING payment for an accepted push request.

        Args:
            account: Account the payment is for
            push_result: Successful gateway result carrying the provider ids
            phone_number: Canonical payer number
            amount: Requested amount in KES
            purpose_reference: Plan id to apply on completion
            description: Transaction description sent to the provider

        Returns:
            The created PaymentRequest
        """
        with self.atomic():
            payment = PaymentRequest.objects.create(
                account=account,
                provider_request_id=push_result.provider_request_id or "",
                correlation_id=push_result.correlation_id,
                phone_number=phone_number,
                amount=amount,
                purpose_reference=purpose_reference,
                description=description,
            )

        logger.info(
            "Pending payment recorded",
            extra={
                "payment_request_id": str(payment.id),
                "correlation_id": payment.correlation_id,
                "account_id": str(account.pk),
                "amount": amount,
                "purpose_reference": purpose_reference,
            },
        )
        return payment

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(self, correlation_id: str, outcome: CallbackOutcome) -> ResolutionResult:
        """
        Apply a callback outcome to the matching payment, exactly once.

        Bookkeeping anomalies (unknown id, duplicates, conflicts, account
        effect failures) are logged and reported in the result, never
        raised. Database errors propagate.

        Args:
            correlation_id: CheckoutRequestID from the callback
            outcome: Parsed callback outcome

        Returns:
            ResolutionResult
        """
        log_context = {
            "correlation_id": correlation_id,
            "outcome_kind": outcome.kind,
            "result_code": outcome.result_code,
        }

        try:
            with self.atomic():
                payment = (
                    PaymentRequest.objects.select_for_update()
                    .filter(correlation_id=correlation_id)
                    .first()
                )

                if payment is None:
                    error = ReconciliationError(
                        "Callback for unknown correlation id",
                        details={"correlation_id": correlation_id},
                    )
                    logger.warning(str(error), extra=log_context)
                    return ResolutionResult(outcome=ResolutionOutcome.UNKNOWN)

                if payment.is_terminal:
                    return self._classify_duplicate(payment, outcome)

                if outcome.is_success:
                    payment.complete(
                        receipt_number=outcome.receipt_number,
                        transaction_timestamp=outcome.transaction_timestamp,
                        paid_amount=outcome.amount,
                        result_code=outcome.result_code,
                        result_description=outcome.result_description,
                    )
                else:
                    payment.fail(
                        result_code=outcome.result_code,
                        result_description=outcome.result_description,
                    )
                payment.save()

        except ConcurrentTransition:
            # Another delivery resolved the row between our read and write
            payment = PaymentRequest.objects.get(correlation_id=correlation_id)
            return self._classify_duplicate(payment, outcome)

        logger.info(
            "Payment resolved",
            extra={
                **log_context,
                "payment_request_id": str(payment.id),
                "status": payment.status,
                "receipt_number": payment.provider_receipt_number,
            },
        )

        if payment.status != PaymentRequestStatus.COMPLETED:
            return ResolutionResult(outcome=ResolutionOutcome.APPLIED, payment_request=payment)

        applied = self._apply_effect_or_record_debt(payment)
        return ResolutionResult(
            outcome=ResolutionOutcome.APPLIED,
            payment_request=payment,
            account_effect_applied=applied,
        )

    def _classify_duplicate(
        self, payment: PaymentRequest, outcome: CallbackOutcome
    ) -> ResolutionResult:
        expected_kind = (
            CallbackOutcomeKind.SUCCESS
            if payment.status == PaymentRequestStatus.COMPLETED
            else CallbackOutcomeKind.FAILURE
        )
        log_context = {
            "correlation_id": payment.correlation_id,
            "payment_request_id": str(payment.id),
            "status": payment.status,
            "outcome_kind": outcome.kind,
        }

        if outcome.kind == expected_kind:
            logger.info("Duplicate callback ignored", extra=log_context)
            return ResolutionResult(outcome=ResolutionOutcome.DUPLICATE, payment_request=payment)

        conflict = ReconciliationConflict(
            "Callback contradicts recorded payment outcome",
            details={"correlation_id": payment.correlation_id, "status": payment.status},
        )
        logger.error(str(conflict), extra=log_context)
        return ResolutionResult(outcome=ResolutionOutcome.CONFLICT, payment_request=payment)

    # =========================================================================
    # Account Effect
    # =========================================================================

    def apply_account_effect(self, payment: PaymentRequest) -> None:
        """
        Set the account's subscription tier from the payment's plan.

        Single-field update keyed by account id; reapplying is harmless.

        Raises:
            AccountEffectError: Unknown tier or missing account
            DatabaseError: The update itself failed
        """
        from authentication.models import SubscriptionTier

        tier = payment.purpose_reference
        if tier not in SubscriptionTier.values:
            raise AccountEffectError(
                f"Unknown subscription tier '{tier}'",
                details={"payment_request_id": str(payment.id), "tier": tier},
            )

        User = get_user_model()
        with transaction.atomic():
            updated = User.objects.filter(pk=payment.account_id).update(
                subscription_status=tier,
                updated_at=timezone.now(),
            )

        if not updated:
            raise AccountEffectError(
                "Account not found for subscription upgrade",
                details={"payment_request_id": str(payment.id), "account_id": str(payment.account_id)},
            )

        logger.info(
            "Subscription upgraded",
            extra={
                "account_id": str(payment.account_id),
                "tier": tier,
                "correlation_id": payment.correlation_id,
            },
        )

    def _apply_effect_or_record_debt(self, payment: PaymentRequest) -> bool:
        try:
            self.apply_account_effect(payment)
            return True
        except (AccountEffectError, DatabaseError) as e:
            logger.error(
                "Subscription upgrade failed after payment completed",
                extra={
                    "correlation_id": payment.correlation_id,
                    "account_id": str(payment.account_id),
                    "tier": payment.purpose_reference,
                    "error": _error_text(e),
                },
                exc_info=True,
            )
            self._record_debt(payment, _error_text(e))
            return False

    def _record_debt(self, payment: PaymentRequest, error: str) -> AccountEffectDebt:
        from payments.tasks import retry_account_effect

        delay = AccountEffectDebt.retry_delay(1)
        with self.atomic():
            debt, _ = AccountEffectDebt.objects.get_or_create(
                payment_request=payment,
                defaults={
                    "account_id": payment.account_id,
                    "target_tier": payment.purpose_reference,
                    "last_error": error,
                    "next_attempt_at": timezone.now() + delay,
                },
            )
            transaction.on_commit(
                partial(
                    retry_account_effect.apply_async,
                    args=[str(debt.id)],
                    countdown=delay.total_seconds(),
                )
            )

        logger.warning(
            "Account effect debt recorded",
            extra={"debt_id": str(debt.id), "correlation_id": payment.correlation_id},
        )
        return debt

    def retry_account_effect(self, debt_id) -> AccountEffectDebt | None:
        """
        Try once more to apply an owed subscription upgrade.

        Resolves the debt on success. On failure, schedules the next
        attempt, or abandons the debt once MPESA_ACCOUNT_EFFECT_MAX_ATTEMPTS
        is reached.

        Returns:
            The debt, or None if it does not exist
        """
        max_attempts = getattr(
            settings, "MPESA_ACCOUNT_EFFECT_MAX_ATTEMPTS", DEFAULT_ACCOUNT_EFFECT_MAX_ATTEMPTS
        )

        with self.atomic():
            debt = (
                AccountEffectDebt.objects.select_for_update()
                .select_related("payment_request")
                .filter(pk=debt_id)
                .first()
            )
            if debt is None or debt.status != AccountEffectDebtStatus.OPEN:
                return debt

            try:
                self.apply_account_effect(debt.payment_request)
            except (AccountEffectError, DatabaseError) as e:
                if debt.attempts + 1 >= max_attempts:
                    debt.attempts += 1
                    debt.abandon(_error_text(e))
                    logger.error(
                        "Account effect debt abandoned",
                        extra={"debt_id": str(debt.id), "attempts": debt.attempts, "error": _error_text(e)},
                    )
                else:
                    debt.schedule_retry(_error_text(e))
                    logger.warning(
                        "Account effect retry failed",
                        extra={"debt_id": str(debt.id), "attempts": debt.attempts, "error": _error_text(e)},
                    )
                debt.save()
                return debt

            debt.resolve()
            debt.save()

        logger.info(
            "Account effect debt resolved",
            extra={"debt_id": str(debt.id), "attempts": debt.attempts},
        )
        return debt

    # =========================================================================
    # Status
    # =========================================================================

    def check_status(self, correlation_id: str) -> ServiceResult[PaymentStatusSnapshot]:
        """
        Read the current state of a payment.

        Returns:
            ServiceResult with a PaymentStatusSnapshot, or PAYMENT_NOT_FOUND
        """
        payment = PaymentRequest.objects.filter(correlation_id=correlation_id).first()
        if payment is None:
            return ServiceResult.failure(
                "Transaction not found",
                error_code="PAYMENT_NOT_FOUND",
            )
        return ServiceResult.success(PaymentStatusSnapshot.from_payment(payment))

"""
Tests for PaymentReconciler.

Tests cover:
- Pending record creation
- Exactly-once resolution (applied, duplicate, conflict, unknown)
- Subscription upgrade and account effect debts
- Debt retries
- Status queries
"""

from unittest.mock import patch

import pytest
from django.db import DatabaseError

from authentication.models import SubscriptionTier, User
from payments.adapters import PushPaymentResult
from payments.exceptions import AccountEffectError
from payments.models import AccountEffectDebt, PaymentRequest
from payments.services import PaymentReconciler, ResolutionOutcome
from payments.state_machines import AccountEffectDebtStatus, PaymentRequestStatus
from payments.tests.factories import (
    AccountEffectDebtFactory,
    PaymentRequestFactory,
    build_callback_payload,
)
from payments.webhooks.parser import parse_stk_callback


def success_outcome(correlation_id, **kwargs):
    return parse_stk_callback(build_callback_payload(correlation_id, result_code=0, **kwargs))


def failure_outcome(correlation_id, result_code=1032):
    return parse_stk_callback(build_callback_payload(correlation_id, result_code=result_code))


@pytest.fixture
def reconciler():
    return PaymentReconciler()


# =============================================================================
# Creation
# =============================================================================


class TestCreatePending:
    def test_creates_pending_payment(self, db, reconciler, account):
        push_result = PushPaymentResult.ok(
            provider_request_id="29115-34620561-1",
            correlation_id="ws_CO_191020261030450009",
            customer_facing_message="Success. Request accepted for processing",
        )

        payment = reconciler.create_pending(
            account=account,
            push_result=push_result,
            phone_number="254712345678",
            amount=30,
            purpose_reference="basic",
            description="Subscription: basic plan",
        )

        payment = PaymentRequest.objects.get(pk=payment.pk)
        assert payment.status == PaymentRequestStatus.PENDING
        assert payment.correlation_id == "ws_CO_191020261030450009"
        assert payment.provider_request_id == "29115-34620561-1"
        assert payment.account == account
        assert payment.provider_receipt_number is None


# =============================================================================
# Resolution
# =============================================================================


class TestResolve:
    """Tests for resolve()."""

    def test_success_completes_and_upgrades(self, db, reconciler, premium_pending_payment):
        correlation_id = premium_pending_payment.correlation_id

        result = reconciler.resolve(correlation_id, success_outcome(correlation_id, amount=50))

        assert result.outcome == ResolutionOutcome.APPLIED
        assert result.account_effect_applied
        payment = PaymentRequest.objects.get(pk=premium_pending_payment.pk)
        assert payment.status == PaymentRequestStatus.COMPLETED
        assert payment.provider_receipt_number == "NLJ7RT61SV"
        assert payment.paid_amount == 50
        assert payment.provider_transaction_timestamp is not None
        assert User.objects.get(pk=payment.account_id).subscription_status == SubscriptionTier.PREMIUM

    def test_failure_fails_without_upgrade(self, db, reconciler, pending_payment):
        correlation_id = pending_payment.correlation_id

        result = reconciler.resolve(correlation_id, failure_outcome(correlation_id))

        assert result.outcome == ResolutionOutcome.APPLIED
        assert not result.account_effect_applied
        payment = PaymentRequest.objects.get(pk=pending_payment.pk)
        assert payment.status == PaymentRequestStatus.FAILED
        assert payment.result_code == 1032
        assert payment.result_description == "Request cancelled by user"
        assert User.objects.get(pk=payment.account_id).subscription_status == SubscriptionTier.TRIAL

    def test_unknown_correlation_id_creates_nothing(self, db, reconciler):
        result = reconciler.resolve("ws_CO_UNKNOWN", success_outcome("ws_CO_UNKNOWN"))

        assert result.outcome == ResolutionOutcome.UNKNOWN
        assert result.payment_request is None
        assert not PaymentRequest.objects.exists()

    def test_duplicate_success_is_ignored(self, db, reconciler, pending_payment):
        correlation_id = pending_payment.correlation_id
        reconciler.resolve(correlation_id, success_outcome(correlation_id))

        with patch.object(PaymentReconciler, "apply_account_effect") as mock_apply:
            result = reconciler.resolve(
                correlation_id, success_outcome(correlation_id, receipt_number="OTHER12345")
            )

        assert result.outcome == ResolutionOutcome.DUPLICATE
        mock_apply.assert_not_called()
        payment = PaymentRequest.objects.get(pk=pending_payment.pk)
        assert payment.provider_receipt_number == "NLJ7RT61SV"

    def test_concurrent_delivery_is_duplicate(self, db, reconciler, pending_payment):
        """A delivery that loses the race to resolve the row applies nothing."""
        correlation_id = pending_payment.correlation_id
        stale = PaymentRequest.objects.get(pk=pending_payment.pk)

        first = reconciler.resolve(correlation_id, success_outcome(correlation_id))

        with patch.object(PaymentReconciler, "apply_account_effect") as mock_apply, patch(
            "django.db.models.query.QuerySet.first", return_value=stale
        ):
            second = reconciler.resolve(correlation_id, success_outcome(correlation_id))

        assert first.outcome == ResolutionOutcome.APPLIED
        assert second.outcome == ResolutionOutcome.DUPLICATE
        mock_apply.assert_not_called()
        payment = PaymentRequest.objects.get(pk=pending_payment.pk)
        assert payment.status == PaymentRequestStatus.COMPLETED
        assert User.objects.get(pk=payment.account_id).subscription_status == SubscriptionTier.BASIC

    def test_duplicate_failure_is_ignored(self, db, reconciler, failed_payment):
        correlation_id = failed_payment.correlation_id

        result = reconciler.resolve(correlation_id, failure_outcome(correlation_id))

        assert result.outcome == ResolutionOutcome.DUPLICATE

    def test_failure_after_success_is_conflict(self, db, reconciler, completed_payment):
        correlation_id = completed_payment.correlation_id

        result = reconciler.resolve(correlation_id, failure_outcome(correlation_id))

        assert result.outcome == ResolutionOutcome.CONFLICT
        payment = PaymentRequest.objects.get(pk=completed_payment.pk)
        assert payment.status == PaymentRequestStatus.COMPLETED

    def test_success_after_failure_is_conflict(self, db, reconciler, failed_payment):
        correlation_id = failed_payment.correlation_id

        with patch.object(PaymentReconciler, "apply_account_effect") as mock_apply:
            result = reconciler.resolve(correlation_id, success_outcome(correlation_id))

        assert result.outcome == ResolutionOutcome.CONFLICT
        mock_apply.assert_not_called()
        payment = PaymentRequest.objects.get(pk=failed_payment.pk)
        assert payment.status == PaymentRequestStatus.FAILED
        assert payment.provider_receipt_number is None


# =============================================================================
# Account Effect
# =============================================================================


class TestAccountEffect:
    """Tests for the subscription upgrade and its debts."""

    def test_effect_failure_keeps_payment_completed(
        self, db, reconciler, pending_payment, django_capture_on_commit_callbacks
    ):
        correlation_id = pending_payment.correlation_id

        with patch.object(
            PaymentReconciler,
            "apply_account_effect",
            side_effect=AccountEffectError("Account not found for subscription upgrade"),
        ), patch("payments.tasks.retry_account_effect.apply_async") as mock_retry:
            with django_capture_on_commit_callbacks(execute=True):
                result = reconciler.resolve(correlation_id, success_outcome(correlation_id))

        assert result.outcome == ResolutionOutcome.APPLIED
        assert not result.account_effect_applied

        payment = PaymentRequest.objects.get(pk=pending_payment.pk)
        assert payment.status == PaymentRequestStatus.COMPLETED

        debt = AccountEffectDebt.objects.get(payment_request=payment)
        assert debt.status == AccountEffectDebtStatus.OPEN
        assert debt.target_tier == "basic"
        assert debt.last_error == "Account not found for subscription upgrade"
        assert debt.account_id == payment.account_id
        assert debt.next_attempt_at is not None
        mock_retry.assert_called_once()
        assert mock_retry.call_args.kwargs["args"] == [str(debt.id)]

    def test_database_error_records_debt(self, db, reconciler, pending_payment):
        correlation_id = pending_payment.correlation_id

        with patch.object(
            PaymentReconciler,
            "apply_account_effect",
            side_effect=DatabaseError("deadlock detected"),
        ):
            reconciler.resolve(correlation_id, success_outcome(correlation_id))

        debt = AccountEffectDebt.objects.get(payment_request_id=pending_payment.pk)
        assert "deadlock detected" in debt.last_error

    def test_unknown_tier_raises(self, db, reconciler, account):
        payment = PaymentRequestFactory(
            account=account, completed=True, purpose_reference="platinum"
        )

        with pytest.raises(AccountEffectError):
            reconciler.apply_account_effect(payment)

    def test_effect_only_touches_subscription_status(self, db, reconciler, completed_payment):
        before = User.objects.get(pk=completed_payment.account_id)

        reconciler.apply_account_effect(completed_payment)

        after = User.objects.get(pk=completed_payment.account_id)
        assert after.subscription_status == SubscriptionTier.BASIC
        assert after.business_name == before.business_name
        assert after.phone_number == before.phone_number
        assert after.password == before.password


class TestRetryAccountEffect:
    """Tests for retry_account_effect()."""

    def test_retry_resolves_debt(self, db, reconciler, open_debt):
        debt = reconciler.retry_account_effect(open_debt.id)

        assert debt.status == AccountEffectDebtStatus.RESOLVED
        account = User.objects.get(pk=open_debt.account_id)
        assert account.subscription_status == SubscriptionTier.PREMIUM

    def test_retry_failure_schedules_next_attempt(self, db, reconciler, open_debt):
        with patch.object(
            PaymentReconciler,
            "apply_account_effect",
            side_effect=AccountEffectError("still failing"),
        ):
            debt = reconciler.retry_account_effect(open_debt.id)

        debt = AccountEffectDebt.objects.get(pk=debt.pk)
        assert debt.status == AccountEffectDebtStatus.OPEN
        assert debt.attempts == 2
        assert debt.last_error == "still failing"

    def test_retry_abandons_at_max_attempts(self, db, reconciler, settings):
        settings.MPESA_ACCOUNT_EFFECT_MAX_ATTEMPTS = 3
        open_debt = AccountEffectDebtFactory(attempts=2)

        with patch.object(
            PaymentReconciler,
            "apply_account_effect",
            side_effect=AccountEffectError("still failing"),
        ):
            reconciler.retry_account_effect(open_debt.id)

        debt = AccountEffectDebt.objects.get(pk=open_debt.pk)
        assert debt.status == AccountEffectDebtStatus.ABANDONED
        assert debt.attempts == 3

    def test_retry_of_resolved_debt_is_noop(self, db, reconciler, open_debt):
        reconciler.retry_account_effect(open_debt.id)

        with patch.object(PaymentReconciler, "apply_account_effect") as mock_apply:
            debt = reconciler.retry_account_effect(open_debt.id)

        mock_apply.assert_not_called()
        assert debt.status == AccountEffectDebtStatus.RESOLVED

    def test_retry_of_missing_debt(self, db, reconciler):
        assert reconciler.retry_account_effect("00000000-0000-0000-0000-000000000000") is None


# =============================================================================
# Status
# =============================================================================


class TestCheckStatus:
    def test_status_of_completed_payment(self, db, reconciler, completed_payment):
        result = reconciler.check_status(completed_payment.correlation_id)

        assert result.success
        snapshot = result.data
        assert snapshot.status == PaymentRequestStatus.COMPLETED
        assert snapshot.provider_receipt_number == completed_payment.provider_receipt_number
        assert snapshot.amount == 30

    def test_status_of_unknown_payment(self, db, reconciler):
        result = reconciler.check_status("ws_CO_UNKNOWN")

        assert not result.success
        assert result.error == "Transaction not found"
        assert result.error_code == "PAYMENT_NOT_FOUND"

"""
Tests for payment Celery tasks.

Tasks are called directly (synchronously); queuing is patched out.
"""

from datetime import timedelta
from unittest.mock import patch

from django.utils import timezone

from authentication.models import SubscriptionTier, User
from payments.models import CallbackEvent, PaymentRequest
from payments.state_machines import (
    AccountEffectDebtStatus,
    CallbackEventOutcome,
    PaymentRequestStatus,
)
from payments.tasks import (
    retry_account_effect,
    retry_open_account_effects,
    simulate_sandbox_callback,
)
from payments.tests.factories import AccountEffectDebtFactory, PaymentRequestFactory


# =============================================================================
# Sandbox Callback
# =============================================================================


class TestSimulateSandboxCallback:
    """Tests for simulate_sandbox_callback."""

    def test_completes_sandbox_payment(self, db, account):
        payment = PaymentRequestFactory(
            account=account,
            correlation_id="SANDBOX_CO_0123456789abcdef",
            provider_request_id="SANDBOX_MR_0123456789abcdef",
        )

        result = simulate_sandbox_callback("SANDBOX_CO_0123456789abcdef")

        assert result["status"] == "delivered"
        assert result["outcome"] == CallbackEventOutcome.APPLIED

        payment = PaymentRequest.objects.get(pk=payment.pk)
        assert payment.status == PaymentRequestStatus.COMPLETED
        assert payment.provider_receipt_number.startswith("SANDBOX")
        assert payment.paid_amount == payment.amount
        assert User.objects.get(pk=account.pk).subscription_status == SubscriptionTier.BASIC

        event = CallbackEvent.objects.get(correlation_id=payment.correlation_id)
        assert event.payment_request_id == payment.id

    def test_rejects_live_correlation_id(self, db, pending_payment):
        result = simulate_sandbox_callback(pending_payment.correlation_id)

        assert result["status"] == "rejected"
        payment = PaymentRequest.objects.get(pk=pending_payment.pk)
        assert payment.status == PaymentRequestStatus.PENDING
        assert not CallbackEvent.objects.exists()

    def test_missing_payment(self, db):
        result = simulate_sandbox_callback("SANDBOX_CO_missing")

        assert result["status"] == "not_found"

    def test_skips_resolved_payment(self, db, account):
        PaymentRequestFactory(
            account=account,
            correlation_id="SANDBOX_CO_done",
            failed=True,
        )

        result = simulate_sandbox_callback("SANDBOX_CO_done")

        assert result["status"] == "skipped"
        assert not CallbackEvent.objects.exists()


# =============================================================================
# Account Effect Retries
# =============================================================================


class TestRetryAccountEffectTask:
    def test_resolves_debt(self, db, open_debt):
        result = retry_account_effect(str(open_debt.id))

        assert result["status"] == AccountEffectDebtStatus.RESOLVED
        assert User.objects.get(pk=open_debt.account_id).subscription_status == "premium"

    def test_missing_debt(self, db):
        result = retry_account_effect("00000000-0000-0000-0000-000000000000")

        assert result["status"] == "not_found"


class TestRetryOpenAccountEffects:
    def test_queues_only_due_open_debts(self, db):
        due = AccountEffectDebtFactory()
        AccountEffectDebtFactory(next_attempt_at=timezone.now() + timedelta(hours=1))
        resolved = AccountEffectDebtFactory()
        resolved.resolve()
        resolved.save()

        with patch("payments.tasks.retry_account_effect.delay") as mock_delay:
            result = retry_open_account_effects()

        assert result == {"queued_count": 1}
        mock_delay.assert_called_once_with(str(due.id))

    def test_nothing_due(self, db):
        with patch("payments.tasks.retry_account_effect.delay") as mock_delay:
            result = retry_open_account_effects()

        assert result == {"queued_count": 0}
        mock_delay.assert_not_called()

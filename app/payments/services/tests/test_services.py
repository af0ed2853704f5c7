"""
Tests for SubscriptionPaymentService.

Tests cover:
- Input validation (phone number, plan)
- Account lookup
- Provider rejection and upstream failures
- Pending record creation
- Sandbox self-callback scheduling
"""

from unittest.mock import MagicMock, patch

import pytest

from payments.adapters import PaymentGateway, PushPaymentResult, SandboxGateway
from payments.exceptions import UpstreamAuthError, UpstreamUnavailableError
from payments.models import PaymentRequest
from payments.services import SubscriptionPaymentService, get_subscription_plans
from payments.state_machines import PaymentRequestStatus


@pytest.fixture
def gateway():
    """Live-style gateway double that accepts the push."""
    mock = MagicMock(spec=PaymentGateway)
    mock.is_simulated = False
    mock.initiate_push_payment.return_value = PushPaymentResult.ok(
        provider_request_id="29115-34620561-1",
        correlation_id="ws_CO_191020261030450042",
        customer_facing_message="Success. Request accepted for processing",
    )
    return mock


@pytest.fixture
def service(gateway):
    return SubscriptionPaymentService(gateway=gateway)


class TestSubscriptionPlans:
    def test_default_plans(self, settings):
        settings.MPESA_SUBSCRIPTION_PLANS = None

        assert get_subscription_plans() == {"basic": 30, "premium": 50}

    def test_plans_from_settings(self, settings):
        settings.MPESA_SUBSCRIPTION_PLANS = {"basic": 100}

        assert get_subscription_plans() == {"basic": 100}


class TestInitiate:
    """Tests for initiate()."""

    def test_success_records_pending_payment(self, db, service, gateway, account):
        result = service.initiate("0712345678", "premium")

        assert result.success
        assert result.data.correlation_id == "ws_CO_191020261030450042"
        assert result.data.customer_message == "Success. Request accepted for processing"
        assert result.data.amount == 50

        gateway.initiate_push_payment.assert_called_once_with(
            phone_number="254712345678",
            amount=50,
            account_reference="SUB-PREMIUM",
            description="Subscription: premium plan",
        )

        payment = PaymentRequest.objects.get(correlation_id="ws_CO_191020261030450042")
        assert payment.status == PaymentRequestStatus.PENDING
        assert payment.account == account
        assert payment.amount == 50
        assert payment.purpose_reference == "premium"
        assert payment.phone_number == "254712345678"

    @pytest.mark.parametrize("phone", ["12345", "0812345678", "", "+1 555 0100"])
    def test_invalid_phone_number(self, db, service, gateway, phone):
        result = service.initiate(phone, "basic")

        assert not result.success
        assert result.error_code == "INVALID_PHONE_NUMBER"
        gateway.initiate_push_payment.assert_not_called()

    def test_invalid_plan(self, db, service, gateway, account):
        result = service.initiate("0712345678", "gold")

        assert not result.success
        assert result.error_code == "INVALID_PLAN"
        assert result.error == "Invalid plan ID"
        gateway.initiate_push_payment.assert_not_called()

    def test_unknown_account(self, db, service, gateway):
        result = service.initiate("0799999999", "basic")

        assert not result.success
        assert result.error_code == "ACCOUNT_NOT_FOUND"
        assert result.error == "User not found"
        gateway.initiate_push_payment.assert_not_called()

    def test_inactive_account_not_found(self, db, service, account):
        account.is_active = False
        account.save()

        result = service.initiate("0712345678", "basic")

        assert result.error_code == "ACCOUNT_NOT_FOUND"

    def test_provider_rejection_creates_nothing(self, db, service, gateway, account):
        gateway.initiate_push_payment.return_value = PushPaymentResult.failed(
            error_message="Bad Request - Invalid PhoneNumber"
        )

        result = service.initiate("0712345678", "basic")

        assert not result.success
        assert result.error_code == "PAYMENT_INITIATION_FAILED"
        assert result.error == "Bad Request - Invalid PhoneNumber"
        assert not PaymentRequest.objects.exists()

    @pytest.mark.parametrize(
        "error,code",
        [
            (UpstreamAuthError("Failed to authenticate with M-Pesa"), "UPSTREAM_AUTH_FAILED"),
            (UpstreamUnavailableError("Could not reach M-Pesa"), "UPSTREAM_UNAVAILABLE"),
        ],
    )
    def test_upstream_failure_creates_nothing(self, db, service, gateway, account, error, code):
        gateway.initiate_push_payment.side_effect = error

        result = service.initiate("0712345678", "basic")

        assert not result.success
        assert result.error_code == code
        assert not PaymentRequest.objects.exists()

    def test_live_gateway_does_not_simulate_callback(
        self, db, service, account, django_capture_on_commit_callbacks
    ):
        with patch("payments.tasks.simulate_sandbox_callback.apply_async") as mock_simulate:
            with django_capture_on_commit_callbacks(execute=True):
                service.initiate("0712345678", "basic")

        mock_simulate.assert_not_called()

    def test_sandbox_gateway_schedules_callback(
        self, db, account, settings, django_capture_on_commit_callbacks
    ):
        settings.MPESA_SANDBOX_CALLBACK_DELAY_SECONDS = 7
        service = SubscriptionPaymentService(gateway=SandboxGateway())

        with patch("payments.tasks.simulate_sandbox_callback.apply_async") as mock_simulate:
            with django_capture_on_commit_callbacks(execute=True):
                result = service.initiate("0712345678", "basic")

        mock_simulate.assert_called_once_with(args=[result.data.correlation_id], countdown=7)


class TestStatus:
    def test_delegates_to_reconciler(self, db, service, pending_payment):
        result = service.status(pending_payment.correlation_id)

        assert result.success
        assert result.data.status == PaymentRequestStatus.PENDING

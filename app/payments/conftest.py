"""
Pytest fixtures shared by all payment tests.

Lives at the app root so tests under adapters/, services/ and webhooks/
see the same fixtures as tests/. It provides payment-related test data.
Fixtures are designed to provide objects in various states for testing
state transitions and reconciliation.

Usage:
    def test_complete_payment(pending_payment):
        pending_payment.complete(receipt_number="NLJ7RT61SV")
        pending_payment.save()
        assert pending_payment.status == PaymentRequestStatus.COMPLETED
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory
from payments.adapters import get_payment_gateway
from payments.tests.factories import (
    AccountEffectDebtFactory,
    PaymentRequestFactory,
)


# =============================================================================
# Gateway Selection
# =============================================================================


@pytest.fixture(autouse=True)
def reset_payment_gateway():
    """Drop the cached gateway so settings overrides take effect."""
    get_payment_gateway.cache_clear()
    yield
    get_payment_gateway.cache_clear()


@pytest.fixture
def sandbox_settings(settings):
    """Force the simulated gateway."""
    settings.MPESA_ENVIRONMENT = "sandbox-simulated"
    return settings


# =============================================================================
# Account Fixtures
# =============================================================================


@pytest.fixture
def account(db):
    """Create a trial account."""
    return UserFactory(phone_number="254712345678", business_name="Duka Bora")


@pytest.fixture
def api_client():
    """Unauthenticated API client (payment endpoints are public)."""
    return APIClient()


# =============================================================================
# PaymentRequest State Fixtures
# =============================================================================


@pytest.fixture
def pending_payment(db, account):
    """Create a PENDING basic-plan payment."""
    return PaymentRequestFactory(
        account=account,
        correlation_id="ws_CO_191020261030450001",
    )


@pytest.fixture
def premium_pending_payment(db, account):
    """Create a PENDING premium-plan payment."""
    return PaymentRequestFactory(
        account=account,
        correlation_id="ws_CO_191020261030450002",
        amount=50,
        purpose_reference="premium",
        description="Subscription: premium plan",
    )


@pytest.fixture
def completed_payment(db, account):
    """Create a COMPLETED payment."""
    return PaymentRequestFactory(account=account, completed=True)


@pytest.fixture
def failed_payment(db, account):
    """Create a FAILED payment."""
    return PaymentRequestFactory(account=account, failed=True)


@pytest.fixture
def open_debt(db):
    """Create an OPEN account effect debt that is due."""
    return AccountEffectDebtFactory()

"""
Tests for the M-Pesa callback view.

The provider must always get HTTP 200 with the acknowledgement body,
whatever happened while processing the delivery.
"""

import json
from unittest.mock import patch

import pytest
from django.test import RequestFactory

from payments.models import CallbackEvent, PaymentRequest
from payments.state_machines import CallbackEventOutcome, PaymentRequestStatus
from payments.tests.factories import build_callback_payload
from payments.webhooks.views import mpesa_callback

CALLBACK_URL = "/api/v1/payments/mpesa/callback/"
ACK = {"ResultCode": 0, "ResultDesc": "Accepted"}


# =============================================================================
# Setup
# =============================================================================


@pytest.fixture
def rf():
    """Request factory for creating test requests."""
    return RequestFactory()


def make_callback_request(rf, body):
    """Create a POST request to the callback endpoint."""
    data = body if isinstance(body, (str, bytes)) else json.dumps(body)
    return rf.post(CALLBACK_URL, data=data, content_type="application/json")


# =============================================================================
# Acknowledgement Tests
# =============================================================================


class TestMpesaCallbackAcknowledgement:
    """Every delivery is acknowledged with 200."""

    def test_success_callback_acknowledged(self, rf, db, pending_payment):
        request = make_callback_request(
            rf, build_callback_payload(pending_payment.correlation_id)
        )

        response = mpesa_callback(request)

        assert response.status_code == 200
        assert json.loads(response.content) == ACK
        payment = PaymentRequest.objects.get(pk=pending_payment.pk)
        assert payment.status == PaymentRequestStatus.COMPLETED

    def test_malformed_json_acknowledged(self, rf, db):
        response = mpesa_callback(make_callback_request(rf, "{not json"))

        assert response.status_code == 200
        assert json.loads(response.content) == ACK
        event = CallbackEvent.objects.get()
        assert event.outcome == CallbackEventOutcome.INVALID
        assert event.payload == {"raw": "{not json"}

    def test_empty_body_acknowledged(self, rf, db):
        response = mpesa_callback(make_callback_request(rf, b""))

        assert response.status_code == 200
        assert CallbackEvent.objects.get().outcome == CallbackEventOutcome.INVALID

    def test_unknown_correlation_id_acknowledged(self, rf, db):
        response = mpesa_callback(
            make_callback_request(rf, build_callback_payload("ws_CO_UNKNOWN"))
        )

        assert response.status_code == 200
        assert CallbackEvent.objects.get().outcome == CallbackEventOutcome.UNKNOWN

    def test_internal_failure_acknowledged(self, rf, db):
        with patch(
            "payments.webhooks.views.ingest_callback",
            side_effect=RuntimeError("unexpected"),
        ):
            response = mpesa_callback(
                make_callback_request(rf, build_callback_payload("ws_CO_1"))
            )

        assert response.status_code == 200
        assert json.loads(response.content) == ACK

    def test_get_not_allowed(self, rf, db):
        response = mpesa_callback(rf.get(CALLBACK_URL))

        assert response.status_code == 405


class TestMpesaCallbackRouting:
    """The callback is reachable without CSRF or authentication."""

    def test_routed_post_without_credentials(self, client, db, pending_payment):
        client.handler.enforce_csrf_checks = True

        response = client.post(
            CALLBACK_URL,
            data=json.dumps(
                build_callback_payload(pending_payment.correlation_id, result_code=1032)
            ),
            content_type="application/json",
        )

        assert response.status_code == 200
        payment = PaymentRequest.objects.get(pk=pending_payment.pk)
        assert payment.status == PaymentRequestStatus.FAILED

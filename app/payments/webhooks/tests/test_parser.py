"""
Tests for STK callback parsing.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from payments.exceptions import CallbackPayloadError
from payments.state_machines import CallbackOutcomeKind
from payments.tests.factories import build_callback_payload
from payments.webhooks.parser import parse_stk_callback, parse_transaction_date


class TestParseStkCallback:
    """Tests for parse_stk_callback."""

    def test_success_callback(self):
        payload = build_callback_payload("ws_CO_1", result_code=0, amount=30)

        outcome = parse_stk_callback(payload)

        assert outcome.kind == CallbackOutcomeKind.SUCCESS
        assert outcome.is_success
        assert outcome.correlation_id == "ws_CO_1"
        assert outcome.provider_request_id == "29115-34620561-1"
        assert outcome.result_code == 0
        assert outcome.amount == 30
        assert outcome.receipt_number == "NLJ7RT61SV"
        assert outcome.phone_number == "254712345678"
        assert outcome.transaction_timestamp == datetime(
            2026, 10, 19, 10, 30, 45, tzinfo=ZoneInfo("Africa/Nairobi")
        )

    def test_failure_callback(self):
        payload = build_callback_payload("ws_CO_1", result_code=1032)

        outcome = parse_stk_callback(payload)

        assert outcome.kind == CallbackOutcomeKind.FAILURE
        assert not outcome.is_success
        assert outcome.result_code == 1032
        assert outcome.result_description == "Request cancelled by user"
        assert outcome.receipt_number is None

    def test_result_code_as_string(self):
        payload = build_callback_payload("ws_CO_1", result_code=1032)
        payload["Body"]["stkCallback"]["ResultCode"] = "1032"

        assert parse_stk_callback(payload).result_code == 1032

    def test_decimal_amount(self):
        payload = build_callback_payload("ws_CO_1")
        payload["Body"]["stkCallback"]["CallbackMetadata"]["Item"][0]["Value"] = 30.00

        assert parse_stk_callback(payload).amount == 30

    @pytest.mark.parametrize("amount", ["Infinity", float("inf"), "NaN", "thirty"])
    def test_non_numeric_amount_rejected(self, amount):
        payload = build_callback_payload("ws_CO_1")
        payload["Body"]["stkCallback"]["CallbackMetadata"]["Item"][0]["Value"] = amount

        with pytest.raises(CallbackPayloadError) as exc_info:
            parse_stk_callback(payload)

        assert exc_info.value.details["field"] == "Amount"

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            "not a dict",
            {},
            {"Body": {}},
            {"Body": {"stkCallback": "x"}},
            {"Body": {"stkCallback": {"ResultCode": 0}}},
            {"Body": {"stkCallback": {"CheckoutRequestID": "ws_CO_1"}}},
            {"Body": {"stkCallback": {"CheckoutRequestID": "ws_CO_1", "ResultCode": "abc"}}},
            {"Body": {"stkCallback": {"CheckoutRequestID": "ws_CO_1", "ResultCode": 0}}},
        ],
    )
    def test_malformed_payloads_rejected(self, payload):
        with pytest.raises(CallbackPayloadError):
            parse_stk_callback(payload)

    def test_success_without_receipt_rejected(self):
        payload = build_callback_payload("ws_CO_1")
        items = payload["Body"]["stkCallback"]["CallbackMetadata"]["Item"]
        payload["Body"]["stkCallback"]["CallbackMetadata"]["Item"] = [
            item for item in items if item["Name"] != "MpesaReceiptNumber"
        ]

        with pytest.raises(CallbackPayloadError) as exc_info:
            parse_stk_callback(payload)

        assert exc_info.value.details["correlation_id"] == "ws_CO_1"


class TestParseTransactionDate:
    def test_integer_date(self):
        parsed = parse_transaction_date(20261019103045)

        assert parsed.year == 2026
        assert parsed.utcoffset().total_seconds() == 3 * 3600

    @pytest.mark.parametrize("value", [None, "", "yesterday", 123])
    def test_unparseable_date_is_none(self, value):
        assert parse_transaction_date(value) is None

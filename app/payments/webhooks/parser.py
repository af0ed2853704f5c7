"""
Parser for M-Pesa STK-push callback payloads.

Daraja posts the result of every push request to the callback URL:

    {
        "Body": {
            "stkCallback": {
                "MerchantRequestID": "29115-34620561-1",
                "CheckoutRequestID": "ws_CO_191220191020363925",
                "ResultCode": 0,
                "ResultDesc": "The service request is processed successfully.",
                "CallbackMetadata": {
                    "Item": [
                        {"Name": "Amount", "Value": 30.00},
                        {"Name": "MpesaReceiptNumber", "Value": "NLJ7RT61SV"},
                        {"Name": "TransactionDate", "Value": 20191219102115},
                        {"Name": "PhoneNumber", "Value": 254712345678}
                    ]
                }
            }
        }
    }

ResultCode 0 means the payer completed the payment; any other code is a
failure (1032 cancelled by user, 1037 timeout, 2001 wrong PIN, ...), and
CallbackMetadata is absent.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from zoneinfo import ZoneInfo

from payments.exceptions import CallbackPayloadError
from payments.state_machines import CallbackOutcomeKind

PROVIDER_TIMEZONE = ZoneInfo("Africa/Nairobi")
TRANSACTION_DATE_FORMAT = "%Y%m%d%H%M%S"


@dataclass(frozen=True)
class CallbackOutcome:
    """
    Normalized result carried by one callback.

    Attributes:
        kind: SUCCESS when ResultCode is 0, FAILURE otherwise
        correlation_id: CheckoutRequestID
        provider_request_id: MerchantRequestID
        result_code: ResultCode as an integer
        result_description: ResultDesc
        amount: Paid amount (success only)
        receipt_number: MpesaReceiptNumber (success only)
        transaction_timestamp: Aware datetime of TransactionDate (success only)
        phone_number: Payer number (success only)
    """

    kind: str
    correlation_id: str
    provider_request_id: str
    result_code: int
    result_description: str
    amount: int | None = None
    receipt_number: str | None = None
    transaction_timestamp: datetime | None = None
    phone_number: str | None = None

    @property
    def is_success(self) -> bool:
        return self.kind == CallbackOutcomeKind.SUCCESS


def _require_dict(value: Any, name: str) -> dict:
    if not isinstance(value, dict):
        raise CallbackPayloadError(
            f"Callback payload is missing '{name}'",
            details={"field": name},
        )
    return value


def _metadata_items(stk_callback: dict) -> dict[str, Any]:
    metadata = stk_callback.get("CallbackMetadata") or {}
    items = metadata.get("Item") if isinstance(metadata, dict) else None
    if not isinstance(items, list):
        raise CallbackPayloadError(
            "Successful callback has no CallbackMetadata items",
            details={"field": "CallbackMetadata.Item"},
        )
    values = {}
    for item in items:
        if isinstance(item, dict) and "Name" in item:
            values[item["Name"]] = item.get("Value")
    return values


def _parse_amount(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, ValueError, OverflowError):
        raise CallbackPayloadError(
            "Callback Amount is not a number",
            details={"field": "Amount", "value": value},
        )


def parse_transaction_date(value: Any) -> datetime | None:
    """
    Parse a YYYYMMDDHHMMSS TransactionDate into an aware datetime.

    Returns None for missing or unparseable values; the receipt number,
    not the date, is what marks a payment as completed.
    """
    if value in (None, ""):
        return None
    try:
        naive = datetime.strptime(str(value), TRANSACTION_DATE_FORMAT)
    except ValueError:
        return None
    return naive.replace(tzinfo=PROVIDER_TIMEZONE)


def parse_stk_callback(payload: Any) -> CallbackOutcome:
    """
    Extract the outcome of a push payment from a callback body.

    Args:
        payload: Decoded JSON body of the callback request

    Returns:
        CallbackOutcome

    Raises:
        CallbackPayloadError: Body, stkCallback, CheckoutRequestID or
            ResultCode missing, or a success without a receipt number
    """
    payload = _require_dict(payload, "payload")
    body = _require_dict(payload.get("Body"), "Body")
    stk_callback = _require_dict(body.get("stkCallback"), "Body.stkCallback")

    correlation_id = stk_callback.get("CheckoutRequestID")
    if not correlation_id or not isinstance(correlation_id, str):
        raise CallbackPayloadError(
            "Callback has no CheckoutRequestID",
            details={"field": "CheckoutRequestID"},
        )

    try:
        result_code = int(stk_callback.get("ResultCode"))
    except (TypeError, ValueError):
        raise CallbackPayloadError(
            "Callback ResultCode is missing or not an integer",
            details={"field": "ResultCode", "correlation_id": correlation_id},
        )

    provider_request_id = str(stk_callback.get("MerchantRequestID") or "")
    result_description = str(stk_callback.get("ResultDesc") or "")

    if result_code != 0:
        return CallbackOutcome(
            kind=CallbackOutcomeKind.FAILURE,
            correlation_id=correlation_id,
            provider_request_id=provider_request_id,
            result_code=result_code,
            result_description=result_description,
        )

    items = _metadata_items(stk_callback)
    receipt_number = items.get("MpesaReceiptNumber")
    if not receipt_number:
        raise CallbackPayloadError(
            "Successful callback has no MpesaReceiptNumber",
            details={"field": "MpesaReceiptNumber", "correlation_id": correlation_id},
        )

    phone_number = items.get("PhoneNumber")

    return CallbackOutcome(
        kind=CallbackOutcomeKind.SUCCESS,
        correlation_id=correlation_id,
        provider_request_id=provider_request_id,
        result_code=result_code,
        result_description=result_description,
        amount=_parse_amount(items.get("Amount")),
        receipt_number=str(receipt_number),
        transaction_timestamp=parse_transaction_date(items.get("TransactionDate")),
        phone_number=str(phone_number) if phone_number is not None else None,
    )

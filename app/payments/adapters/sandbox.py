"""
Simulated gateway for running without Daraja credentials.

SandboxGateway answers every push request immediately with synthetic
identifiers and never touches the network. Because no provider will ever
call back, the subscription service schedules a simulated callback built
by build_sandbox_callback(), which goes through the same ingestion path
as a real one.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.utils import timezone

from payments.adapters.base import PaymentGateway, PushPaymentResult
from payments.adapters.mpesa import provider_timestamp
from toolkit.validators import normalize_phone_number

logger = logging.getLogger(__name__)

SANDBOX_ACCESS_TOKEN = "sandbox-access-token"
SANDBOX_CORRELATION_PREFIX = "SANDBOX_CO_"
SANDBOX_REQUEST_PREFIX = "SANDBOX_MR_"
SANDBOX_CUSTOMER_MESSAGE = "Success. Request accepted for processing (SANDBOX)"


class SandboxGateway(PaymentGateway):
    """Gateway that accepts every push request without a provider."""

    is_simulated = True

    def obtain_access_credential(self) -> str:
        return SANDBOX_ACCESS_TOKEN

    def initiate_push_payment(
        self,
        phone_number: str,
        amount: int | float,
        account_reference: str,
        description: str,
    ) -> PushPaymentResult:
        correlation_id = f"{SANDBOX_CORRELATION_PREFIX}{uuid.uuid4().hex}"
        provider_request_id = f"{SANDBOX_REQUEST_PREFIX}{uuid.uuid4().hex}"

        logger.info(
            "Simulated push payment",
            extra={
                "phone_number": normalize_phone_number(phone_number),
                "amount": amount,
                "account_reference": account_reference,
                "correlation_id": correlation_id,
            },
        )

        return PushPaymentResult.ok(
            provider_request_id=provider_request_id,
            correlation_id=correlation_id,
            provider_response_code="0",
            customer_facing_message=SANDBOX_CUSTOMER_MESSAGE,
        )


def is_sandbox_correlation_id(correlation_id: str) -> bool:
    return correlation_id.startswith(SANDBOX_CORRELATION_PREFIX)


def build_sandbox_callback(
    correlation_id: str,
    provider_request_id: str,
    amount: int,
    phone_number: str,
) -> dict[str, Any]:
    """
    Build a successful provider-shaped callback body for a sandbox payment.

    The shape matches what Daraja posts to the callback URL, so the
    simulated delivery exercises the real parser and reconciler.
    """
    receipt_number = f"SANDBOX{uuid.uuid4().hex[:10].upper()}"
    return {
        "Body": {
            "stkCallback": {
                "MerchantRequestID": provider_request_id,
                "CheckoutRequestID": correlation_id,
                "ResultCode": 0,
                "ResultDesc": "The service request is processed successfully.",
                "CallbackMetadata": {
                    "Item": [
                        {"Name": "Amount", "Value": amount},
                        {"Name": "MpesaReceiptNumber", "Value": receipt_number},
                        {
                            "Name": "TransactionDate",
                            "Value": int(provider_timestamp(timezone.now())),
                        },
                        {"Name": "PhoneNumber", "Value": int(phone_number)},
                    ]
                },
            }
        }
    }

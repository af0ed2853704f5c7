"""
Base gateway interface for push payments.

This module defines the abstract PaymentGateway class that all gateway
implementations must inherit from, plus the result type they return.

Gateways:
    - MpesaGateway: Live Daraja API over HTTPS
    - SandboxGateway: In-process simulation, no network

Usage:
    from payments.adapters import get_payment_gateway

    gateway = get_payment_gateway()
    result = gateway.initiate_push_payment(
        phone_number="0712345678",
        amount=30,
        account_reference="SUB-BASIC",
        description="Subscription: basic plan",
    )
    if result.success:
        print(result.correlation_id)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PushPaymentResult:
    """
    Result of submitting a push payment to the provider.

    A provider rejection is a normal result (success=False) with the
    provider's own text in error_message; only transport and credential
    failures raise.

    Attributes:
        success: Whether the provider accepted the request
        provider_request_id: MerchantRequestID
        correlation_id: CheckoutRequestID (callback join key)
        provider_response_code: ResponseCode as returned ("0" on success)
        customer_facing_message: CustomerMessage to show the payer
        error_message: Provider text explaining a rejection
        raw_response: Provider response body (for debugging)
    """

    success: bool
    provider_request_id: str | None = None
    correlation_id: str | None = None
    provider_response_code: str | None = None
    customer_facing_message: str | None = None
    error_message: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        provider_request_id: str,
        correlation_id: str,
        provider_response_code: str = "0",
        customer_facing_message: str = "",
        raw_response: dict[str, Any] | None = None,
    ) -> PushPaymentResult:
        return cls(
            success=True,
            provider_request_id=provider_request_id,
            correlation_id=correlation_id,
            provider_response_code=provider_response_code,
            customer_facing_message=customer_facing_message,
            raw_response=raw_response or {},
        )

    @classmethod
    def failed(
        cls,
        error_message: str,
        provider_response_code: str | None = None,
        raw_response: dict[str, Any] | None = None,
    ) -> PushPaymentResult:
        return cls(
            success=False,
            error_message=error_message,
            provider_response_code=provider_response_code,
            raw_response=raw_response or {},
        )


class PaymentGateway(ABC):
    """
    Abstract base class for push-payment gateways.

    Implementations must be safe to share across threads; the factory
    builds one instance per process.

    Attributes:
        is_simulated: True when no real provider is involved and the
            caller must simulate the callback itself
    """

    is_simulated: bool = False

    @abstractmethod
    def obtain_access_credential(self) -> str:
        """
        Return a bearer credential for the provider API.

        Raises:
            UpstreamAuthError: Provider rejected the client credentials
            UpstreamUnavailableError: Provider unreachable or timed out
        """
        ...

    @abstractmethod
    def initiate_push_payment(
        self,
        phone_number: str,
        amount: int | float,
        account_reference: str,
        description: str,
    ) -> PushPaymentResult:
        """
        Ask the provider to prompt the payer's phone for a payment.

        Args:
            phone_number: Payer number in any accepted format
            amount: Amount in KES (rounded up to a whole shilling)
            account_reference: Reference shown to the payer
            description: Transaction description

        Returns:
            PushPaymentResult, successful or carrying the provider's rejection

        Raises:
            UpstreamAuthError: Credential exchange failed
            UpstreamUnavailableError: Transport fault or timeout
        """
        ...

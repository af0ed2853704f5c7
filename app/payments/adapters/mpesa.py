"""
Safaricom Daraja (M-Pesa) API adapter for STK-push payments.

This module provides the MpesaGateway class which encapsulates all
Daraja API interactions: the OAuth client-credentials exchange and the
Lipa na M-Pesa Online push request.

Features:
- Configurable timeout on every outbound call
- Access token cached in the Django cache until shortly before expiry
- Transport failures translated to domain exceptions
- Provider rejections returned verbatim as failed results
- Structured logging with timing metrics

Configuration (via settings):
- MPESA_CONSUMER_KEY / MPESA_CONSUMER_SECRET: Daraja app credentials
- MPESA_SHORTCODE: Paybill/till shortcode (default: 174379)
- MPESA_PASSKEY: Lipa na M-Pesa Online passkey
- MPESA_CALLBACK_URL: Public URL of the callback endpoint
- MPESA_BASE_URL: API host (default: https://sandbox.safaricom.co.ke)
- MPESA_API_TIMEOUT_SECONDS: Per-call timeout (default: 30)

Usage:
    from payments.adapters.mpesa import MpesaGateway

    gateway = MpesaGateway.from_settings()
    result = gateway.initiate_push_payment(
        "0712345678", 30, "SUB-BASIC", "Subscription: basic plan"
    )
"""

from __future__ import annotations

import base64
import hashlib
import logging
import math
import time
from typing import Any
from zoneinfo import ZoneInfo

import requests
from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

from payments.adapters.base import PaymentGateway, PushPaymentResult
from payments.exceptions import UpstreamAuthError, UpstreamUnavailableError
from toolkit.validators import normalize_phone_number

# Daraja expects timestamps in East Africa Time
PROVIDER_TIMEZONE = ZoneInfo("Africa/Nairobi")
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

TRANSACTION_TYPE = "CustomerPayBillOnline"

# Refresh the token this many seconds before the provider expires it
TOKEN_EXPIRY_MARGIN_SECONDS = 60
DEFAULT_TOKEN_LIFETIME_SECONDS = 3599


# =============================================================================
# Request Signing Helpers
# =============================================================================


def provider_timestamp(now=None) -> str:
    """
    Format a moment as the YYYYMMDDHHMMSS string Daraja expects.

    Args:
        now: Aware datetime (defaults to the current time)
    """
    now = now or timezone.now()
    return now.astimezone(PROVIDER_TIMEZONE).strftime(TIMESTAMP_FORMAT)


def build_password(shortcode: str, passkey: str, timestamp: str) -> str:
    """Return base64(shortcode + passkey + timestamp)."""
    raw = f"{shortcode}{passkey}{timestamp}"
    return base64.b64encode(raw.encode()).decode()


# =============================================================================
# M-Pesa Gateway
# =============================================================================


class MpesaGateway(PaymentGateway):
    """
    Gateway backed by the live Daraja API.

    One requests.Session is kept per instance for connection reuse.

    Usage:
        gateway = MpesaGateway.from_settings()
        token = gateway.obtain_access_credential()
    """

    TOKEN_PATH = "/oauth/v1/generate"
    STK_PUSH_PATH = "/mpesa/stkpush/v1/processrequest"

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        shortcode: str,
        passkey: str,
        callback_url: str,
        base_url: str = "https://sandbox.safaricom.co.ke",
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.shortcode = str(shortcode)
        self.passkey = passkey
        self.callback_url = callback_url
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls) -> MpesaGateway:
        """Build a gateway from Django settings."""
        return cls(
            consumer_key=settings.MPESA_CONSUMER_KEY,
            consumer_secret=settings.MPESA_CONSUMER_SECRET,
            shortcode=settings.MPESA_SHORTCODE,
            passkey=settings.MPESA_PASSKEY,
            callback_url=settings.MPESA_CALLBACK_URL,
            base_url=settings.MPESA_BASE_URL,
            timeout=settings.MPESA_API_TIMEOUT_SECONDS,
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @property
    def token_cache_key(self) -> str:
        # Scoped to the credentials so a key rotation never reuses a stale token
        digest = hashlib.sha256(f"{self.base_url}:{self.consumer_key}".encode()).hexdigest()[:16]
        return f"payments:mpesa:access_token:{digest}"

    # =========================================================================
    # Credential Exchange
    # =========================================================================

    def obtain_access_credential(self) -> str:
        """
        Return a bearer token, fetching a new one when the cached one is gone.

        Raises:
            UpstreamAuthError: Non-2xx response or no token in the body
            UpstreamUnavailableError: Transport fault or timeout
        """
        token = cache.get(self.token_cache_key)
        if token:
            return token

        logger = self.get_logger()
        log_context = {"operation": "obtain_access_credential", "base_url": self.base_url}
        start_time = time.time()

        try:
            response = self.session.get(
                f"{self.base_url}{self.TOKEN_PATH}",
                params={"grant_type": "client_credentials"},
                auth=(self.consumer_key, self.consumer_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self._raise_unavailable(e, log_context, start_time)

        duration_ms = (time.time() - start_time) * 1000

        if not response.ok:
            logger.error(
                "M-Pesa credential request rejected",
                extra={
                    **log_context,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            raise UpstreamAuthError(
                "Failed to authenticate with M-Pesa",
                status_code=response.status_code,
            )

        data = self._json_body(response)
        token = data.get("access_token")
        if not token:
            logger.error("M-Pesa credential response had no access_token", extra=log_context)
            raise UpstreamAuthError(
                "M-Pesa returned no access token",
                status_code=response.status_code,
            )

        try:
            lifetime = int(data.get("expires_in", DEFAULT_TOKEN_LIFETIME_SECONDS))
        except (TypeError, ValueError):
            lifetime = DEFAULT_TOKEN_LIFETIME_SECONDS

        ttl = lifetime - TOKEN_EXPIRY_MARGIN_SECONDS
        if ttl > 0:
            cache.set(self.token_cache_key, token, timeout=ttl)

        logger.info(
            "M-Pesa access token obtained",
            extra={**log_context, "duration_ms": duration_ms, "expires_in": lifetime},
        )
        return token

    # =========================================================================
    # Push Payment
    # =========================================================================

    def initiate_push_payment(
        self,
        phone_number: str,
        amount: int | float,
        account_reference: str,
        description: str,
    ) -> PushPaymentResult:
        """
        Submit an STK push request.

        Returns:
            PushPaymentResult.ok when the provider answers 2xx with
            ResponseCode "0", otherwise PushPaymentResult.failed carrying
            the provider's errorMessage/ResponseDescription

        Raises:
            UpstreamAuthError: Credential exchange failed
            UpstreamUnavailableError: Transport fault or timeout
        """
        logger = self.get_logger()
        phone = normalize_phone_number(phone_number)
        timestamp = provider_timestamp()

        body = {
            "BusinessShortCode": self.shortcode,
            "Password": build_password(self.shortcode, self.passkey, timestamp),
            "Timestamp": timestamp,
            "TransactionType": TRANSACTION_TYPE,
            "Amount": math.ceil(amount),
            "PartyA": phone,
            "PartyB": self.shortcode,
            "PhoneNumber": phone,
            "CallBackURL": self.callback_url,
            "AccountReference": account_reference,
            "TransactionDesc": description,
        }

        log_context = {
            "operation": "initiate_push_payment",
            "phone_number": phone,
            "amount": body["Amount"],
            "account_reference": account_reference,
        }

        token = self.obtain_access_credential()

        start_time = time.time()
        logger.info("Starting M-Pesa operation", extra=log_context)

        try:
            response = self.session.post(
                f"{self.base_url}{self.STK_PUSH_PATH}",
                json=body,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self._raise_unavailable(e, log_context, start_time)

        duration_ms = (time.time() - start_time) * 1000
        data = self._json_body(response)
        response_code = data.get("ResponseCode")

        if response.status_code == 401:
            # Token revoked or expired early; the next call fetches a new one
            cache.delete(self.token_cache_key)

        if response.ok and str(response_code) == "0":
            logger.info(
                "M-Pesa operation completed",
                extra={
                    **log_context,
                    "correlation_id": data.get("CheckoutRequestID"),
                    "duration_ms": duration_ms,
                },
            )
            return PushPaymentResult.ok(
                provider_request_id=data.get("MerchantRequestID", ""),
                correlation_id=data.get("CheckoutRequestID", ""),
                provider_response_code=str(response_code),
                customer_facing_message=data.get("CustomerMessage", ""),
                raw_response=data,
            )

        error_message = (
            data.get("errorMessage")
            or data.get("ResponseDescription")
            or f"M-Pesa request failed with HTTP {response.status_code}"
        )
        logger.warning(
            "M-Pesa rejected push request",
            extra={
                **log_context,
                "status_code": response.status_code,
                "response_code": response_code,
                "error_code": data.get("errorCode"),
                "duration_ms": duration_ms,
            },
        )
        return PushPaymentResult.failed(
            error_message=error_message,
            provider_response_code=str(response_code) if response_code is not None else None,
            raw_response=data,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _json_body(response: requests.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def _raise_unavailable(
        self,
        error: requests.RequestException,
        log_context: dict[str, Any],
        start_time: float,
    ) -> None:
        duration_ms = (time.time() - start_time) * 1000
        reason = "timeout" if isinstance(error, requests.Timeout) else "connection"
        self.get_logger().error(
            "M-Pesa unreachable",
            extra={**log_context, "reason": reason, "duration_ms": duration_ms},
            exc_info=True,
        )
        raise UpstreamUnavailableError(
            "Could not reach M-Pesa. Please retry.",
            details={"reason": reason},
        ) from error

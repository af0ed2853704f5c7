"""
Factory function for payment gateway selection.

Provides a single function to get the gateway for the configured
environment. The choice is made once per process.

MPESA_ENVIRONMENT:
    "live": always MpesaGateway
    "sandbox-simulated": always SandboxGateway
    "auto" (default): SandboxGateway when credentials are missing or
        still placeholders, MpesaGateway otherwise
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from django.conf import settings

if TYPE_CHECKING:
    from payments.adapters.base import PaymentGateway

logger = logging.getLogger(__name__)

ENVIRONMENT_AUTO = "auto"
ENVIRONMENT_LIVE = "live"
ENVIRONMENT_SANDBOX = "sandbox-simulated"

PLACEHOLDER_MARKERS = ("your_", "changeme", "placeholder")


def looks_like_placeholder(value: str | None) -> bool:
    """Check whether a credential is empty or an unfilled template value."""
    if not value:
        return True
    lowered = value.strip().lower()
    return not lowered or any(marker in lowered for marker in PLACEHOLDER_MARKERS)


def is_sandbox_mode() -> bool:
    """
    Decide whether to simulate the provider.

    Returns:
        True when MPESA_ENVIRONMENT forces the sandbox, or when it is
        "auto" and any credential looks like a placeholder
    """
    environment = getattr(settings, "MPESA_ENVIRONMENT", ENVIRONMENT_AUTO)
    if environment == ENVIRONMENT_SANDBOX:
        return True
    if environment == ENVIRONMENT_LIVE:
        return False

    credentials = (
        settings.MPESA_CONSUMER_KEY,
        settings.MPESA_CONSUMER_SECRET,
        settings.MPESA_PASSKEY,
    )
    return any(looks_like_placeholder(value) for value in credentials)


@lru_cache(maxsize=1)
def get_payment_gateway() -> "PaymentGateway":
    """
    Get the payment gateway for the current configuration.

    Returns:
        SandboxGateway or MpesaGateway (cached for the process lifetime)

    Usage:
        gateway = get_payment_gateway()
        result = gateway.initiate_push_payment(phone, 30, "SUB-BASIC", "...")
    """
    if is_sandbox_mode():
        from payments.adapters.sandbox import SandboxGateway

        logger.warning("M-Pesa credentials not configured; using simulated gateway")
        return SandboxGateway()

    from payments.adapters.mpesa import MpesaGateway

    return MpesaGateway.from_settings()

"""
Custom validators for domain-specific input.

This module provides validators for:
- Kenyan mobile numbers (account identifiers and M-Pesa payer numbers)

Usage:
    from toolkit.validators import normalize_phone_number, validate_phone_number

    class User(AbstractBaseUser):
        phone_number = models.CharField(validators=[validate_phone_number])

    normalize_phone_number("0712 345 678")  # "254712345678"
"""

from __future__ import annotations

import re

from django.core.exceptions import ValidationError

# Country calling code used for every canonical number
COUNTRY_CODE = "254"

# Safaricom/Airtel mobile prefixes (7xx, 1xx) after the trunk or country code
KENYAN_MOBILE_PATTERN = re.compile(r"^(254|0)[17]\d{8}$")


def _digits_only(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def normalize_phone_number(value: str) -> str:
    """
    Normalize a phone number to the canonical international form.

    Rules, applied to the digits of the input:
    - a leading local trunk prefix ``0`` is rewritten to ``254``
    - a number that still does not start with ``254`` is prefixed with it

    Args:
        value: Phone number in local or international form, with or
            without separators and a leading ``+``

    Returns:
        Digits-only number such as ``254712345678``

    Example:
        normalize_phone_number("0712345678")     # "254712345678"
        normalize_phone_number("+254 712 345678")  # "254712345678"
        normalize_phone_number("712345678")      # "254712345678"
    """
    cleaned = _digits_only(value)

    if cleaned.startswith("0"):
        cleaned = COUNTRY_CODE + cleaned[1:]

    if not cleaned.startswith(COUNTRY_CODE):
        cleaned = COUNTRY_CODE + cleaned

    return cleaned


def is_valid_phone_number(value: str) -> bool:
    """Check a number against the Kenyan mobile format after cleaning."""
    return bool(KENYAN_MOBILE_PATTERN.match(_digits_only(value)))


def validate_phone_number(value: str):
    """
    Validate Kenyan mobile number format.

    Accepts formats:
    - 254712345678
    - 0712345678
    - +254 712 345 678 (separators are ignored)

    Raises:
        ValidationError: If format is invalid
    """
    if not is_valid_phone_number(value):
        raise ValidationError(
            "Invalid phone number format. Use 254XXXXXXXXX or 07XXXXXXXX."
        )


def validate_pin(value: str):
    """
    Validate PIN format: 4-6 digits.

    Raises:
        ValidationError: If the PIN is not 4-6 digits
    """
    if not re.match(r"^\d{4,6}$", value or ""):
        raise ValidationError("PIN must be 4-6 digits.")

"""
Authentication services.

This module provides the AuthService class for account registration,
PIN login and JWT issuance.

Related files:
    - models.py: User
    - serializers.py: Input validation for signup/login
    - views.py: HTTP endpoints

Security:
    - PINs hashed with Django's password hashers
    - Login failures do not reveal whether the phone number exists
    - Tokens issued by djangorestframework-simplejwt
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.contrib.auth.models import update_last_login
from django.db import IntegrityError, transaction
from rest_framework_simplejwt.tokens import RefreshToken

from core.services import ServiceResult
from toolkit.validators import normalize_phone_number

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)


class AuthService:
    """
    Centralized authentication business logic.

    Usage:
        from authentication.services import AuthService

        result = AuthService.register("Duka Bora", "0712345678", "1234")
        if result.success:
            tokens = AuthService.issue_tokens(result.data)

        result = AuthService.authenticate("0712345678", "1234")
    """

    INVALID_CREDENTIALS_MESSAGE = "Invalid phone number or PIN"

    @staticmethod
    def register(business_name: str, phone_number: str, pin: str) -> ServiceResult[User]:
        """
        Create a new account on the trial tier.

        Args:
            business_name: Name of the shop
            phone_number: Phone number in any accepted format
            pin: 4-6 digit PIN (validated by the serializer)

        Returns:
            ServiceResult with the created User, or PHONE_NUMBER_TAKEN failure
        """
        from authentication.models import User

        phone_number = normalize_phone_number(phone_number)

        if User.objects.filter(phone_number=phone_number).exists():
            return ServiceResult.failure(
                "Phone number already registered",
                error_code="PHONE_NUMBER_TAKEN",
            )

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    phone_number=phone_number,
                    pin=pin,
                    business_name=business_name.strip(),
                    is_verified=True,
                )
        except IntegrityError:
            # Lost a race with a concurrent signup for the same number
            return ServiceResult.failure(
                "Phone number already registered",
                error_code="PHONE_NUMBER_TAKEN",
            )

        logger.info(
            "Account registered",
            extra={"user_id": str(user.id), "phone_number": user.phone_number},
        )
        return ServiceResult.success(user)

    @staticmethod
    def authenticate(phone_number: str, pin: str) -> ServiceResult[User]:
        """
        Verify a phone number and PIN pair.

        Updates last_login on success.

        Returns:
            ServiceResult with the User, or INVALID_CREDENTIALS failure
        """
        from authentication.models import User

        try:
            user = User.objects.get_by_phone_number(phone_number)
        except User.DoesNotExist:
            logger.info("Login failed: unknown phone number")
            return ServiceResult.failure(
                AuthService.INVALID_CREDENTIALS_MESSAGE,
                error_code="INVALID_CREDENTIALS",
            )

        if not user.is_active or not user.check_password(pin):
            logger.info(
                "Login failed: bad PIN or inactive account",
                extra={"user_id": str(user.id)},
            )
            return ServiceResult.failure(
                AuthService.INVALID_CREDENTIALS_MESSAGE,
                error_code="INVALID_CREDENTIALS",
            )

        update_last_login(None, user)
        logger.info("Login succeeded", extra={"user_id": str(user.id)})
        return ServiceResult.success(user)

    @staticmethod
    def issue_tokens(user: User) -> dict[str, str]:
        """
        Issue a JWT access/refresh pair for the user.

        The phone number is embedded as a claim so clients can display
        it without an extra request.
        """
        refresh = RefreshToken.for_user(user)
        refresh["phone_number"] = user.phone_number
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }

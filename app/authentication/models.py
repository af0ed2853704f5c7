"""
Authentication models.

This module defines the shop owner account:
- User: Custom user model keyed by phone number, authenticated with a PIN,
  carrying the business name and the current subscription tier

Related files:
    - managers.py: Custom user manager for phone-based creation
    - services.py: AuthService business logic

Security:
    - PINs hashed with Django's configured password hasher
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager
from core.model_mixins import UUIDPrimaryKeyMixin
from toolkit.validators import validate_phone_number


class SubscriptionTier(models.TextChoices):
    """
    Subscription tiers an account can hold.

    TRIAL is the default for new accounts. Paid tiers are set by the
    payment core after a completed subscription payment.
    """

    TRIAL = "trial", "Trial"
    BASIC = "basic", "Basic"
    PREMIUM = "premium", "Premium"


class User(UUIDPrimaryKeyMixin, AbstractBaseUser, PermissionsMixin):
    """
    Shop owner account using the phone number as the primary identifier.

    Fields:
        phone_number: Canonical 254XXXXXXXXX number, unique, used for login
        business_name: Display name of the shop
        subscription_status: Current tier (trial, basic, premium)
        is_verified: Whether the phone number has been verified
        is_active: Whether the account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the account was created
        updated_at: When the account was last modified

    The PIN is stored in the inherited ``password`` field.
    """

    phone_number = models.CharField(
        max_length=15,
        unique=True,
        db_index=True,
        validators=[validate_phone_number],
        help_text="Canonical phone number (primary identifier)",
    )
    business_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Name of the business operated by this account",
    )
    subscription_status = models.CharField(
        max_length=20,
        choices=SubscriptionTier.choices,
        default=SubscriptionTier.TRIAL,
        db_index=True,
        help_text="Current subscription tier",
    )

    is_verified = models.BooleanField(
        default=True,
        help_text="Whether the phone number has been verified",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the account was last modified",
    )

    USERNAME_FIELD = "phone_number"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.phone_number

    def get_full_name(self):
        return self.business_name or self.phone_number

    def get_short_name(self):
        return self.business_name or self.phone_number

    @property
    def has_paid_subscription(self) -> bool:
        """Whether the account holds a paid tier."""
        return self.subscription_status != SubscriptionTier.TRIAL

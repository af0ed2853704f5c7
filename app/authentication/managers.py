"""
Custom user manager for phone-number authentication.

This module provides the UserManager class that handles account creation
with the phone number as the primary identifier and a numeric PIN as the
password.

Related files:
    - models.py: User model that uses this manager

Security:
    - PINs are hashed via set_password() like any Django password
    - Phone numbers are stored in canonical 254XXXXXXXXX form
"""

from django.contrib.auth.models import BaseUserManager

from toolkit.validators import normalize_phone_number


class UserManager(BaseUserManager):
    """
    Custom manager for User model with phone-number authentication.

    Usage:
        # Create a shop owner account
        user = User.objects.create_user(
            phone_number="0712345678",
            pin="1234",
            business_name="Mama Mboga Stores",
        )

        # Create a superuser (admin site access)
        admin = User.objects.create_superuser(
            phone_number="254700000000",
            pin="9999",
        )
    """

    def create_user(self, phone_number, pin=None, **extra_fields):
        """
        Create and save an account with the given phone number and PIN.

        Args:
            phone_number: Phone number in any accepted format (required)
            pin: Numeric PIN, hashed before storage
            **extra_fields: Additional fields to set on the user

        Returns:
            User: The created user instance

        Raises:
            ValueError: If phone_number is not provided
        """
        if not phone_number:
            raise ValueError("The phone number must be set")

        phone_number = normalize_phone_number(phone_number)

        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)

        user = self.model(phone_number=phone_number, **extra_fields)

        if pin:
            user.set_password(pin)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, phone_number, pin=None, **extra_fields):
        """
        Create and save a superuser with the given phone number and PIN.

        Raises:
            ValueError: If is_staff or is_superuser is not True
        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_verified", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(phone_number, pin, **extra_fields)

    def get_by_phone_number(self, phone_number):
        """Look up an account by any accepted phone number format."""
        return self.get(phone_number=normalize_phone_number(phone_number))

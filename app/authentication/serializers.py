"""
Serializers for authentication.

This module provides DRF serializers for:
- User model (read operations)
- Signup (business name, phone number, PIN)
- Login (phone number, PIN)

Related files:
    - models.py: User model
    - views.py: Views that use these serializers

Security:
    - PIN fields are write-only
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from authentication.models import User
from toolkit.validators import validate_phone_number, validate_pin


def _run_django_validator(validator, value):
    try:
        validator(value)
    except DjangoValidationError as e:
        raise serializers.ValidationError(e.messages)
    return value


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model (read operations).

    Used for signup/login responses and the profile endpoint.
    """

    class Meta:
        model = User
        fields = [
            "id",
            "business_name",
            "phone_number",
            "subscription_status",
            "is_verified",
            "date_joined",
            "last_login",
        ]
        read_only_fields = fields


class SignupSerializer(serializers.Serializer):
    """Validate account registration input."""

    business_name = serializers.CharField(max_length=255)
    phone_number = serializers.CharField(max_length=20)
    pin = serializers.CharField(write_only=True, max_length=6)

    def validate_business_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Business name is required.")
        return value

    def validate_phone_number(self, value):
        return _run_django_validator(validate_phone_number, value)

    def validate_pin(self, value):
        return _run_django_validator(validate_pin, value)


class LoginSerializer(serializers.Serializer):
    """Validate login input. Credential checks happen in AuthService."""

    phone_number = serializers.CharField(max_length=20)
    pin = serializers.CharField(write_only=True, max_length=6)

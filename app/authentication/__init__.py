"""
Authentication application.

This app provides the shop owner account and its phone/PIN authentication.

Key components:
    - User model: Phone-number account with business name and subscription tier
    - AuthService: Registration, PIN login and JWT issuance

Usage:
    from authentication.models import User, SubscriptionTier
    from authentication.services import AuthService
"""

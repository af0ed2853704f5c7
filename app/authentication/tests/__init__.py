"""
Tests for authentication app.

This package contains test modules for:
- test_managers.py: UserManager phone-number account creation
- test_services.py: AuthService signup, login and token issuance
- test_views.py: API endpoint tests

Usage:
    pytest authentication/tests/
"""

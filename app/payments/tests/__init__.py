"""
Tests for payments app.

This package contains test modules for:
- test_state_transitions.py: PaymentRequest and AccountEffectDebt state machines
- test_tasks.py: Sandbox callback and account effect retry tasks
- test_views.py: Subscribe and status endpoints
- test_integration.py: Signup-to-upgrade journeys over HTTP
- test_migrations.py: Migrations match the models

Adapter, service and webhook tests live beside their packages.

Usage:
    pytest payments/
    pytest payments/tests/test_views.py
"""

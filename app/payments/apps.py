"""
Payments app configuration.

This app provides M-Pesa subscription payments:
- STK push initiation (live or sandbox-simulated)
- Callback ingestion and reconciliation
- Subscription tier upgrades with retried account effects
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

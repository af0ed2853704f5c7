"""
Payments app for M-Pesa subscription payments.

This app handles:
- Sending STK push requests for subscription plans
- Receiving and auditing provider callbacks
- Resolving each payment exactly once
- Upgrading the paying account's subscription tier

Related apps:
    - authentication: User model carrying subscription_status

Usage:
    from payments.services import SubscriptionPaymentService

    result = SubscriptionPaymentService().initiate("0712345678", "basic")

    from payments.webhooks.handlers import ingest_callback

    event = ingest_callback(payload)
"""

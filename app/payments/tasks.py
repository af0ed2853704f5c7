"""
Celery tasks for M-Pesa subscription payments.

This module provides async tasks for:
- Delivering simulated callbacks in sandbox mode
- Retrying account effects (tier upgrades) that failed after payment
- Periodic sweep of open account effect debts

Usage:
    from payments.tasks import simulate_sandbox_callback

    # Deliver a simulated success callback after 5 seconds
    simulate_sandbox_callback.apply_async(args=[correlation_id], countdown=5)

    # Process all due account effect debts (typically via celery-beat)
    from payments.tasks import retry_open_account_effects
    retry_open_account_effects.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.utils import timezone

from payments.adapters import build_sandbox_callback, is_sandbox_correlation_id
from payments.models import AccountEffectDebt, PaymentRequest
from payments.services.reconciler import PaymentReconciler
from payments.state_machines import AccountEffectDebtStatus
from payments.webhooks.handlers import ingest_callback

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

RETRY_BATCH_SIZE = 100


# =============================================================================
# Sandbox Tasks
# =============================================================================


@shared_task
def simulate_sandbox_callback(correlation_id: str) -> dict:
    """
    Deliver a simulated success callback for a sandbox payment.

    The callback goes through ingest_callback() exactly like a real
    provider delivery. Only sandbox-issued correlation ids are accepted,
    so this can never complete a live payment.

    Args:
        correlation_id: CheckoutRequestID issued by the sandbox gateway

    Returns:
        Dict with the simulation status
    """
    if not is_sandbox_correlation_id(correlation_id):
        logger.warning(
            "Refusing to simulate callback for non-sandbox payment",
            extra={"correlation_id": correlation_id},
        )
        return {"status": "rejected", "correlation_id": correlation_id}

    payment = PaymentRequest.objects.filter(correlation_id=correlation_id).first()
    if payment is None:
        logger.warning(
            "Sandbox payment not found",
            extra={"correlation_id": correlation_id},
        )
        return {"status": "not_found", "correlation_id": correlation_id}

    if payment.is_terminal:
        return {
            "status": "skipped",
            "correlation_id": correlation_id,
            "payment_status": payment.status,
        }

    payload = build_sandbox_callback(
        correlation_id=payment.correlation_id,
        provider_request_id=payment.provider_request_id,
        amount=payment.amount,
        phone_number=payment.phone_number,
    )
    event = ingest_callback(payload)

    logger.info(
        "Simulated sandbox callback delivered",
        extra={"correlation_id": correlation_id, "outcome": event.outcome},
    )
    return {
        "status": "delivered",
        "correlation_id": correlation_id,
        "outcome": event.outcome,
    }


# =============================================================================
# Account Effect Tasks
# =============================================================================


@shared_task(acks_late=True)
def retry_account_effect(debt_id: str) -> dict:
    """
    Retry one owed subscription upgrade.

    Args:
        debt_id: UUID of the AccountEffectDebt

    Returns:
        Dict with the debt status after this attempt
    """
    debt = PaymentReconciler().retry_account_effect(debt_id)
    if debt is None:
        logger.warning("Account effect debt not found", extra={"debt_id": debt_id})
        return {"status": "not_found", "debt_id": debt_id}

    return {
        "status": debt.status,
        "debt_id": str(debt.id),
        "attempts": debt.attempts,
    }


@shared_task
def retry_open_account_effects() -> dict:
    """
    Periodic task to retry due account effect debts.

    Finds OPEN debts whose next attempt is due and queues a retry for
    each. Scheduled via celery-beat every 5 minutes.

    Returns:
        Dict with count of debts queued for retry
    """
    due_debts = AccountEffectDebt.objects.filter(
        status=AccountEffectDebtStatus.OPEN,
        next_attempt_at__lte=timezone.now(),
    ).order_by("next_attempt_at")[:RETRY_BATCH_SIZE]

    queued_count = 0
    for debt in due_debts:
        try:
            retry_account_effect.delay(str(debt.id))
            queued_count += 1
        except Exception as e:
            logger.error(
                f"Failed to queue account effect retry: {e}",
                extra={"debt_id": str(debt.id)},
            )

    logger.info(
        f"Queued {queued_count} account effect debts for retry",
        extra={"queued_count": queued_count},
    )

    return {"queued_count": queued_count}

"""
Callback ingestion for M-Pesa STK-push results.

ingest_callback() is shared by the HTTP callback view and the sandbox
self-callback task, so simulated payments go through the same path as
real ones:

    1. Record a CallbackEvent with the raw payload
    2. Parse it into a CallbackOutcome
    3. Hand it to PaymentReconciler.resolve()
    4. Store what happened on the CallbackEvent

Nothing here raises for bookkeeping problems; callers always acknowledge
the provider.
"""

from __future__ import annotations

import logging
from typing import Any

from payments.exceptions import CallbackPayloadError
from payments.models import CallbackEvent
from payments.services.reconciler import PaymentReconciler, ResolutionOutcome
from payments.state_machines import CallbackEventOutcome
from payments.webhooks.parser import parse_stk_callback

logger = logging.getLogger(__name__)

RESOLUTION_TO_EVENT_OUTCOME = {
    ResolutionOutcome.APPLIED: CallbackEventOutcome.APPLIED,
    ResolutionOutcome.DUPLICATE: CallbackEventOutcome.DUPLICATE,
    ResolutionOutcome.CONFLICT: CallbackEventOutcome.CONFLICT,
    ResolutionOutcome.UNKNOWN: CallbackEventOutcome.UNKNOWN,
}


def _storable_payload(payload: Any) -> dict[str, Any]:
    if isinstance(payload, dict):
        return payload
    return {"raw": payload}


def ingest_callback(payload: Any, reconciler: PaymentReconciler | None = None) -> CallbackEvent:
    """
    Record and resolve one callback delivery.

    Args:
        payload: Decoded callback body (anything; invalid shapes are recorded)
        reconciler: Optional reconciler override

    Returns:
        The CallbackEvent with its outcome set

    Raises:
        DatabaseError: Only if the CallbackEvent itself cannot be stored
    """
    reconciler = reconciler or PaymentReconciler()
    event = CallbackEvent.objects.create(payload=_storable_payload(payload))

    try:
        outcome = parse_stk_callback(payload)
    except CallbackPayloadError as e:
        logger.warning(
            "Malformed M-Pesa callback",
            extra={"callback_event_id": str(event.id), "error": e.message, **e.details},
        )
        event.record_outcome(CallbackEventOutcome.INVALID, error_message=str(e))
        return event

    event.correlation_id = outcome.correlation_id
    event.result_code = outcome.result_code
    event.save(update_fields=["correlation_id", "result_code", "updated_at"])

    logger.info(
        "M-Pesa callback received",
        extra={
            "callback_event_id": str(event.id),
            "correlation_id": outcome.correlation_id,
            "result_code": outcome.result_code,
        },
    )

    try:
        result = reconciler.resolve(outcome.correlation_id, outcome)
    except Exception as e:
        logger.error(
            f"Callback processing failed: {type(e).__name__}",
            extra={
                "callback_event_id": str(event.id),
                "correlation_id": outcome.correlation_id,
            },
            exc_info=True,
        )
        event.record_outcome(CallbackEventOutcome.ERROR, error_message=str(e))
        return event

    event.record_outcome(
        RESOLUTION_TO_EVENT_OUTCOME[result.outcome],
        payment_request=result.payment_request,
    )
    return event

"""
Callback endpoint view for M-Pesa.

The provider treats any non-success response as "redeliver", so this
view acknowledges every delivery with HTTP 200, whatever happened while
processing it. Idempotency is enforced by the reconciler, not by
refusing deliveries.

Usage:
    # In urls.py
    from payments.webhooks.views import mpesa_callback

    urlpatterns = [
        path("mpesa/callback/", mpesa_callback, name="mpesa-callback"),
    ]
"""

from __future__ import annotations

import json
import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.webhooks.handlers import ingest_callback

logger = logging.getLogger(__name__)

ACKNOWLEDGEMENT = {"ResultCode": 0, "ResultDesc": "Accepted"}


@csrf_exempt
@require_POST
def mpesa_callback(request: HttpRequest) -> JsonResponse:
    """
    Receive an STK-push result from M-Pesa.

    Security:
    - CSRF exemption required for external callbacks
    - Only POST requests accepted
    - The body is untrusted; it is only used to look up a payment we
      created ourselves

    Returns:
        JsonResponse 200 {"ResultCode": 0, "ResultDesc": "Accepted"} for
        every delivery, including malformed bodies, unknown ids,
        conflicts and internal errors
    """
    try:
        payload = json.loads(request.body or b"null")
    except (ValueError, UnicodeDecodeError):
        logger.warning("M-Pesa callback body is not JSON")
        payload = request.body.decode("utf-8", errors="replace")

    try:
        event = ingest_callback(payload)
        logger.info(
            "M-Pesa callback acknowledged",
            extra={"callback_event_id": str(event.id), "outcome": event.outcome},
        )
    except Exception as e:
        # Still acknowledge; a redelivery would hit the same failure
        logger.error(
            f"Failed to ingest M-Pesa callback: {type(e).__name__}",
            exc_info=True,
        )

    return JsonResponse(ACKNOWLEDGEMENT, status=200)

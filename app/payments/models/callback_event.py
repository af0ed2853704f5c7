"""
CallbackEvent model for provider callback auditing.

Every delivery to the callback endpoint is stored, including duplicates
and unparseable bodies, together with what ingestion did with it.
Unlike PaymentRequest, correlation_id is not unique here: the provider
delivers at least once.

Usage:
    from payments.models import CallbackEvent

    event = CallbackEvent.objects.create(payload=body)
    ...
    event.record_outcome(CallbackEventOutcome.APPLIED, payment_request=payment)
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import CallbackEventOutcome


class CallbackEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    One callback delivery from the payment provider.

    Fields:
        correlation_id: CheckoutRequestID extracted from the payload, if any
        result_code: ResultCode extracted from the payload, if any
        payload: Raw JSON body (or the undecodable text under "raw")
        outcome: What ingestion did with this delivery
        payment_request: Matching payment, when one was found
        error_message: Details for invalid/error outcomes
        processed_at: When ingestion finished
    """

    correlation_id = models.CharField(
        max_length=100,
        blank=True,
        default="",
        db_index=True,
        help_text="CheckoutRequestID from the payload (not unique)",
    )

    result_code = models.IntegerField(
        null=True,
        blank=True,
        help_text="ResultCode from the payload",
    )

    payload = models.JSONField(
        default=dict,
        help_text="Raw callback body",
    )

    outcome = models.CharField(
        max_length=20,
        choices=CallbackEventOutcome.choices,
        default=CallbackEventOutcome.RECEIVED,
        db_index=True,
        help_text="What ingestion did with this delivery",
    )

    payment_request = models.ForeignKey(
        "payments.PaymentRequest",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="callback_events",
        help_text="Matching payment request, if the correlation id was known",
    )

    error_message = models.TextField(
        null=True,
        blank=True,
        help_text="Error details for invalid or failed processing",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When ingestion finished",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Callback Event"
        verbose_name_plural = "Callback Events"

    def __str__(self) -> str:
        return f"CallbackEvent({self.correlation_id or '-'}, {self.outcome})"

    def record_outcome(
        self,
        outcome: str,
        payment_request=None,
        error_message: str | None = None,
    ) -> None:
        """Store the ingestion outcome for this delivery."""
        self.outcome = outcome
        self.payment_request = payment_request
        self.error_message = error_message
        self.processed_at = timezone.now()
        self.save(
            update_fields=[
                "outcome",
                "payment_request",
                "error_message",
                "processed_at",
                "updated_at",
            ]
        )

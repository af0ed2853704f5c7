"""
AccountEffectDebt model for subscription upgrades owed to an account.

When a payment completes but the subscription tier update fails, the
payment stays COMPLETED and a debt row records the upgrade still owed.
Celery retries open debts with exponential backoff until they resolve or
run out of attempts.

Usage:
    from payments.models import AccountEffectDebt

    debt = AccountEffectDebt.objects.create(
        payment_request=payment,
        account=payment.account,
        target_tier=payment.purpose_reference,
        last_error="database is locked",
    )

    debt.resolve()
    debt.save()
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import AccountEffectDebtStatus

# Backoff between retry attempts, doubled per attempt
BASE_RETRY_DELAY_SECONDS = 60
MAX_RETRY_DELAY_SECONDS = 3600


class AccountEffectDebt(UUIDPrimaryKeyMixin, BaseModel):
    """
    A subscription upgrade that must still be applied.

    State Flow:
        OPEN -> RESOLVED
        OPEN -> ABANDONED (attempts exhausted)

    Fields:
        payment_request: Completed payment that owes the upgrade
        account: Account to upgrade
        target_tier: Tier to set
        status: Current FSM state
        attempts: Number of failed application attempts
        last_error: Error from the most recent attempt
        next_attempt_at: Earliest time for the next retry
        resolved_at: When the upgrade was finally applied
    """

    payment_request = models.OneToOneField(
        "payments.PaymentRequest",
        on_delete=models.CASCADE,
        related_name="account_effect_debt",
        help_text="Completed payment that owes the upgrade",
    )

    account = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="account_effect_debts",
        help_text="Account to upgrade",
    )

    target_tier = models.CharField(
        max_length=20,
        help_text="Subscription tier to apply",
    )

    status = FSMField(
        default=AccountEffectDebtStatus.OPEN,
        choices=AccountEffectDebtStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the debt (managed by FSM)",
    )

    attempts = models.PositiveSmallIntegerField(
        default=1,
        help_text="Number of failed application attempts",
    )

    last_error = models.TextField(
        null=True,
        blank=True,
        help_text="Error from the most recent attempt",
    )

    next_attempt_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Earliest time for the next retry",
    )

    resolved_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the upgrade was applied",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Account Effect Debt"
        verbose_name_plural = "Account Effect Debts"
        indexes = [
            models.Index(
                fields=["status", "next_attempt_at"],
                name="payments_ac_status_8d4f1a_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"AccountEffectDebt({self.account_id} -> {self.target_tier}, {self.status})"

    @staticmethod
    def retry_delay(attempts: int) -> timedelta:
        """Exponential backoff for the given number of failed attempts."""
        seconds = min(BASE_RETRY_DELAY_SECONDS * (2 ** max(attempts - 1, 0)), MAX_RETRY_DELAY_SECONDS)
        return timedelta(seconds=seconds)

    def schedule_retry(self, error: str) -> None:
        """Record another failed attempt and push next_attempt_at out."""
        self.attempts += 1
        self.last_error = error
        self.next_attempt_at = timezone.now() + self.retry_delay(self.attempts)

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=AccountEffectDebtStatus.OPEN,
        target=AccountEffectDebtStatus.RESOLVED,
    )
    def resolve(self):
        """Transition: OPEN -> RESOLVED"""
        self.resolved_at = timezone.now()
        self.next_attempt_at = None

    @transition(
        field=status,
        source=AccountEffectDebtStatus.OPEN,
        target=AccountEffectDebtStatus.ABANDONED,
    )
    def abandon(self, error: str | None = None):
        """
        Transition: OPEN -> ABANDONED

        The upgrade needs manual attention from an operator.
        """
        if error:
            self.last_error = error
        self.next_attempt_at = None

"""
PaymentRequest model for M-Pesa STK-push payments.

A PaymentRequest is created in PENDING state right after the provider
accepts a push request, keyed by the provider correlation id
(CheckoutRequestID). The asynchronous provider callback moves it to
COMPLETED or FAILED exactly once.

Usage:
    from payments.models import PaymentRequest

    payment = PaymentRequest.objects.create(
        account=user,
        provider_request_id="29115-34620561-1",
        correlation_id="ws_CO_191220191020363925",
        phone_number="254712345678",
        amount=30,
        purpose_reference="basic",
    )

    # State transitions using django-fsm
    payment.complete(receipt_number="NLJ7RT61SV", paid_amount=30)
    payment.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import PaymentRequestStatus


class PaymentRequest(ConcurrentTransitionMixin, UUIDPrimaryKeyMixin, BaseModel):
    """
    One push payment issued to a customer's phone.

    ConcurrentTransitionMixin turns every save into a conditional UPDATE
    on the status read at load time, so two workers resolving the same
    row cannot both win.

    State Flow:
        PENDING -> COMPLETED
        PENDING -> FAILED

    Fields:
        account: Account whose subscription this payment pays for
        provider_request_id: Provider MerchantRequestID
        correlation_id: Provider CheckoutRequestID, the callback join key
        phone_number: Canonical payer number
        amount: Amount requested, whole KES
        purpose_reference: Plan id the payment is for (e.g. "basic")
        description: Transaction description sent to the provider
        status: Current FSM state
        provider_receipt_number: M-Pesa receipt, set only on completion
        provider_transaction_timestamp: When the provider settled the payment
        paid_amount: Amount the provider reports as paid
        result_code: Provider ResultCode of the resolving callback
        result_description: Provider ResultDesc of the resolving callback
        resolved_at: When the callback resolved this payment
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    account = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payment_requests",
        help_text="Account whose subscription this payment pays for",
    )

    # ==========================================================================
    # Provider Identifiers
    # ==========================================================================

    provider_request_id = models.CharField(
        max_length=100,
        help_text="Provider MerchantRequestID",
    )

    correlation_id = models.CharField(
        max_length=100,
        unique=True,
        db_index=True,
        help_text="Provider CheckoutRequestID - unique callback join key",
    )

    # ==========================================================================
    # Request Details
    # ==========================================================================

    phone_number = models.CharField(
        max_length=15,
        help_text="Canonical payer phone number (254XXXXXXXXX)",
    )

    amount = models.PositiveIntegerField(
        help_text="Requested amount in whole KES",
    )

    purpose_reference = models.CharField(
        max_length=50,
        help_text="Subscription plan this payment is for",
    )

    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Transaction description sent to the provider",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PaymentRequestStatus.PENDING,
        choices=PaymentRequestStatus.choices,
        db_index=True,
        protected=True,  # Prevent direct assignment outside transitions
        help_text="Current state of the payment (managed by FSM)",
    )

    # ==========================================================================
    # Resolution Details (set by the callback)
    # ==========================================================================

    provider_receipt_number = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        help_text="M-Pesa receipt number (completed payments only)",
    )

    provider_transaction_timestamp = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the provider settled the payment",
    )

    paid_amount = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Amount the provider reports as paid",
    )

    result_code = models.IntegerField(
        null=True,
        blank=True,
        help_text="Provider ResultCode of the resolving callback",
    )

    result_description = models.TextField(
        null=True,
        blank=True,
        help_text="Provider ResultDesc of the resolving callback",
    )

    resolved_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the callback resolved this payment",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Request"
        verbose_name_plural = "Payment Requests"
        indexes = [
            models.Index(
                fields=["account", "status"],
                name="payments_pa_account_5c1e2b_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="payment_request_amount_positive",
            ),
            models.CheckConstraint(
                condition=(
                    Q(
                        status=PaymentRequestStatus.COMPLETED,
                        provider_receipt_number__isnull=False,
                    )
                    | (
                        ~Q(status=PaymentRequestStatus.COMPLETED)
                        & Q(provider_receipt_number__isnull=True)
                    )
                ),
                name="payment_request_receipt_iff_completed",
            ),
        ]

    def __str__(self) -> str:
        return f"PaymentRequest({self.correlation_id}, {self.status}, KES {self.amount})"

    @property
    def is_terminal(self) -> bool:
        """Whether the payment has been resolved."""
        return self.status in PaymentRequestStatus.terminal_states()

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PaymentRequestStatus.PENDING,
        target=PaymentRequestStatus.COMPLETED,
    )
    def complete(
        self,
        receipt_number: str,
        transaction_timestamp=None,
        paid_amount: int | None = None,
        result_code: int = 0,
        result_description: str | None = None,
    ):
        """
        Record a successful payment.

        Transition: PENDING -> COMPLETED

        Args:
            receipt_number: M-Pesa receipt number (required)
            transaction_timestamp: Provider settlement time
            paid_amount: Amount the provider reports as paid
            result_code: Provider ResultCode (0 on success)
            result_description: Provider ResultDesc
        """
        if not receipt_number:
            raise ValueError("receipt_number is required to complete a payment")

        self.provider_receipt_number = receipt_number
        self.provider_transaction_timestamp = transaction_timestamp
        self.paid_amount = paid_amount
        self.result_code = result_code
        self.result_description = result_description
        self.resolved_at = timezone.now()

    @transition(
        field=status,
        source=PaymentRequestStatus.PENDING,
        target=PaymentRequestStatus.FAILED,
    )
    def fail(self, result_code: int | None = None, result_description: str | None = None):
        """
        Record a failed or cancelled payment.

        Transition: PENDING -> FAILED

        Args:
            result_code: Provider ResultCode (e.g. 1032 cancelled by user)
            result_description: Provider ResultDesc
        """
        self.result_code = result_code
        self.result_description = result_description
        self.resolved_at = timezone.now()

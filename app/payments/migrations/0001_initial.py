# Generated manually - M-Pesa payment requests, callback audit and account effect debts

import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentRequest",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "provider_request_id",
                    models.CharField(help_text="Provider MerchantRequestID", max_length=100),
                ),
                (
                    "correlation_id",
                    models.CharField(
                        db_index=True,
                        help_text="Provider CheckoutRequestID - unique callback join key",
                        max_length=100,
                        unique=True,
                    ),
                ),
                (
                    "phone_number",
                    models.CharField(
                        help_text="Canonical payer phone number (254XXXXXXXXX)",
                        max_length=15,
                    ),
                ),
                (
                    "amount",
                    models.PositiveIntegerField(help_text="Requested amount in whole KES"),
                ),
                (
                    "purpose_reference",
                    models.CharField(
                        help_text="Subscription plan this payment is for",
                        max_length=50,
                    ),
                ),
                (
                    "description",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Transaction description sent to the provider",
                        max_length=255,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current state of the payment (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "provider_receipt_number",
                    models.CharField(
                        blank=True,
                        help_text="M-Pesa receipt number (completed payments only)",
                        max_length=50,
                        null=True,
                    ),
                ),
                (
                    "provider_transaction_timestamp",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the provider settled the payment",
                        null=True,
                    ),
                ),
                (
                    "paid_amount",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Amount the provider reports as paid",
                        null=True,
                    ),
                ),
                (
                    "result_code",
                    models.IntegerField(
                        blank=True,
                        help_text="Provider ResultCode of the resolving callback",
                        null=True,
                    ),
                ),
                (
                    "result_description",
                    models.TextField(
                        blank=True,
                        help_text="Provider ResultDesc of the resolving callback",
                        null=True,
                    ),
                ),
                (
                    "resolved_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the callback resolved this payment",
                        null=True,
                    ),
                ),
                (
                    "account",
                    models.ForeignKey(
                        help_text="Account whose subscription this payment pays for",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment Request",
                "verbose_name_plural": "Payment Requests",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["account", "status"],
                        name="payments_pa_account_5c1e2b_idx",
                    )
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="payment_request_amount_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("provider_receipt_number__isnull", False),
                                ("status", "completed"),
                            ),
                            models.Q(
                                models.Q(("status", "completed"), _negated=True),
                                ("provider_receipt_number__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="payment_request_receipt_iff_completed",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CallbackEvent",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "correlation_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="CheckoutRequestID from the payload (not unique)",
                        max_length=100,
                    ),
                ),
                (
                    "result_code",
                    models.IntegerField(
                        blank=True,
                        help_text="ResultCode from the payload",
                        null=True,
                    ),
                ),
                (
                    "payload",
                    models.JSONField(default=dict, help_text="Raw callback body"),
                ),
                (
                    "outcome",
                    models.CharField(
                        choices=[
                            ("received", "Received"),
                            ("applied", "Applied"),
                            ("duplicate", "Duplicate"),
                            ("conflict", "Conflict"),
                            ("unknown", "Unknown"),
                            ("invalid", "Invalid"),
                            ("error", "Error"),
                        ],
                        db_index=True,
                        default="received",
                        help_text="What ingestion did with this delivery",
                        max_length=20,
                    ),
                ),
                (
                    "error_message",
                    models.TextField(
                        blank=True,
                        help_text="Error details for invalid or failed processing",
                        null=True,
                    ),
                ),
                (
                    "processed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When ingestion finished",
                        null=True,
                    ),
                ),
                (
                    "payment_request",
                    models.ForeignKey(
                        blank=True,
                        help_text="Matching payment request, if the correlation id was known",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="callback_events",
                        to="payments.paymentrequest",
                    ),
                ),
            ],
            options={
                "verbose_name": "Callback Event",
                "verbose_name_plural": "Callback Events",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="AccountEffectDebt",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "target_tier",
                    models.CharField(help_text="Subscription tier to apply", max_length=20),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("open", "Open"),
                            ("resolved", "Resolved"),
                            ("abandoned", "Abandoned"),
                        ],
                        db_index=True,
                        default="open",
                        help_text="Current state of the debt (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "attempts",
                    models.PositiveSmallIntegerField(
                        default=1,
                        help_text="Number of failed application attempts",
                    ),
                ),
                (
                    "last_error",
                    models.TextField(
                        blank=True,
                        help_text="Error from the most recent attempt",
                        null=True,
                    ),
                ),
                (
                    "next_attempt_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        help_text="Earliest time for the next retry",
                        null=True,
                    ),
                ),
                (
                    "resolved_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the upgrade was applied",
                        null=True,
                    ),
                ),
                (
                    "account",
                    models.ForeignKey(
                        help_text="Account to upgrade",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="account_effect_debts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "payment_request",
                    models.OneToOneField(
                        help_text="Completed payment that owes the upgrade",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="account_effect_debt",
                        to="payments.paymentrequest",
                    ),
                ),
            ],
            options={
                "verbose_name": "Account Effect Debt",
                "verbose_name_plural": "Account Effect Debts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "next_attempt_at"],
                        name="payments_ac_status_8d4f1a_idx",
                    )
                ],
            },
        ),
    ]

"""
Payment admin configuration.

Registers the M-Pesa payment models with the Django admin. Payment and
debt state is managed by the service layer, so state fields are
read-only here.
"""

from django.contrib import admin

from payments.models import AccountEffectDebt, CallbackEvent, PaymentRequest


@admin.register(PaymentRequest)
class PaymentRequestAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentRequest.

    Provides visibility into push payments and how they resolved.
    """

    list_display = [
        "correlation_id",
        "account",
        "amount",
        "purpose_reference",
        "status",
        "provider_receipt_number",
        "created_at",
    ]
    list_filter = ["status", "purpose_reference", "created_at"]
    search_fields = [
        "correlation_id",
        "provider_request_id",
        "provider_receipt_number",
        "phone_number",
        "account__phone_number",
    ]
    readonly_fields = [
        "id",
        "status",
        "provider_receipt_number",
        "provider_transaction_timestamp",
        "paid_amount",
        "result_code",
        "result_description",
        "resolved_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "account", "status"),
            },
        ),
        (
            "Request",
            {
                "fields": (
                    "correlation_id",
                    "provider_request_id",
                    "phone_number",
                    "amount",
                    "purpose_reference",
                    "description",
                ),
            },
        ),
        (
            "Resolution",
            {
                "fields": (
                    "provider_receipt_number",
                    "provider_transaction_timestamp",
                    "paid_amount",
                    "result_code",
                    "result_description",
                    "resolved_at",
                ),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


@admin.register(CallbackEvent)
class CallbackEventAdmin(admin.ModelAdmin):
    """Admin configuration for CallbackEvent (audit trail, read-only)."""

    list_display = [
        "correlation_id",
        "result_code",
        "outcome",
        "payment_request",
        "processed_at",
        "created_at",
    ]
    list_filter = ["outcome", "created_at"]
    search_fields = ["correlation_id"]
    readonly_fields = [
        "id",
        "correlation_id",
        "result_code",
        "payload",
        "outcome",
        "payment_request",
        "error_message",
        "processed_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False


@admin.register(AccountEffectDebt)
class AccountEffectDebtAdmin(admin.ModelAdmin):
    """Admin configuration for AccountEffectDebt."""

    list_display = [
        "account",
        "target_tier",
        "status",
        "attempts",
        "next_attempt_at",
        "created_at",
    ]
    list_filter = ["status", "target_tier"]
    search_fields = ["account__phone_number", "payment_request__correlation_id"]
    readonly_fields = [
        "id",
        "payment_request",
        "account",
        "target_tier",
        "status",
        "attempts",
        "last_error",
        "resolved_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

"""
Subscription payment initiation.

SubscriptionPaymentService turns "upgrade this phone number to plan X"
into an STK push and a PENDING PaymentRequest. Expected failures come
back as ServiceResult failures with these error codes:

    INVALID_PHONE_NUMBER       phone number not in Kenyan mobile format
    INVALID_PLAN               plan id not in the price table
    ACCOUNT_NOT_FOUND          no active account for the phone number
    PAYMENT_INITIATION_FAILED  provider rejected the push request
    UPSTREAM_AUTH_FAILED       provider rejected our credentials (retry-safe)
    UPSTREAM_UNAVAILABLE       provider unreachable or timed out (retry-safe)

Usage:
    from payments.services import SubscriptionPaymentService

    result = SubscriptionPaymentService().initiate("0712345678", "basic")
    if result.success:
        receipt = result.data
        print(receipt.correlation_id, receipt.customer_message)
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction

from core.exceptions import NotFoundError
from core.services import BaseService, ServiceResult
from payments.adapters import get_payment_gateway
from payments.exceptions import PaymentValidationError, UpstreamError
from payments.services.reconciler import PaymentReconciler, PaymentStatusSnapshot
from toolkit.validators import is_valid_phone_number, normalize_phone_number

# Plan prices in whole KES
DEFAULT_SUBSCRIPTION_PLANS = {
    "basic": 30,
    "premium": 50,
}

DEFAULT_SANDBOX_CALLBACK_DELAY_SECONDS = 5


@dataclass(frozen=True)
class InitiationReceipt:
    """What the caller gets back after a push request was sent."""

    correlation_id: str
    customer_message: str
    amount: int
    plan_id: str


def get_subscription_plans() -> dict[str, int]:
    """Return the plan price table, overridable via MPESA_SUBSCRIPTION_PLANS."""
    return getattr(settings, "MPESA_SUBSCRIPTION_PLANS", None) or DEFAULT_SUBSCRIPTION_PLANS


class SubscriptionPaymentService(BaseService):
    """
    Entry point for paying for a subscription tier.

    Collaborators are injected for tests; by default the configured
    gateway and a fresh reconciler are used.
    """

    def __init__(self, gateway=None, reconciler: PaymentReconciler | None = None):
        self.gateway = gateway or get_payment_gateway()
        self.reconciler = reconciler or PaymentReconciler()

    def initiate(self, phone_number: str, plan_id: str) -> ServiceResult[InitiationReceipt]:
        """
        Send a push payment for a plan to the account's phone.

        Args:
            phone_number: Account phone number in any accepted format
            plan_id: Plan identifier ("basic", "premium")

        Returns:
            ServiceResult with an InitiationReceipt, or a failure carrying
            one of the module's error codes
        """
        logger = self.get_logger()

        if not is_valid_phone_number(phone_number):
            return ServiceResult.from_exception(
                PaymentValidationError(
                    "Invalid phone number format. Use 254XXXXXXXXX or 07XXXXXXXX",
                    error_code="INVALID_PHONE_NUMBER",
                )
            )

        amount = get_subscription_plans().get(plan_id)
        if amount is None:
            return ServiceResult.from_exception(
                PaymentValidationError("Invalid plan ID", error_code="INVALID_PLAN")
            )

        phone = normalize_phone_number(phone_number)

        User = get_user_model()
        account = User.objects.filter(phone_number=phone, is_active=True).first()
        if account is None:
            return ServiceResult.from_exception(
                NotFoundError("User not found", error_code="ACCOUNT_NOT_FOUND")
            )

        description = f"Subscription: {plan_id} plan"

        try:
            push_result = self.gateway.initiate_push_payment(
                phone_number=phone,
                amount=amount,
                account_reference=f"SUB-{plan_id.upper()}",
                description=description,
            )
        except UpstreamError as e:
            logger.error(
                "Subscription payment could not reach provider",
                extra={
                    "account_id": str(account.pk),
                    "plan_id": plan_id,
                    "error_code": e.error_code,
                },
            )
            return ServiceResult.from_exception(e)

        if not push_result.success:
            logger.warning(
                "Subscription payment rejected by provider",
                extra={
                    "account_id": str(account.pk),
                    "plan_id": plan_id,
                    "provider_message": push_result.error_message,
                },
            )
            return ServiceResult.failure(
                push_result.error_message or "Failed to initiate payment",
                error_code="PAYMENT_INITIATION_FAILED",
            )

        with self.atomic():
            payment = self.reconciler.create_pending(
                account=account,
                push_result=push_result,
                phone_number=phone,
                amount=amount,
                purpose_reference=plan_id,
                description=description,
            )
            if self.gateway.is_simulated:
                self._schedule_sandbox_callback(payment.correlation_id)

        return ServiceResult.success(
            InitiationReceipt(
                correlation_id=payment.correlation_id,
                customer_message=push_result.customer_facing_message or "",
                amount=amount,
                plan_id=plan_id,
            )
        )

    def status(self, correlation_id: str) -> ServiceResult[PaymentStatusSnapshot]:
        """Delegate to the reconciler's status check."""
        return self.reconciler.check_status(correlation_id)

    def _schedule_sandbox_callback(self, correlation_id: str) -> None:
        from payments.tasks import simulate_sandbox_callback

        delay = getattr(
            settings,
            "MPESA_SANDBOX_CALLBACK_DELAY_SECONDS",
            DEFAULT_SANDBOX_CALLBACK_DELAY_SECONDS,
        )
        self.get_logger().info(
            "Scheduling simulated callback",
            extra={"correlation_id": correlation_id, "countdown": delay},
        )
        transaction.on_commit(
            partial(
                simulate_sandbox_callback.apply_async,
                args=[correlation_id],
                countdown=delay,
            )
        )

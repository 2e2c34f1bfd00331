"""
Plan activation: applies a verified payment to the accounts it pays for.

Three flows, keyed by the order's ``user_type``:

* ``student_platform_plan``: the student's tier and expiry.
* ``teacher_platform_plan``: the teacher's tier and content plan quota.
* ``student_teacher_plan``: subscription record, enrollment on both sides,
  and the teacher's wallet credit.

Every attempt is tracked by a ``PlanActivation`` row keyed by the gateway
payment id (pending -> applying -> done | failed). The mutations of one
attempt commit together or not at all, and each one is idempotent on the
payment id, so an attempt can be retried blindly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Callable, Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.authentication.models import User
from apps.notifications.tasks import notify_plan_activated
from apps.plans.catalog import PlatformPlan, commission_rate_for_tier, get_student_plan, get_teacher_plan
from apps.plans.models import TeacherContentPlan
from apps.wallet.calculator import net_teacher_share
from apps.wallet.models import WalletLedgerEntry
from apps.wallet.services import credit_wallet
from core.exceptions import ActivationContextError, ActivationFailed, TokenError

from .intents import STUDENT_PLATFORM_PLAN, STUDENT_TEACHER_PLAN, TEACHER_PLATFORM_PLAN, PlanOrder
from .models import PlanActivation, SubscriptionRecord

logger = logging.getLogger(__name__)


@dataclass
class ActivationRequest:
    intent: PlanOrder
    gross_amount: Decimal
    gateway: str
    gateway_payment_id: str
    gateway_order_id: str = ""


@dataclass
class ActivationContext:
    user: User
    platform_plan: Optional[PlatformPlan] = None
    teacher: Optional[User] = None
    content_plan: Optional[TeacherContentPlan] = None


@dataclass
class ActivationOutcome:
    user_type: str
    plan_id: str
    message: str
    already_applied: bool = False
    subscription: Optional[SubscriptionRecord] = None
    wallet_entry: Optional[WalletLedgerEntry] = None


class _AlreadyApplied(Exception):
    pass


def plan_validity() -> timedelta:
    return timedelta(days=settings.PLAN_VALIDITY_DAYS)


def _get_user(user_id, role: str | None = None) -> User | None:
    try:
        qs = User.objects.filter(pk=user_id, is_active=True)
        if role:
            qs = qs.filter(role=role)
        return qs.first()
    except (DjangoValidationError, ValueError):
        return None


def load_context(intent: PlanOrder) -> ActivationContext:
    """
    Resolve every record the flow needs. Raises ActivationContextError before
    anything is written when the intent cannot be applied.
    """
    if intent.user_type == STUDENT_PLATFORM_PLAN:
        plan = get_student_plan(intent.plan_id)
        if plan is None:
            raise ActivationContextError(f"Unknown student plan: {intent.plan_id}")
        user = _get_user(intent.user_id, role="student")
        if user is None:
            raise ActivationContextError("Student account not found.")
        return ActivationContext(user=user, platform_plan=plan)

    if intent.user_type == TEACHER_PLATFORM_PLAN:
        plan = get_teacher_plan(intent.plan_id)
        if plan is None:
            raise ActivationContextError(f"Unknown teacher plan: {intent.plan_id}")
        user = _get_user(intent.user_id, role="teacher")
        if user is None:
            raise ActivationContextError("Teacher account not found.")
        return ActivationContext(user=user, platform_plan=plan)

    if intent.user_type == STUDENT_TEACHER_PLAN:
        if not intent.teacher_id_for_plan:
            raise ActivationContextError("Teacher id is required for a teacher plan subscription.")
        student = _get_user(intent.user_id, role="student")
        if student is None:
            raise ActivationContextError("Student account not found.")
        teacher = _get_user(intent.teacher_id_for_plan, role="teacher")
        if teacher is None:
            raise ActivationContextError("Teacher account not found.")
        try:
            content_plan = TeacherContentPlan.objects.filter(pk=intent.plan_id, teacher=teacher).first()
        except (DjangoValidationError, ValueError):
            content_plan = None
        if content_plan is None:
            raise ActivationContextError("Content plan not found for this teacher.")
        if not content_plan.is_active:
            raise ActivationContextError("This content plan is no longer available.")
        return ActivationContext(user=student, teacher=teacher, content_plan=content_plan)

    raise ActivationContextError(f"Unknown user type: {intent.user_type}")


def _activate_student_platform_plan(ctx: ActivationContext, request: ActivationRequest) -> ActivationOutcome:
    plan = ctx.platform_plan
    student = User.objects.select_for_update().get(pk=ctx.user.pk)
    student.subscription_tier = plan.id
    # Re-activation restarts the validity window from today.
    student.subscription_expires_at = timezone.now() + plan_validity()
    student.save(update_fields=["subscription_tier", "subscription_expires_at", "updated_at"])
    logger.info("Student %s activated on plan %s until %s", student.pk, plan.id, student.subscription_expires_at)
    return ActivationOutcome(
        user_type=request.intent.user_type,
        plan_id=plan.id,
        message=f'Plan "{plan.id}" activated successfully!',
    )


def _activate_teacher_platform_plan(ctx: ActivationContext, request: ActivationRequest) -> ActivationOutcome:
    plan = ctx.platform_plan
    teacher = User.objects.select_for_update().get(pk=ctx.user.pk)
    teacher.teacher_subscription_tier = plan.id
    teacher.max_content_plans_allowed = plan.max_content_plans
    teacher.save(update_fields=["teacher_subscription_tier", "max_content_plans_allowed", "updated_at"])
    logger.info("Teacher %s upgraded to plan %s (max plans %s)", teacher.pk, plan.id, plan.max_content_plans)
    return ActivationOutcome(
        user_type=request.intent.user_type,
        plan_id=plan.id,
        message=f"Successfully upgraded to {plan.id} plan!",
    )


def _activate_teacher_content_plan(ctx: ActivationContext, request: ActivationRequest) -> ActivationOutcome:
    student, teacher, plan = ctx.user, ctx.teacher, ctx.content_plan
    gross = Decimal(request.gross_amount)
    commission_rate = commission_rate_for_tier(teacher.teacher_subscription_tier)
    net = net_teacher_share(gross, commission_rate)
    now = timezone.now()

    subscription, created = SubscriptionRecord.objects.get_or_create(
        gateway_payment_id=request.gateway_payment_id,
        defaults={
            "student": student,
            "teacher": teacher,
            "plan": plan,
            "payment_status": "successful",
            "starts_at": now,
            "expires_at": now + plan_validity(),
            "amount_paid": gross,
            "net_teacher_credit": net,
            "referral_code_used": request.intent.referral_code_used,
            "gateway": request.gateway,
            "gateway_order_id": request.gateway_order_id,
        },
    )
    if not created:
        logger.info("Subscription %s already recorded for payment %s", subscription.pk, request.gateway_payment_id)

    # add() is a set union; existing links are left alone.
    student.subscribed_teachers.add(teacher)
    plan.enrolled_students.add(student)

    entry, _ = credit_wallet(
        teacher,
        subscription.net_teacher_credit,
        source=subscription,
        description=f"Subscription to {plan.name} by {student.email}",
        gross_amount=subscription.amount_paid,
        commission_rate=commission_rate,
    )
    return ActivationOutcome(
        user_type=request.intent.user_type,
        plan_id=str(plan.pk),
        message=f'You are now enrolled in "{plan.name}".',
        subscription=subscription,
        wallet_entry=entry,
    )


FLOWS: dict[str, Callable[[ActivationContext, ActivationRequest], ActivationOutcome]] = {
    STUDENT_PLATFORM_PLAN: _activate_student_platform_plan,
    TEACHER_PLATFORM_PLAN: _activate_teacher_platform_plan,
    STUDENT_TEACHER_PLAN: _activate_teacher_content_plan,
}


def _get_or_create_attempt(request: ActivationRequest) -> PlanActivation:
    intent = request.intent
    defaults = {
        "gateway_order_id": request.gateway_order_id,
        "user_id_claimed": intent.user_id,
        "user_type": intent.user_type,
        "plan_id": intent.plan_id,
        "amount": request.gross_amount,
    }
    try:
        with transaction.atomic():
            attempt, _ = PlanActivation.objects.get_or_create(
                gateway=request.gateway,
                gateway_payment_id=request.gateway_payment_id,
                defaults=defaults,
            )
    except IntegrityError:
        attempt = PlanActivation.objects.get(gateway=request.gateway, gateway_payment_id=request.gateway_payment_id)
    return attempt


def _set_status(attempt: PlanActivation, status: str, reason: str = "") -> None:
    # Never move an attempt out of "done".
    PlanActivation.objects.filter(pk=attempt.pk).exclude(status=PlanActivation.STATUS_DONE).update(
        status=status,
        failure_reason=reason,
        updated_at=timezone.now(),
    )


def activate_plan(
    request: ActivationRequest,
    finalize: Callable[[], None] | None = None,
) -> ActivationOutcome:
    """
    Apply ``request`` exactly once per gateway payment id.

    ``finalize`` runs as the last step inside the mutation transaction (token
    redemption flips its ``used`` flag there); if it raises, nothing of this
    attempt is committed.
    """
    intent = request.intent
    attempt = _get_or_create_attempt(request)
    if attempt.status == PlanActivation.STATUS_DONE:
        logger.info("Activation for %s:%s already done", request.gateway, request.gateway_payment_id)
        return ActivationOutcome(
            user_type=intent.user_type,
            plan_id=intent.plan_id,
            message="Plan already activated for this payment.",
            already_applied=True,
        )

    try:
        ctx = load_context(intent)
    except ActivationContextError as exc:
        _set_status(attempt, PlanActivation.STATUS_FAILED, str(exc.detail))
        raise

    _set_status(attempt, PlanActivation.STATUS_APPLYING)
    try:
        with transaction.atomic():
            locked = PlanActivation.objects.select_for_update().get(pk=attempt.pk)
            if locked.status == PlanActivation.STATUS_DONE:
                raise _AlreadyApplied()
            outcome = FLOWS[intent.user_type](ctx, request)
            if finalize is not None:
                finalize()
            locked.status = PlanActivation.STATUS_DONE
            locked.attempts += 1
            locked.failure_reason = ""
            locked.completed_at = timezone.now()
            locked.save(update_fields=["status", "attempts", "failure_reason", "completed_at", "updated_at"])
            transaction.on_commit(
                lambda: notify_plan_activated.delay(str(ctx.user.pk), outcome.message)
            )
    except _AlreadyApplied:
        return ActivationOutcome(
            user_type=intent.user_type,
            plan_id=intent.plan_id,
            message="Plan already activated for this payment.",
            already_applied=True,
        )
    except TokenError:
        # Raised by ``finalize`` when the token was taken concurrently.
        _set_status(attempt, PlanActivation.STATUS_PENDING)
        raise
    except Exception as exc:
        logger.exception(
            "Activation failed for %s:%s (%s, plan %s)",
            request.gateway,
            request.gateway_payment_id,
            intent.user_type,
            intent.plan_id,
        )
        _set_status(attempt, PlanActivation.STATUS_FAILED, str(exc))
        raise ActivationFailed(f"Plan activation failed: {exc}") from exc

    logger.info("Activation %s:%s done (%s)", request.gateway, request.gateway_payment_id, intent.user_type)
    return outcome

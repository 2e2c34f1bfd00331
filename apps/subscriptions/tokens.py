from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import TokenAlreadyUsed, TokenExpired, TokenNotFound

from .activation import ActivationContext, ActivationOutcome, ActivationRequest, activate_plan
from .intents import PlanOrder, build_intent
from .models import ActivationToken

logger = logging.getLogger(__name__)


def generate_token() -> str:
    return secrets.token_urlsafe(32)


def issue_token(
    intent: PlanOrder,
    context: ActivationContext,
    original_amount: Decimal,
    gateway: str,
    gateway_order_id: str,
    gateway_payment_id: str = "",
) -> ActivationToken:
    """
    Record a verified payment for later redemption.

    A gateway that posts the same transaction twice gets the token issued the
    first time.
    """
    existing = ActivationToken.objects.filter(gateway=gateway, gateway_order_id=gateway_order_id).first()
    if existing is not None:
        logger.info("Activation token already issued for %s:%s", gateway, gateway_order_id)
        return existing

    try:
        with transaction.atomic():
            token = ActivationToken.objects.create(
                token=generate_token(),
                user=context.user,
                plan_id_to_activate=intent.plan_id,
                user_type=intent.user_type,
                teacher_for_plan=context.teacher,
                original_amount=original_amount,
                referral_code_used=intent.referral_code_used,
                gateway=gateway,
                gateway_order_id=gateway_order_id,
                gateway_payment_id=gateway_payment_id,
                expires_at=timezone.now() + timedelta(hours=settings.ACTIVATION_TOKEN_TTL_HOURS),
            )
    except IntegrityError:
        return ActivationToken.objects.get(gateway=gateway, gateway_order_id=gateway_order_id)

    logger.info(
        "Issued activation token %s... for %s:%s (%s)",
        token.token[:10],
        gateway,
        gateway_order_id,
        intent.user_type,
    )
    return token


def token_intent(token: ActivationToken) -> PlanOrder:
    return build_intent(
        token.user_type,
        token.plan_id_to_activate,
        token.user_id,
        token.teacher_for_plan_id,
        token.referral_code_used,
    )


def redeem_token(value: str) -> ActivationOutcome:
    """
    Run the activation recorded on the token and mark the token used.

    The used flag is flipped with a conditional update as the last write of
    the activation transaction, so of two concurrent redeems only one commits
    and a failed activation leaves the token redeemable.
    """
    token = ActivationToken.objects.filter(token=value).first()
    if token is None:
        raise TokenNotFound()
    if token.used:
        raise TokenAlreadyUsed()
    if token.expires_at < timezone.now():
        raise TokenExpired()

    def mark_used() -> None:
        updated = ActivationToken.objects.filter(pk=token.pk, used=False).update(
            used=True,
            used_at=timezone.now(),
        )
        if updated != 1:
            raise TokenAlreadyUsed()

    request = ActivationRequest(
        intent=token_intent(token),
        gross_amount=token.original_amount,
        gateway=token.gateway,
        gateway_payment_id=token.gateway_payment_id or token.gateway_order_id,
        gateway_order_id=token.gateway_order_id,
    )
    outcome = activate_plan(request, finalize=mark_used)
    if outcome.already_applied:
        raise TokenAlreadyUsed()

    logger.info("Activation token %s... redeemed", value[:10])
    return outcome

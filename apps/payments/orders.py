"""
Order service: turns a purchase request into a gateway order.

The discount is resolved here, the order intent is validated against the
records it will later activate, and only then is anything sent to a gateway.
"""
from __future__ import annotations

import logging
import re
import secrets
import string
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from django.conf import settings

from apps.referrals.discounts import DiscountResult, resolve_discount
from apps.subscriptions.activation import ActivationContext, load_context
from apps.subscriptions.intents import (
    STUDENT_PLATFORM_PLAN,
    STUDENT_TEACHER_PLAN,
    TEACHER_PLATFORM_PLAN,
    PlanOrder,
    build_intent,
)
from core.exceptions import ActivationContextError, PaymentValidationError

from .razorpay_client import RazorpayClient

logger = logging.getLogger(__name__)

TYPE_ABBREVIATIONS = {
    STUDENT_PLATFORM_PLAN: "SPP",
    TEACHER_PLATFORM_PLAN: "TPP",
    STUDENT_TEACHER_PLAN: "STP",
}
RECEIPT_ALPHABET = string.ascii_uppercase + string.digits
RECEIPT_SUFFIX_LENGTH = 6


@dataclass(frozen=True)
class Checkout:
    intent: PlanOrder
    context: ActivationContext
    base_amount: Decimal
    amount: Decimal
    currency: str
    discount: DiscountResult


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def validate_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise PaymentValidationError("Amount must be a number.")
    if not value.is_finite() or value <= 0:
        raise PaymentValidationError("Amount must be a positive number.")
    return value


def build_receipt(intent: PlanOrder, prefix: str | None = None, max_length: int | None = None) -> str:
    """
    ``{prefix}_{type}_{plan}_{user tail}_{random}``, cut to the gateway's
    receipt length. Unique in practice, not guaranteed.
    """
    prefix = prefix if prefix is not None else settings.RECEIPT_PREFIX
    max_length = max_length or settings.RECEIPT_MAX_LENGTH
    plan_abbr = re.sub(r"[^A-Za-z0-9]", "", intent.plan_id)[:6].upper()
    user_tail = intent.user_id.replace("-", "")[-8:]
    suffix = "".join(secrets.choice(RECEIPT_ALPHABET) for _ in range(RECEIPT_SUFFIX_LENGTH))
    receipt = "_".join([prefix, TYPE_ABBREVIATIONS[intent.user_type], plan_abbr, user_tail, suffix])
    return receipt[:max_length]


def prepare_checkout(
    amount,
    plan_id,
    user_id,
    user_type,
    teacher_id_for_plan=None,
    referral_code_used=None,
    currency: str | None = None,
) -> Checkout:
    base_amount = validate_amount(amount)
    try:
        intent = build_intent(user_type, plan_id, user_id, teacher_id_for_plan, referral_code_used)
    except ValueError as exc:
        raise PaymentValidationError(str(exc))

    try:
        context = load_context(intent)
    except ActivationContextError as exc:
        raise PaymentValidationError(exc.detail)

    plan_price = context.content_plan.price if context.content_plan is not None else context.platform_plan.price
    if base_amount != plan_price:
        raise PaymentValidationError("Amount does not match the plan price.")

    if intent.user_type == STUDENT_TEACHER_PLAN and intent.referral_code_used:
        discount = resolve_discount(context.teacher.pk, intent.referral_code_used, context.content_plan.pk, base_amount)
    else:
        discount = DiscountResult(amount=base_amount)

    # Only a code that actually changed the price travels with the order.
    intent = replace(intent, referral_code_used=discount.code or "")

    return Checkout(
        intent=intent,
        context=context,
        base_amount=base_amount,
        amount=discount.amount,
        currency=(currency or settings.DEFAULT_CURRENCY).upper(),
        discount=discount,
    )


def create_razorpay_order(
    client: RazorpayClient,
    checkout: Checkout,
    product_description: Optional[str] = None,
) -> dict:
    receipt = build_receipt(checkout.intent)
    notes = checkout.intent.to_notes()
    if product_description:
        notes["product_description"] = product_description[:255]
    if checkout.discount.applied:
        notes["original_amount"] = str(checkout.base_amount)
        notes["discount"] = checkout.discount.description

    order = client.create_order(
        amount=to_minor_units(checkout.amount),
        currency=checkout.currency,
        receipt=receipt,
        notes=notes,
    )
    logger.info(
        "Created Razorpay order %s (%s %s, receipt %s, %s)",
        order.get("id"),
        order.get("amount"),
        order.get("currency"),
        receipt,
        checkout.intent.user_type,
    )

    handle = {
        "id": order.get("id"),
        "amount": order.get("amount"),
        "currency": order.get("currency"),
        "receipt": order.get("receipt", receipt),
        "key_id": client.key_id,
    }
    if checkout.discount.applied:
        handle["discount"] = checkout.discount.description
        handle["original_amount"] = str(checkout.base_amount)
    return handle

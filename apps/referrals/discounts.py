from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.db.models import Q
from django.utils import timezone

from .models import ReferralCode

logger = logging.getLogger(__name__)

MINIMUM_PAYABLE = Decimal("1")
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class DiscountResult:
    amount: Decimal
    applied: bool = False
    code: str | None = None
    description: str | None = None


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def apply_percentage(base_price: Decimal, percentage: Decimal) -> Decimal:
    discounted = base_price * (Decimal("1") - Decimal(percentage) / Decimal("100"))
    return max(MINIMUM_PAYABLE, discounted).quantize(CENTS, rounding=ROUND_HALF_UP)


def find_referral_code(teacher_id, code: str) -> ReferralCode | None:
    today = timezone.localdate()
    return (
        ReferralCode.objects.filter(teacher_id=teacher_id, code=code)
        .filter(Q(expiry_date__isnull=True) | Q(expiry_date__gte=today))
        .first()
    )


def resolve_discount(teacher_id, code: str | None, plan_id, base_price: Decimal) -> DiscountResult:
    """
    Final payable amount for ``plan_id`` once ``code`` is applied.

    A missing, unknown, expired or inapplicable code is not an error: the base
    price is returned unchanged so that a promo problem never blocks payment.
    """
    normalized = normalize_code(code)
    if not normalized or not teacher_id:
        return DiscountResult(amount=base_price)

    try:
        referral = find_referral_code(teacher_id, normalized)
        if referral is None:
            logger.info("Referral code %s not found or expired for teacher %s", normalized, teacher_id)
            return DiscountResult(amount=base_price)
        if not referral.applicable_plans.filter(id=plan_id).exists():
            logger.info("Referral code %s does not apply to plan %s", normalized, plan_id)
            return DiscountResult(amount=base_price)
    except (DatabaseError, DjangoValidationError, ValueError):
        logger.warning("Referral lookup failed for code %s; charging base price", normalized, exc_info=True)
        return DiscountResult(amount=base_price)

    percentage = Decimal(referral.discount_percentage)
    if percentage <= 0:
        return DiscountResult(amount=base_price)

    amount = apply_percentage(base_price, percentage)
    return DiscountResult(
        amount=amount,
        applied=True,
        code=referral.code,
        description=f"{referral.code}: {percentage.normalize():f}% off",
    )

"""
Static catalog of platform plans.

Student platform plans unlock platform content for a student; teacher platform
plans set how many content plans a teacher may publish and the commission the
platform keeps on the teacher's sales.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class PlatformPlan:
    id: str
    name: str
    price: Decimal
    max_content_plans: Optional[int] = None
    commission_rate: Optional[Decimal] = None


STUDENT_PLATFORM_PLANS: dict[str, PlatformPlan] = {
    plan.id: plan
    for plan in (
        PlatformPlan("Free", "Free", Decimal("0")),
        PlatformPlan("Dpp", "DPP Access", Decimal("499")),
        PlatformPlan("Chapterwise", "Chapterwise Tests", Decimal("599")),
        PlatformPlan("Full_length", "Full Length Tests", Decimal("499")),
        PlatformPlan("Combo", "Combo", Decimal("999")),
    )
}

TEACHER_PLATFORM_PLANS: dict[str, PlatformPlan] = {
    plan.id: plan
    for plan in (
        PlatformPlan("Free", "Teacher Basic", Decimal("0"), max_content_plans=2, commission_rate=Decimal("10")),
        PlatformPlan("Starter", "Teacher Starter", Decimal("399"), max_content_plans=5, commission_rate=Decimal("7.5")),
        PlatformPlan("Pro", "Teacher Pro", Decimal("599"), max_content_plans=10, commission_rate=Decimal("5")),
    )
}

DEFAULT_COMMISSION_RATE = TEACHER_PLATFORM_PLANS["Free"].commission_rate


def get_student_plan(plan_id: str) -> PlatformPlan | None:
    return STUDENT_PLATFORM_PLANS.get(plan_id)


def get_teacher_plan(plan_id: str) -> PlatformPlan | None:
    return TEACHER_PLATFORM_PLANS.get(plan_id)


def commission_rate_for_tier(tier: str | None) -> Decimal:
    """Platform commission (percent) kept on sales of a teacher on ``tier``."""
    plan = TEACHER_PLATFORM_PLANS.get(tier or "")
    if plan is None or plan.commission_rate is None:
        return DEFAULT_COMMISSION_RATE
    return plan.commission_rate

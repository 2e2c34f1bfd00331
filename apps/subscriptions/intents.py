"""
What a payment is for.

Each gateway order carries one of these intents. They are serialized to the
gateway's flat string-keyed metadata (Razorpay ``notes``, PayU ``udf`` fields)
only at the gateway boundary and parsed back on verification.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Mapping, Union

STUDENT_PLATFORM_PLAN = "student_platform_plan"
TEACHER_PLATFORM_PLAN = "teacher_platform_plan"
STUDENT_TEACHER_PLAN = "student_teacher_plan"

USER_TYPES = (STUDENT_PLATFORM_PLAN, TEACHER_PLATFORM_PLAN, STUDENT_TEACHER_PLAN)


@dataclass(frozen=True)
class PlatformPlanOrder:
    user_type: ClassVar[str] = STUDENT_PLATFORM_PLAN

    plan_id: str
    user_id: str
    referral_code_used: str = ""

    @property
    def teacher_id_for_plan(self) -> str:
        return ""

    def to_notes(self) -> dict[str, str]:
        notes = {
            "plan_id": self.plan_id,
            "user_id": self.user_id,
            "user_type": self.user_type,
        }
        if self.referral_code_used:
            notes["referral_code_used"] = self.referral_code_used
        return notes


@dataclass(frozen=True)
class TeacherPlatformPlanOrder(PlatformPlanOrder):
    user_type: ClassVar[str] = TEACHER_PLATFORM_PLAN


@dataclass(frozen=True)
class TeacherContentPlanOrder:
    user_type: ClassVar[str] = STUDENT_TEACHER_PLAN

    plan_id: str
    user_id: str
    teacher_id_for_plan: str
    referral_code_used: str = ""

    def to_notes(self) -> dict[str, str]:
        notes = {
            "plan_id": self.plan_id,
            "user_id": self.user_id,
            "user_type": self.user_type,
            "teacher_id_for_plan": self.teacher_id_for_plan,
        }
        if self.referral_code_used:
            notes["referral_code_used"] = self.referral_code_used
        return notes


PlanOrder = Union[PlatformPlanOrder, TeacherPlatformPlanOrder, TeacherContentPlanOrder]


def _clean(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def build_intent(
    user_type: str,
    plan_id,
    user_id,
    teacher_id_for_plan=None,
    referral_code_used=None,
) -> PlanOrder:
    """Raises ValueError when the fields cannot describe a valid order."""
    user_type = _clean(user_type)
    plan_id = _clean(plan_id)
    user_id = _clean(user_id)
    teacher_id = _clean(teacher_id_for_plan)
    referral = _clean(referral_code_used).upper()

    if user_type not in USER_TYPES:
        raise ValueError(f"Unknown user type: {user_type or '<empty>'}")
    if not plan_id:
        raise ValueError("Plan id is required")
    if not user_id:
        raise ValueError("User id is required")

    if user_type == STUDENT_TEACHER_PLAN:
        if not teacher_id:
            raise ValueError("Teacher id is required for a teacher plan subscription")
        return TeacherContentPlanOrder(plan_id, user_id, teacher_id, referral)
    if user_type == TEACHER_PLATFORM_PLAN:
        return TeacherPlatformPlanOrder(plan_id, user_id, referral)
    return PlatformPlanOrder(plan_id, user_id, referral)


def intent_from_notes(notes: Mapping[str, object] | None) -> PlanOrder:
    notes = notes or {}
    return build_intent(
        notes.get("user_type"),
        notes.get("plan_id"),
        notes.get("user_id"),
        notes.get("teacher_id_for_plan"),
        notes.get("referral_code_used"),
    )


def same_order(claimed: PlanOrder, stored: PlanOrder) -> bool:
    """
    Field-for-field comparison of the business intent the caller claims with
    the one recorded on the gateway order. The referral code is not compared;
    it only affected the price, which the gateway already charged.
    """
    if claimed.user_type != stored.user_type:
        return False
    if claimed.user_id != stored.user_id or claimed.plan_id != stored.plan_id:
        return False
    if claimed.user_type == STUDENT_TEACHER_PLAN:
        return claimed.teacher_id_for_plan == stored.teacher_id_for_plan
    return True

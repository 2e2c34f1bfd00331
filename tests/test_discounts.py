from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from apps.referrals.discounts import apply_percentage, normalize_code, resolve_discount
from tests.factories import ReferralCodeFactory, TeacherContentPlanFactory, TeacherFactory


def test_apply_percentage_rounds_to_cents():
    assert apply_percentage(Decimal("999"), Decimal("12.5")) == Decimal("874.13")


def test_apply_percentage_never_goes_below_one_rupee():
    assert apply_percentage(Decimal("50"), Decimal("100")) == Decimal("1.00")
    assert apply_percentage(Decimal("1.20"), Decimal("90")) == Decimal("1.00")


def test_normalize_code():
    assert normalize_code("  ref20 ") == "REF20"
    assert normalize_code(None) == ""


class ResolveDiscountTests(TestCase):
    def setUp(self):
        self.teacher = TeacherFactory()
        self.plan = TeacherContentPlanFactory(teacher=self.teacher)
        self.code = ReferralCodeFactory(
            teacher=self.teacher,
            code="REF20",
            discount_percentage=Decimal("20"),
            applicable_plans=[self.plan],
        )

    def test_no_code_returns_base_price(self):
        result = resolve_discount(self.teacher.pk, None, self.plan.pk, Decimal("1000"))
        self.assertEqual(result.amount, Decimal("1000"))
        self.assertFalse(result.applied)
        self.assertIsNone(result.code)

    def test_valid_code_is_applied(self):
        result = resolve_discount(self.teacher.pk, "REF20", self.plan.pk, Decimal("1000"))
        self.assertTrue(result.applied)
        self.assertEqual(result.amount, Decimal("800.00"))
        self.assertEqual(result.code, "REF20")
        self.assertEqual(result.description, "REF20: 20% off")

    def test_code_is_matched_case_insensitively(self):
        result = resolve_discount(self.teacher.pk, "  ref20 ", self.plan.pk, Decimal("1000"))
        self.assertEqual(result.amount, Decimal("800.00"))

    def test_fractional_percentage_description(self):
        ReferralCodeFactory(
            teacher=self.teacher,
            code="HALF",
            discount_percentage=Decimal("12.5"),
            applicable_plans=[self.plan],
        )
        result = resolve_discount(self.teacher.pk, "HALF", self.plan.pk, Decimal("1000"))
        self.assertEqual(result.amount, Decimal("875.00"))
        self.assertEqual(result.description, "HALF: 12.5% off")

    def test_unknown_code_returns_base_price(self):
        result = resolve_discount(self.teacher.pk, "NOPE", self.plan.pk, Decimal("1000"))
        self.assertEqual(result.amount, Decimal("1000"))
        self.assertFalse(result.applied)

    def test_expired_code_returns_base_price(self):
        self.code.expiry_date = timezone.localdate() - timedelta(days=1)
        self.code.save()
        result = resolve_discount(self.teacher.pk, "REF20", self.plan.pk, Decimal("1000"))
        self.assertFalse(result.applied)
        self.assertEqual(result.amount, Decimal("1000"))

    def test_code_expiring_today_still_applies(self):
        self.code.expiry_date = timezone.localdate()
        self.code.save()
        result = resolve_discount(self.teacher.pk, "REF20", self.plan.pk, Decimal("1000"))
        self.assertTrue(result.applied)

    def test_code_of_another_teacher_is_ignored(self):
        other_teacher = TeacherFactory()
        result = resolve_discount(other_teacher.pk, "REF20", self.plan.pk, Decimal("1000"))
        self.assertFalse(result.applied)

    def test_code_not_applicable_to_plan_is_ignored(self):
        other_plan = TeacherContentPlanFactory(teacher=self.teacher)
        result = resolve_discount(self.teacher.pk, "REF20", other_plan.pk, Decimal("1000"))
        self.assertFalse(result.applied)
        self.assertEqual(result.amount, Decimal("1000"))

    def test_zero_percent_code_is_not_applied(self):
        ReferralCodeFactory(
            teacher=self.teacher,
            code="ZERO",
            discount_percentage=Decimal("0"),
            applicable_plans=[self.plan],
        )
        result = resolve_discount(self.teacher.pk, "ZERO", self.plan.pk, Decimal("1000"))
        self.assertFalse(result.applied)

    def test_full_discount_is_floored_at_one(self):
        ReferralCodeFactory(
            teacher=self.teacher,
            code="FREE",
            discount_percentage=Decimal("100"),
            applicable_plans=[self.plan],
        )
        result = resolve_discount(self.teacher.pk, "FREE", self.plan.pk, Decimal("1000"))
        self.assertTrue(result.applied)
        self.assertEqual(result.amount, Decimal("1.00"))

    def test_malformed_plan_id_fails_open(self):
        result = resolve_discount(self.teacher.pk, "REF20", "not-a-uuid", Decimal("1000"))
        self.assertFalse(result.applied)
        self.assertEqual(result.amount, Decimal("1000"))

    def test_lookup_error_fails_open(self):
        with mock.patch("apps.referrals.discounts.find_referral_code", side_effect=DatabaseError("down")):
            result = resolve_discount(self.teacher.pk, "REF20", self.plan.pk, Decimal("1000"))
        self.assertFalse(result.applied)
        self.assertEqual(result.amount, Decimal("1000"))

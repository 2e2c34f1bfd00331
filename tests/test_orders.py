import re
from decimal import Decimal
from unittest import mock

import pytest
from django.test import TestCase

from apps.payments.orders import build_receipt, create_razorpay_order, prepare_checkout, to_minor_units, validate_amount
from apps.subscriptions.intents import PlatformPlanOrder, TeacherContentPlanOrder, TeacherPlatformPlanOrder
from core.exceptions import PaymentValidationError
from tests.factories import ReferralCodeFactory, StudentFactory, TeacherContentPlanFactory, TeacherFactory


def test_to_minor_units():
    assert to_minor_units(Decimal("499")) == 49900
    assert to_minor_units(Decimal("874.13")) == 87413
    assert to_minor_units(Decimal("0.015")) == 2


@pytest.mark.parametrize("value", ["0", "-5", "abc", "NaN", "Infinity", None])
def test_validate_amount_rejects_non_positive_or_non_numeric(value):
    with pytest.raises(PaymentValidationError):
        validate_amount(value)


def test_validate_amount_accepts_strings_and_numbers():
    assert validate_amount("499") == Decimal("499")
    assert validate_amount(12.5) == Decimal("12.5")


def test_receipt_format():
    intent = PlatformPlanOrder("Full_length", "3f2b6c1e-9a7d-4e0b-8c55-1d2e3f4a5b6c")
    receipt = build_receipt(intent, prefix="EDX", max_length=40)
    assert re.fullmatch(r"EDX_SPP_FULLLE_3f4a5b6c_[A-Z0-9]{6}", receipt)


def test_receipt_type_abbreviations():
    teacher = TeacherPlatformPlanOrder("Pro", "u1")
    content = TeacherContentPlanOrder("plan-1", "u2", "t1")
    assert build_receipt(teacher, prefix="EDX").startswith("EDX_TPP_PRO_u1_")
    assert build_receipt(content, prefix="EDX").startswith("EDX_STP_PLAN1_u2_")


def test_receipt_is_truncated_to_max_length():
    intent = TeacherContentPlanOrder("a1b2c3d4-0000", "e5f6a7b8-c9d0-1111-2222-333344445555", "t1")
    receipt = build_receipt(intent, prefix="EDUNEXUS_LONG_PREFIX", max_length=20)
    assert len(receipt) == 20
    assert receipt.startswith("EDUNEXUS_LONG_PREFIX"[:20])


def test_receipts_differ_between_calls():
    intent = PlatformPlanOrder("Dpp", "u1")
    assert build_receipt(intent) != build_receipt(intent)


class PrepareCheckoutTests(TestCase):
    def setUp(self):
        self.student = StudentFactory()
        self.teacher = TeacherFactory()
        self.plan = TeacherContentPlanFactory(teacher=self.teacher)
        ReferralCodeFactory(teacher=self.teacher, code="REF20", applicable_plans=[self.plan])

    def test_student_platform_plan(self):
        checkout = prepare_checkout("499", "Dpp", str(self.student.pk), "student_platform_plan")
        self.assertIsInstance(checkout.intent, PlatformPlanOrder)
        self.assertEqual(checkout.amount, Decimal("499"))
        self.assertEqual(checkout.currency, "INR")
        self.assertFalse(checkout.discount.applied)

    def test_referral_code_is_dropped_for_platform_plans(self):
        checkout = prepare_checkout("499", "Dpp", str(self.student.pk), "student_platform_plan", referral_code_used="REF20")
        self.assertEqual(checkout.amount, Decimal("499"))
        self.assertEqual(checkout.intent.referral_code_used, "")

    def test_teacher_content_plan_with_code(self):
        checkout = prepare_checkout(
            "1000",
            str(self.plan.pk),
            str(self.student.pk),
            "student_teacher_plan",
            teacher_id_for_plan=str(self.teacher.pk),
            referral_code_used="ref20",
        )
        self.assertEqual(checkout.base_amount, Decimal("1000"))
        self.assertEqual(checkout.amount, Decimal("800.00"))
        self.assertEqual(checkout.intent.referral_code_used, "REF20")
        self.assertEqual(checkout.context.content_plan, self.plan)

    def test_unknown_code_is_not_carried(self):
        checkout = prepare_checkout(
            "1000",
            str(self.plan.pk),
            str(self.student.pk),
            "student_teacher_plan",
            teacher_id_for_plan=str(self.teacher.pk),
            referral_code_used="BOGUS",
        )
        self.assertEqual(checkout.amount, Decimal("1000"))
        self.assertEqual(checkout.intent.referral_code_used, "")

    def test_unknown_plan_is_rejected(self):
        with self.assertRaises(PaymentValidationError):
            prepare_checkout("499", "Platinum", str(self.student.pk), "student_platform_plan")

    def test_role_mismatch_is_rejected(self):
        with self.assertRaises(PaymentValidationError):
            prepare_checkout("499", "Dpp", str(self.teacher.pk), "student_platform_plan")

    def test_missing_teacher_for_content_plan_is_rejected(self):
        with self.assertRaises(PaymentValidationError):
            prepare_checkout("1000", str(self.plan.pk), str(self.student.pk), "student_teacher_plan")

    def test_plan_of_another_teacher_is_rejected(self):
        other = TeacherFactory()
        with self.assertRaises(PaymentValidationError):
            prepare_checkout(
                "1000",
                str(self.plan.pk),
                str(self.student.pk),
                "student_teacher_plan",
                teacher_id_for_plan=str(other.pk),
            )

    def test_amount_below_content_plan_price_is_rejected(self):
        with self.assertRaises(PaymentValidationError):
            prepare_checkout(
                "1",
                str(self.plan.pk),
                str(self.student.pk),
                "student_teacher_plan",
                teacher_id_for_plan=str(self.teacher.pk),
            )

    def test_amount_differing_from_platform_plan_price_is_rejected(self):
        for amount in ("1", "498.99", "999"):
            with self.assertRaises(PaymentValidationError):
                prepare_checkout(amount, "Dpp", str(self.student.pk), "student_platform_plan")

    def test_price_is_compared_numerically(self):
        checkout = prepare_checkout(
            "1000.00",
            str(self.plan.pk),
            str(self.student.pk),
            "student_teacher_plan",
            teacher_id_for_plan=str(self.teacher.pk),
        )
        self.assertEqual(checkout.amount, Decimal("1000"))

    def test_inactive_content_plan_is_rejected(self):
        self.plan.is_active = False
        self.plan.save(update_fields=["is_active"])
        with self.assertRaises(PaymentValidationError):
            prepare_checkout(
                "1000",
                str(self.plan.pk),
                str(self.student.pk),
                "student_teacher_plan",
                teacher_id_for_plan=str(self.teacher.pk),
            )

    def test_teacher_plans_outside_the_catalog_are_not_sold(self):
        teacher = TeacherFactory()
        with self.assertRaises(PaymentValidationError):
            prepare_checkout("1", "Ads Model", str(teacher.pk), "teacher_platform_plan")

    def test_create_razorpay_order(self):
        checkout = prepare_checkout(
            "1000",
            str(self.plan.pk),
            str(self.student.pk),
            "student_teacher_plan",
            teacher_id_for_plan=str(self.teacher.pk),
            referral_code_used="REF20",
        )
        client = mock.MagicMock()
        client.key_id = "rzp_test_key"
        client.create_order.return_value = {"id": "order_123", "amount": 80000, "currency": "INR", "receipt": "r1"}

        handle = create_razorpay_order(client, checkout, "Physics series")

        kwargs = client.create_order.call_args.kwargs
        self.assertEqual(kwargs["amount"], 80000)
        self.assertEqual(kwargs["currency"], "INR")
        self.assertLessEqual(len(kwargs["receipt"]), 40)
        notes = kwargs["notes"]
        self.assertEqual(notes["user_type"], "student_teacher_plan")
        self.assertEqual(notes["plan_id"], str(self.plan.pk))
        self.assertEqual(notes["user_id"], str(self.student.pk))
        self.assertEqual(notes["teacher_id_for_plan"], str(self.teacher.pk))
        self.assertEqual(notes["referral_code_used"], "REF20")
        self.assertEqual(notes["product_description"], "Physics series")
        self.assertEqual(notes["original_amount"], "1000")

        self.assertEqual(handle["id"], "order_123")
        self.assertEqual(handle["amount"], 80000)
        self.assertEqual(handle["key_id"], "rzp_test_key")
        self.assertEqual(handle["discount"], "REF20: 20% off")
        self.assertEqual(handle["original_amount"], "1000")

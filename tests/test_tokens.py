import threading
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.db import connection
from django.test import TestCase, TransactionTestCase
from django.utils import timezone

from apps.subscriptions import tokens
from apps.subscriptions.activation import FLOWS, load_context
from apps.subscriptions.intents import TEACHER_PLATFORM_PLAN, TeacherContentPlanOrder, TeacherPlatformPlanOrder
from apps.subscriptions.models import ActivationToken, PlanActivation
from apps.subscriptions.tokens import issue_token, redeem_token, token_intent
from core.exceptions import ActivationFailed, TokenAlreadyUsed, TokenExpired, TokenNotFound
from tests.factories import ActivationTokenFactory, StudentFactory, TeacherContentPlanFactory, TeacherFactory


class IssueTokenTests(TestCase):
    def setUp(self):
        self.teacher = TeacherFactory()
        self.intent = TeacherPlatformPlanOrder("Pro", str(self.teacher.pk))
        self.context = load_context(self.intent)

    def test_issue_records_the_verified_payment(self):
        token = issue_token(self.intent, self.context, Decimal("599.00"), "payu", "TXN1", "mih1")

        self.assertEqual(token.user, self.teacher)
        self.assertEqual(token.plan_id_to_activate, "Pro")
        self.assertEqual(token.user_type, TEACHER_PLATFORM_PLAN)
        self.assertIsNone(token.teacher_for_plan)
        self.assertFalse(token.used)
        self.assertGreaterEqual(len(token.token), 40)
        expected = timezone.now() + timedelta(hours=72)
        self.assertLess(abs(token.expires_at - expected), timedelta(minutes=1))

    def test_same_gateway_transaction_gets_the_same_token(self):
        first = issue_token(self.intent, self.context, Decimal("599.00"), "payu", "TXN1", "mih1")
        second = issue_token(self.intent, self.context, Decimal("599.00"), "payu", "TXN1", "mih1")
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(ActivationToken.objects.count(), 1)

    def test_content_plan_token_round_trips_its_intent(self):
        student = StudentFactory()
        plan = TeacherContentPlanFactory(teacher=self.teacher)
        intent = TeacherContentPlanOrder(str(plan.pk), str(student.pk), str(self.teacher.pk), "REF20")
        token = issue_token(intent, load_context(intent), Decimal("800.00"), "payu", "TXN2")

        self.assertEqual(token.teacher_for_plan, self.teacher)
        self.assertEqual(token_intent(token), intent)


class RedeemTokenTests(TestCase):
    def setUp(self):
        self.teacher = TeacherFactory()
        self.token = ActivationTokenFactory(user=self.teacher, plan_id_to_activate="Pro")

    def test_redeem_activates_and_marks_used(self):
        outcome = redeem_token(self.token.token)

        self.assertEqual(outcome.message, "Successfully upgraded to Pro plan!")
        self.teacher.refresh_from_db()
        self.assertEqual(self.teacher.teacher_subscription_tier, "Pro")
        self.token.refresh_from_db()
        self.assertTrue(self.token.used)
        self.assertIsNotNone(self.token.used_at)
        attempt = PlanActivation.objects.get(gateway="payu", gateway_payment_id=self.token.gateway_payment_id)
        self.assertEqual(attempt.status, PlanActivation.STATUS_DONE)

    def test_second_redeem_is_rejected(self):
        redeem_token(self.token.token)
        with self.assertRaises(TokenAlreadyUsed):
            redeem_token(self.token.token)
        self.assertEqual(PlanActivation.objects.get().attempts, 1)

    def test_unknown_token(self):
        with self.assertRaises(TokenNotFound):
            redeem_token("no-such-token")

    def test_expired_token_changes_nothing(self):
        self.token.expires_at = timezone.now() - timedelta(seconds=1)
        self.token.save()

        with self.assertRaises(TokenExpired):
            redeem_token(self.token.token)

        self.teacher.refresh_from_db()
        self.assertEqual(self.teacher.teacher_subscription_tier, "Free")
        self.token.refresh_from_db()
        self.assertFalse(self.token.used)
        self.assertFalse(PlanActivation.objects.exists())

    def test_token_claimed_concurrently_rolls_back_the_activation(self):
        real_activate = tokens.activate_plan

        def claim_first(request, finalize=None):
            # Another redeem flips the flag after this one read the token.
            ActivationToken.objects.filter(pk=self.token.pk).update(used=True)
            return real_activate(request, finalize=finalize)

        with mock.patch("apps.subscriptions.tokens.activate_plan", side_effect=claim_first):
            with self.assertRaises(TokenAlreadyUsed):
                redeem_token(self.token.token)

        self.teacher.refresh_from_db()
        self.assertEqual(self.teacher.teacher_subscription_tier, "Free")
        self.assertEqual(PlanActivation.objects.get().status, PlanActivation.STATUS_PENDING)

    def test_failed_activation_leaves_token_redeemable(self):
        def broken(ctx, request):
            raise RuntimeError("database hiccup")

        with mock.patch.dict(FLOWS, {TEACHER_PLATFORM_PLAN: broken}):
            with self.assertRaises(ActivationFailed):
                redeem_token(self.token.token)

        self.token.refresh_from_db()
        self.assertFalse(self.token.used)

        redeem_token(self.token.token)
        self.token.refresh_from_db()
        self.assertTrue(self.token.used)
        self.teacher.refresh_from_db()
        self.assertEqual(self.teacher.teacher_subscription_tier, "Pro")

    def test_token_without_payment_id_keys_activation_by_order(self):
        token = ActivationTokenFactory(user=self.teacher, gateway_payment_id="", gateway_order_id="TXN-NOPAY")
        redeem_token(token.token)
        self.assertTrue(PlanActivation.objects.filter(gateway_payment_id="TXN-NOPAY").exists())


class ConcurrentRedeemTests(TransactionTestCase):
    def test_only_one_of_two_concurrent_redeems_succeeds(self):
        teacher = TeacherFactory()
        token = ActivationTokenFactory(user=teacher, plan_id_to_activate="Starter")
        results = []
        barrier = threading.Barrier(2)

        def redeem():
            barrier.wait()
            try:
                redeem_token(token.token)
                results.append("ok")
            except TokenAlreadyUsed:
                results.append("used")
            finally:
                connection.close()

        threads = [threading.Thread(target=redeem) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sorted(results), ["ok", "used"])
        teacher.refresh_from_db()
        self.assertEqual(teacher.teacher_subscription_tier, "Starter")
        self.assertEqual(PlanActivation.objects.get().attempts, 1)

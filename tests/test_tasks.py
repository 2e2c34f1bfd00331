from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from apps.notifications.models import Notification
from apps.notifications.tasks import notify_plan_activated
from apps.subscriptions.models import PlanActivation
from apps.subscriptions.tasks import report_stuck_activations
from tests.factories import StudentFactory


def _attempt(payment_id, status):
    return PlanActivation.objects.create(
        gateway="razorpay",
        gateway_payment_id=payment_id,
        user_id_claimed="user-1",
        user_type="student_platform_plan",
        plan_id="Dpp",
        amount=Decimal("499.00"),
        status=status,
    )


class ReportStuckActivationsTests(TestCase):
    def test_counts_failed_and_stale_applying_attempts(self):
        _attempt("pay_done", PlanActivation.STATUS_DONE)
        _attempt("pay_failed", PlanActivation.STATUS_FAILED)
        _attempt("pay_fresh", PlanActivation.STATUS_APPLYING)
        stale = _attempt("pay_stale", PlanActivation.STATUS_APPLYING)
        PlanActivation.objects.filter(pk=stale.pk).update(updated_at=timezone.now() - timedelta(hours=1))

        with self.assertLogs("apps.subscriptions.tasks", level="ERROR") as logs:
            count = report_stuck_activations()

        self.assertEqual(count, 2)
        self.assertEqual(len(logs.records), 2)

    def test_nothing_stuck(self):
        _attempt("pay_done", PlanActivation.STATUS_DONE)
        self.assertEqual(report_stuck_activations(), 0)


class NotifyPlanActivatedTests(TestCase):
    def test_creates_notification(self):
        student = StudentFactory()
        pk = notify_plan_activated.delay(str(student.pk), "Plan activated").get()
        notification = Notification.objects.get(pk=pk)
        self.assertEqual(notification.user, student)
        self.assertEqual(notification.title, "Plan activated")
        self.assertFalse(notification.is_read)

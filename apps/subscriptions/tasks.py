import logging
from datetime import timedelta

from celery import shared_task
from django.db.models import Q
from django.utils import timezone

from .models import PlanActivation

logger = logging.getLogger(__name__)

STUCK_AFTER = timedelta(minutes=15)


@shared_task
def report_stuck_activations() -> int:
    """
    Log activations that failed, or never left "applying", so support can
    retry them. Returns how many were found.
    """
    cutoff = timezone.now() - STUCK_AFTER
    stuck = PlanActivation.objects.filter(
        Q(status=PlanActivation.STATUS_FAILED) | Q(status=PlanActivation.STATUS_APPLYING, updated_at__lt=cutoff)
    ).order_by("updated_at")

    count = 0
    for attempt in stuck.iterator():
        logger.error(
            "Activation %s:%s for user %s is %s: %s",
            attempt.gateway,
            attempt.gateway_payment_id,
            attempt.user_id_claimed,
            attempt.status,
            attempt.failure_reason or "no reason recorded",
        )
        count += 1
    return count

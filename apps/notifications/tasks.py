from celery import shared_task

from .models import Notification


@shared_task
def notify_plan_activated(user_id: str, message: str) -> int:
    notification = Notification.objects.create(
        user_id=user_id,
        title="Plan activated",
        body=message,
    )
    return notification.pk

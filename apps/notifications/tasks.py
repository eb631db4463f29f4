"""Celery tasks for notification delivery."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .models import Notification
from .services import send_email_notification

logger = logging.getLogger(__name__)


@shared_task(name="notifications.deliver_notification_email")
def deliver_notification_email(notification_id: int) -> bool:
    """Send the e-mail copy of an in-app notification."""

    try:
        notification = Notification.objects.select_related("user").get(pk=notification_id)
    except Notification.DoesNotExist:
        logger.warning(f"Notification {notification_id} no longer exists; e-mail skipped")
        return False

    if not notification.user.email:
        return False

    return send_email_notification(
        recipient_email=notification.user.email,
        subject=notification.title,
        message=notification.message,
    )

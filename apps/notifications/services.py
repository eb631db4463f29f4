"""Notification services: in-app inbox and e-mail delivery."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils.html import strip_tags  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from .models import Notification

logger = logging.getLogger(__name__)


def send_email_notification(
    recipient_email: str,
    subject: str,
    message: str,
    *,
    html_message: str | None = None,
) -> bool:
    """
    Send one e-mail.

    Returns True when the message was handed to the mail backend.
    """
    try:
        text_message = strip_tags(html_message) if html_message else message

        send_mail(
            subject=subject,
            message=text_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )

        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def create_in_app_notification(
    user_id: int,
    title: str,
    message: str,
    *,
    notification_type: str = "info",
    related_entity_type: str = "",
    related_entity_id: int | None = None,
) -> "Notification":
    from .models import Notification

    notification = Notification.objects.create(
        user_id=user_id,
        title=title,
        message=message,
        type=notification_type,
        related_entity_type=related_entity_type or "",
        related_entity_id=related_entity_id,
    )
    logger.info(f"In-app notification created for user {user_id}: {title}")
    return notification


def notify(
    user_id: int,
    title: str,
    body: str,
    related_entity_type: str = "",
    related_entity_id: int | None = None,
    *,
    notification_type: str = "info",
) -> "Notification":
    """
    Notify a user in-app and queue an e-mail copy.

    The e-mail is delivered by a Celery worker; failing to enqueue it is
    logged and does not affect the in-app notification.
    """
    notification = create_in_app_notification(
        user_id,
        title,
        body,
        notification_type=notification_type,
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id,
    )

    try:
        from .tasks import deliver_notification_email

        deliver_notification_email.delay(notification.pk)
    except Exception as e:
        logger.error(f"Failed to queue e-mail for notification {notification.pk}: {e}", exc_info=True)

    return notification


def notify_admins(
    title: str,
    body: str,
    related_entity_type: str = "",
    related_entity_id: int | None = None,
    *,
    notification_type: str = "info",
) -> int:
    """Notify every club administrator; returns how many were notified."""
    from django.contrib.auth import get_user_model  # type: ignore
    from django.db.models import Q  # type: ignore

    User = get_user_model()
    admin_ids = list(
        User.objects.filter(is_active=True)
        .filter(Q(role=User.RoleChoices.ADMIN) | Q(is_staff=True) | Q(is_superuser=True))
        .values_list("pk", flat=True)
    )
    for admin_id in admin_ids:
        notify(
            admin_id,
            title,
            body,
            related_entity_type,
            related_entity_id,
            notification_type=notification_type,
        )
    return len(admin_ids)

"""Reservation event handlers that notify members and administrators."""

from __future__ import annotations

import logging

from shared.application.message_bus import message_bus
from apps.reservations.domain.events import (
    ApprovalRequested,
    ReservationApproved,
    ReservationCancelled,
    ReservationRejected,
)

from .models import Notification
from .services import notify, notify_admins

logger = logging.getLogger(__name__)

RESERVATION = "reservation"


def _describe(reservation_id: int) -> str:
    from apps.reservations.models import Reservation

    reservation = Reservation.objects.select_related("table").filter(pk=reservation_id).first()
    if reservation is None:
        return f"reservation #{reservation_id}"
    return f"{reservation.table.name} on {reservation.local_start:%Y-%m-%d}"


@message_bus.subscribe(ReservationRejected)
def notify_owner_of_rejection(event: ReservationRejected) -> None:
    notify(
        event.user_id,
        "Reservation rejected",
        f"Your all-day reservation for {_describe(event.reservation_id)} was rejected. "
        f"Reason: {event.rejection_reason}",
        RESERVATION,
        event.reservation_id,
        notification_type=Notification.Type.ERROR,
    )


@message_bus.subscribe(ReservationApproved)
def notify_owner_of_approval(event: ReservationApproved) -> None:
    notify(
        event.user_id,
        "Reservation approved",
        f"Your all-day reservation for {_describe(event.reservation_id)} was approved.",
        RESERVATION,
        event.reservation_id,
        notification_type=Notification.Type.SUCCESS,
    )


@message_bus.subscribe(ReservationCancelled)
def notify_owner_of_cancellation(event: ReservationCancelled) -> None:
    if event.cancelled_by is None or event.cancelled_by == event.user_id:
        return
    notify(
        event.user_id,
        "Reservation cancelled",
        f"Your reservation for {_describe(event.reservation_id)} was cancelled by an administrator.",
        RESERVATION,
        event.reservation_id,
        notification_type=Notification.Type.WARNING,
    )


@message_bus.subscribe(ApprovalRequested)
def notify_admins_of_pending_approval(event: ApprovalRequested) -> None:
    count = notify_admins(
        "Reservation awaiting approval",
        f"An all-day reservation for {_describe(event.reservation_id)} needs approval. "
        f"Reason: {event.reason}",
        RESERVATION,
        event.reservation_id,
        notification_type=Notification.Type.WARNING,
    )
    logger.debug(f"Approval request for reservation {event.reservation_id} sent to {count} admins")

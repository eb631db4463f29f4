"""
Reservation repositories

Map ORM rows to domain aggregates and back. Row locks are taken with
SELECT FOR UPDATE when a transaction is open; callers always lock the
table before the user, so two commands never wait on each other in
opposite order.
"""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional

from django.contrib.auth import get_user_model  # type: ignore
from django.db import NotSupportedError, transaction  # type: ignore

from shared.domain.value_objects import TimeRange, WallClockTime
from apps.reservations.domain.approval import ApprovalState
from apps.reservations.domain.entities import Reservation, ReservationStatus
from apps.reservations.domain.schedule import TableSchedule
from apps.reservations.models import Reservation as ReservationModel
from apps.tables.models import Table


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def to_domain(row: ReservationModel) -> Reservation:
    return Reservation(
        id=row.pk,
        created_at=row.created_at,
        updated_at=row.updated_at,
        user_id=row.user_id,
        table_id=row.table_id,
        start=WallClockTime(instant=row.start_time, utc_offset_minutes=row.start_utc_offset),
        end=WallClockTime(instant=row.end_time, utc_offset_minutes=row.end_utc_offset),
        num_members=row.num_members,
        num_guests=row.num_guests,
        all_day=row.all_day,
        reason=row.reason,
        status=ReservationStatus(row.status),
        approval_state=ApprovalState(row.approval_state),
        rejection_reason=row.rejection_reason,
    )


class ReservationRepository:
    """Persistence for the Reservation aggregate."""

    def get_by_id(self, reservation_id: int, lock: bool = False) -> Optional[Reservation]:
        queryset = ReservationModel.objects.filter(pk=reservation_id)
        if lock:
            queryset = _lock_queryset_if_possible(queryset)
        row = queryset.first()
        return to_domain(row) if row is not None else None

    def active_for_user(self, user_id: int, period: TimeRange) -> List[Reservation]:
        """The user's ACTIVE reservations starting inside ``period``."""
        queryset = ReservationModel.objects.filter(
            user_id=user_id,
            status=ReservationModel.Status.ACTIVE,
            start_time__gte=period.start,
            start_time__lt=period.end,
        )
        return [to_domain(row) for row in queryset]

    def save(self, reservation: Reservation) -> Reservation:
        if reservation.id is None:
            row = ReservationModel()
        else:
            row = ReservationModel.objects.get(pk=reservation.id)

        row.user_id = reservation.user_id
        row.table_id = reservation.table_id
        row.start_time = reservation.start.instant
        row.end_time = reservation.end.instant
        row.start_utc_offset = reservation.start.utc_offset_minutes
        row.end_utc_offset = reservation.end.utc_offset_minutes
        row.num_members = reservation.num_members
        row.num_guests = reservation.num_guests
        row.all_day = reservation.all_day
        row.reason = reservation.reason
        row.status = reservation.status.value
        row.approval_state = reservation.approval_state.value
        row.rejection_reason = reservation.rejection_reason
        row.save()

        reservation.id = row.pk
        reservation.created_at = row.created_at
        reservation.updated_at = row.updated_at
        return reservation


class TableScheduleRepository:
    """Loads table schedules and takes the per-table and per-user locks."""

    def lock_table(self, table_id: int) -> Optional[Table]:
        queryset = _lock_queryset_if_possible(Table.objects.filter(pk=table_id))
        return queryset.first()

    def lock_user(self, user_id: int):
        User = get_user_model()
        queryset = _lock_queryset_if_possible(User.objects.filter(pk=user_id))
        return queryset.first()

    def get_for_table(self, table_id: int, window: TimeRange, margin_minutes: int = 0) -> TableSchedule:
        """
        Schedule of one table around a window

        Loads every ACTIVE reservation that overlaps the window or lies
        within ``margin_minutes`` of it; nothing further away can affect
        the overlap or gap rules. Boundaries are inclusive so exactly
        adjacent reservations are loaded too.
        """
        margin = timedelta(minutes=margin_minutes)
        queryset = ReservationModel.objects.filter(
            table_id=table_id,
            status=ReservationModel.Status.ACTIVE,
            start_time__lte=window.end + margin,
            end_time__gte=window.start - margin,
        )
        return TableSchedule(
            id=table_id,
            table_id=table_id,
            reservations=[to_domain(row) for row in queryset],
        )

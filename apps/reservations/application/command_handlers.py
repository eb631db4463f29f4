"""
Reservation Command Handlers

These are the use cases of the reservation engine. Each one runs inside a
single unit of work: locks are taken, rules are checked against a
consistent snapshot and the result is written before the transaction
commits. Domain events are published only after commit.

Commands:
- CreateReservationCommand: Book a table
- UpdateReservationCommand: Edit an ACTIVE reservation
- ApproveReservationCommand: Approve a pending all-day reservation
- RejectReservationCommand: Reject a pending all-day reservation
- CancelReservationCommand: Cancel a reservation
- CompleteReservationCommand: Mark a reservation as used
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple
from zoneinfo import ZoneInfo
import logging

from django.utils import timezone  # type: ignore

from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import TimeRange, WallClockTime
from apps.reservations.config import get_reservation_policy
from apps.reservations.domain.approval import approval_state_after_edit, initial_approval_state
from apps.reservations.domain.civil_time import (
    civil_date,
    civil_day_bounds,
    club_zone,
    opening_hours,
    to_wall_clock,
)
from apps.reservations.domain.entities import Reservation
from apps.reservations.domain.errors import (
    Forbidden,
    InvalidRange,
    InvalidTransition,
    NotFound,
    StoreFailure,
)
from apps.reservations.domain.policy import ReservationPolicy
from apps.reservations.domain.rules import check_quota_and_window
from apps.reservations.repositories import ReservationRepository, TableScheduleRepository

logger = logging.getLogger(__name__)

CONFIRMED_MESSAGE = "confirmed"
PENDING_MESSAGE = "pending administrator approval"


# ===== Commands =====

@dataclass(frozen=True)
class Requester:
    """Who is asking: identity plus whether they act as a club administrator."""
    user_id: int
    is_admin: bool = False

    @classmethod
    def from_user(cls, user) -> 'Requester':
        return cls(user_id=user.pk, is_admin=user.is_admin())


@dataclass
class CreateReservationCommand:
    """
    Command to book a table

    Naive datetimes are read as club civil time. For all-day bookings the
    end is derived: ``start + duration_hours`` when a duration is given,
    otherwise the club's opening hours on the start's civil day.
    """
    requester: Requester
    table_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    all_day: bool = False
    duration_hours: Optional[float] = None
    num_members: int = 1
    num_guests: int = 0
    reason: str = ''


@dataclass
class UpdateReservationCommand:
    """Command to edit a reservation. ``None`` keeps the current value."""
    reservation_id: int
    requester: Requester
    table_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    all_day: Optional[bool] = None
    duration_hours: Optional[float] = None
    num_members: Optional[int] = None
    num_guests: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class ApproveReservationCommand:
    reservation_id: int
    requester: Requester


@dataclass
class RejectReservationCommand:
    reservation_id: int
    requester: Requester
    rejection_reason: str


@dataclass
class CancelReservationCommand:
    reservation_id: int
    requester: Requester


@dataclass
class CompleteReservationCommand:
    reservation_id: int
    requester: Requester


@dataclass
class ReservationResult:
    reservation: Reservation

    @property
    def pending_approval(self) -> bool:
        return self.reservation.pending_approval

    @property
    def message(self) -> str:
        return PENDING_MESSAGE if self.pending_approval else CONFIRMED_MESSAGE


# ===== Helpers =====

def resolve_window(
    start_time: datetime,
    end_time: Optional[datetime],
    all_day: bool,
    duration_hours: Optional[float],
    policy: ReservationPolicy,
    zone: ZoneInfo,
) -> Tuple[WallClockTime, WallClockTime]:
    """Turn request input into the (start, end) pair the rules check."""
    start = to_wall_clock(start_time, zone)

    if all_day:
        if duration_hours:
            entry_zone = start_time.tzinfo if start_time.utcoffset() is not None else zone
            end_local = (start.instant + timedelta(hours=duration_hours)).astimezone(entry_zone)
            return start, WallClockTime.from_aware(end_local)
        day = civil_date(start.instant, zone)
        hours = opening_hours(day, policy.allowed_start_time, policy.allowed_end_time, zone)
        return (
            WallClockTime.from_aware(hours.start.astimezone(zone)),
            WallClockTime.from_aware(hours.end.astimezone(zone)),
        )

    if end_time is None:
        raise InvalidRange("An end time is required unless the reservation is all-day.")
    return start, to_wall_clock(end_time, zone)


def kept_all_day_duration(
    current: Reservation,
    start_time: datetime,
    end_time: Optional[datetime],
    policy: ReservationPolicy,
    zone: ZoneInfo,
) -> Optional[float]:
    """
    Duration an edited all-day reservation keeps when the edit gives none

    An explicit end fixes the duration. Otherwise a reservation that was
    already all-day keeps its length, unless it spanned the opening hours of
    its day, in which case it spans the opening hours of its new day.
    """
    if end_time is not None:
        start = to_wall_clock(start_time, zone)
        end = to_wall_clock(end_time, zone)
        if end.instant <= start.instant:
            raise InvalidRange()
        return (end.instant - start.instant).total_seconds() / 3600

    if not current.all_day:
        return None
    day = civil_date(current.start.instant, zone)
    if current.window == opening_hours(day, policy.allowed_start_time, policy.allowed_end_time, zone):
        return None
    return current.window.duration_hours


class _ReservationHandler:
    """Shared wiring: repositories, policy source and clock."""

    def __init__(
        self,
        reservation_repo: Optional[ReservationRepository] = None,
        schedule_repo: Optional[TableScheduleRepository] = None,
        policy_provider: Optional[Callable[[], ReservationPolicy]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.reservation_repo = reservation_repo or ReservationRepository()
        self.schedule_repo = schedule_repo or TableScheduleRepository()
        self.policy_provider = policy_provider or get_reservation_policy
        self.clock = clock or timezone.now

    def _load(self, reservation_id: int) -> Reservation:
        reservation = self.reservation_repo.get_by_id(reservation_id, lock=True)
        if reservation is None:
            raise NotFound(f"Reservation {reservation_id} not found.")
        return reservation

    def _validate_window(
        self,
        *,
        table_id: int,
        user_id: int,
        start: WallClockTime,
        end: WallClockTime,
        all_day: bool,
        policy: ReservationPolicy,
        zone: ZoneInfo,
        exclude_id: Optional[int] = None,
    ) -> None:
        """
        Run every window rule under the table and user locks

        The table row is locked before the user row; the schedule and the
        user's reservations for the day are read after both locks are held.
        """
        table = self.schedule_repo.lock_table(table_id)
        self.schedule_repo.lock_user(user_id)

        day = civil_day_bounds(civil_date(start.instant, zone), zone)
        check_quota_and_window(
            table=table,
            start=start.instant,
            end=end.instant,
            all_day=all_day,
            user_reservations=self.reservation_repo.active_for_user(user_id, day),
            policy=policy,
            now=self.clock(),
            zone=zone,
            exclude_id=exclude_id,
        )

        window = TimeRange(start.instant, end.instant)
        schedule = self.schedule_repo.get_for_table(
            table_id, window, policy.min_time_between_reservations_minutes
        )
        schedule.ensure_admissible(window, policy, exclude_id=exclude_id)


# ===== Command Handlers =====

class CreateReservationHandler(_ReservationHandler):
    """
    Handler for CreateReservation command

    1. Read the policy once
    2. Resolve the requested window (all-day windows are derived)
    3. Lock the table, then the user
    4. Quota & window rules, overlap, adjacency
    5. Approval decision
    6. Insert and collect events; publish after commit
    """

    def handle(self, command: CreateReservationCommand) -> ReservationResult:
        policy = self.policy_provider()
        zone = club_zone()
        requester = command.requester

        start, end = resolve_window(
            command.start_time, command.end_time, command.all_day,
            command.duration_hours, policy, zone,
        )

        logger.info(
            f"Creating reservation for table {command.table_id}, "
            f"user {requester.user_id}, window {start} - {end}"
        )

        with DjangoUnitOfWork(store_error=StoreFailure) as uow:
            self._validate_window(
                table_id=command.table_id,
                user_id=requester.user_id,
                start=start,
                end=end,
                all_day=command.all_day,
                policy=policy,
                zone=zone,
            )

            approval_state = initial_approval_state(
                all_day=command.all_day,
                reason=command.reason,
                policy=policy,
                requester_is_admin=requester.is_admin,
            )

            reservation = Reservation(
                user_id=requester.user_id,
                table_id=command.table_id,
                start=start,
                end=end,
                num_members=command.num_members,
                num_guests=command.num_guests,
                all_day=command.all_day,
                reason=command.reason or '',
                approval_state=approval_state,
            )
            self.reservation_repo.save(reservation)
            reservation.record_creation()
            uow.collect_events(reservation)

        logger.info(
            f"Reservation {reservation.id} created "
            f"({reservation.approval_state.value}) for table {reservation.table_id}"
        )
        return ReservationResult(reservation=reservation)


class UpdateReservationHandler(_ReservationHandler):
    """
    Handler for UpdateReservation command

    The owner or an administrator may edit an ACTIVE reservation. When the
    table or the window changes, every window rule runs again on the merged
    values with the edited reservation excluded from the quota and the
    schedule. Quotas always count against the owner, not the editor.
    All-day reservations keep their length when moved; see
    ``kept_all_day_duration``.
    """

    def handle(self, command: UpdateReservationCommand) -> ReservationResult:
        policy = self.policy_provider()
        zone = club_zone()
        requester = command.requester

        with DjangoUnitOfWork(store_error=StoreFailure) as uow:
            current = self._load(command.reservation_id)
            if current.user_id != requester.user_id and not requester.is_admin:
                raise Forbidden("You can only edit your own reservations.")
            if not current.is_active():
                raise InvalidTransition(
                    f"Cannot edit a reservation in status {current.status.value}.",
                    status=current.status.value,
                )

            all_day = current.all_day if command.all_day is None else command.all_day
            table_id = command.table_id or current.table_id
            reason = current.reason if command.reason is None else command.reason

            timing_changed = (
                any(v is not None for v in (command.start_time, command.end_time, command.duration_hours))
                or all_day != current.all_day
            )
            start, end = current.start, current.end
            if timing_changed:
                start_time = command.start_time if command.start_time is not None else current.start.local
                duration_hours = command.duration_hours
                if all_day and duration_hours is None:
                    duration_hours = kept_all_day_duration(current, start_time, command.end_time, policy, zone)
                start, end = resolve_window(
                    start_time,
                    command.end_time if command.end_time is not None else current.end.local,
                    all_day,
                    duration_hours,
                    policy,
                    zone,
                )

            if timing_changed or table_id != current.table_id:
                self._validate_window(
                    table_id=table_id,
                    user_id=current.user_id,
                    start=start,
                    end=end,
                    all_day=all_day,
                    policy=policy,
                    zone=zone,
                    exclude_id=current.id,
                )

            approval_state = approval_state_after_edit(
                current=current.approval_state,
                was_all_day=current.all_day,
                all_day=all_day,
                reason=reason,
                policy=policy,
                requester_is_admin=requester.is_admin,
            )

            current.apply_changes(
                updated_by=requester.user_id,
                table_id=table_id,
                start=start,
                end=end,
                all_day=all_day,
                num_members=current.num_members if command.num_members is None else command.num_members,
                num_guests=current.num_guests if command.num_guests is None else command.num_guests,
                reason=reason,
                approval_state=approval_state,
            )
            self.reservation_repo.save(current)
            uow.collect_events(current)

        logger.info(f"Reservation {current.id} updated by user {requester.user_id}")
        return ReservationResult(reservation=current)


class ApproveReservationHandler(_ReservationHandler):
    """Handler for ApproveReservation command (administrators only)"""

    def handle(self, command: ApproveReservationCommand) -> Reservation:
        if not command.requester.is_admin:
            raise Forbidden("Only administrators can approve reservations.")

        with DjangoUnitOfWork(store_error=StoreFailure) as uow:
            reservation = self._load(command.reservation_id)
            reservation.approve(approved_by=command.requester.user_id)
            self.reservation_repo.save(reservation)
            uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.id} approved by user {command.requester.user_id}")
        return reservation


class RejectReservationHandler(_ReservationHandler):
    """
    Handler for RejectReservation command (administrators only)

    The reservation is cancelled and the owner is notified with the reason
    once the transaction commits.
    """

    def handle(self, command: RejectReservationCommand) -> Reservation:
        if not command.requester.is_admin:
            raise Forbidden("Only administrators can reject reservations.")

        with DjangoUnitOfWork(store_error=StoreFailure) as uow:
            reservation = self._load(command.reservation_id)
            reservation.reject(command.rejection_reason, rejected_by=command.requester.user_id)
            self.reservation_repo.save(reservation)
            uow.collect_events(reservation)

        logger.info(
            f"Reservation {reservation.id} rejected by user {command.requester.user_id}: "
            f"{reservation.rejection_reason}"
        )
        return reservation


class CancelReservationHandler(_ReservationHandler):
    """Handler for CancelReservation command (owner or administrator)"""

    def handle(self, command: CancelReservationCommand) -> Reservation:
        requester = command.requester

        with DjangoUnitOfWork(store_error=StoreFailure) as uow:
            reservation = self._load(command.reservation_id)
            if reservation.user_id != requester.user_id and not requester.is_admin:
                raise Forbidden("You can only cancel your own reservations.")
            reservation.cancel(cancelled_by=requester.user_id)
            self.reservation_repo.save(reservation)
            uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.id} cancelled by user {requester.user_id}")
        return reservation


class CompleteReservationHandler(_ReservationHandler):
    """Handler for CompleteReservation command (administrators only)"""

    def handle(self, command: CompleteReservationCommand) -> Reservation:
        if not command.requester.is_admin:
            raise Forbidden("Only administrators can complete reservations.")

        with DjangoUnitOfWork(store_error=StoreFailure) as uow:
            reservation = self._load(command.reservation_id)
            reservation.complete()
            self.reservation_repo.save(reservation)
            uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.id} completed")
        return reservation

"""
Reservation Domain Entities

Core business entities for the reservation domain:
- Reservation: Main aggregate, one booking of one table by one member
- ReservationStatus: FSM states for the reservation lifecycle
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from shared.domain.base import Aggregate, utc_now
from shared.domain.value_objects import TimeRange, WallClockTime
from apps.reservations.domain.approval import ApprovalState, ensure_transition
from apps.reservations.domain.errors import InvalidTransition, MissingReason, NotRejectable


class ReservationStatus(Enum):
    """
    Reservation Status Finite State Machine

    State transitions:
    - ACTIVE -> CANCELLED (owner or administrator cancelled, or rejected)
    - ACTIVE -> COMPLETED (administrator closed it after use)
    """
    ACTIVE = 'active'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'


@dataclass(eq=False, kw_only=True)
class Reservation(Aggregate):
    """
    Reservation Aggregate Root

    Key invariants:
    - start < end
    - only ACTIVE reservations block their table
    - a rejection reason exists exactly when the approval state is REJECTED
    """
    user_id: int
    table_id: int
    start: WallClockTime
    end: WallClockTime
    num_members: int = 1
    num_guests: int = 0
    all_day: bool = False
    reason: str = ''
    status: ReservationStatus = ReservationStatus.ACTIVE
    approval_state: ApprovalState = ApprovalState.NOT_REQUIRED
    rejection_reason: str = ''

    def __post_init__(self):
        if self.start.instant >= self.end.instant:
            raise ValueError(f"Start ({self.start}) must be before end ({self.end})")
        if self.num_members < 0 or self.num_guests < 0:
            raise ValueError("Member and guest counts cannot be negative")

    @property
    def window(self) -> TimeRange:
        return TimeRange(self.start.instant, self.end.instant)

    @property
    def duration_hours(self) -> float:
        return self.window.duration_hours

    @property
    def approved(self) -> bool:
        return self.approval_state.counts_as_approved

    @property
    def pending_approval(self) -> bool:
        return self.approval_state == ApprovalState.PENDING_APPROVAL

    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE

    def record_creation(self):
        """Emit creation events once the reservation has an identity."""
        from apps.reservations.domain.events import ApprovalRequested, ReservationCreated

        self.add_event(ReservationCreated(
            reservation_id=self.id,
            user_id=self.user_id,
            table_id=self.table_id,
            window=self.window,
            all_day=self.all_day,
            pending_approval=self.pending_approval,
        ))
        if self.pending_approval:
            self.add_event(ApprovalRequested(
                reservation_id=self.id,
                user_id=self.user_id,
                table_id=self.table_id,
                reason=self.reason,
            ))

    def apply_changes(
        self,
        *,
        updated_by: int,
        table_id: int,
        start: WallClockTime,
        end: WallClockTime,
        all_day: bool,
        num_members: int,
        num_guests: int,
        reason: str,
        approval_state: ApprovalState,
    ):
        """
        Replace the editable fields of an ACTIVE reservation

        The caller has already validated the new window against the table
        schedule and decided the approval state.
        Events: ReservationUpdated, ApprovalRequested (when re-entering it)
        """
        if not self.is_active():
            raise InvalidTransition(
                f"Cannot edit a reservation in status {self.status.value}.",
                status=self.status.value,
            )
        if start.instant >= end.instant:
            raise ValueError(f"Start ({start}) must be before end ({end})")

        from apps.reservations.domain.events import ApprovalRequested, ReservationUpdated

        entering_pending = (
            approval_state == ApprovalState.PENDING_APPROVAL
            and self.approval_state != ApprovalState.PENDING_APPROVAL
        )
        if approval_state != self.approval_state:
            ensure_transition(self.approval_state, approval_state)

        self.table_id = table_id
        self.start = start
        self.end = end
        self.all_day = all_day
        self.num_members = num_members
        self.num_guests = num_guests
        self.reason = reason
        self.approval_state = approval_state
        self.updated_at = utc_now()

        self.add_event(ReservationUpdated(
            reservation_id=self.id,
            user_id=self.user_id,
            table_id=self.table_id,
            window=self.window,
            updated_by=updated_by,
        ))
        if entering_pending:
            self.add_event(ApprovalRequested(
                reservation_id=self.id,
                user_id=self.user_id,
                table_id=self.table_id,
                reason=self.reason,
            ))

    def approve(self, approved_by: int):
        """
        Approve a pending all-day reservation (PENDING_APPROVAL -> APPROVED)

        Events: ReservationApproved
        """
        if not self.all_day:
            raise InvalidTransition("Only all-day reservations can be approved.")
        if not self.is_active():
            raise InvalidTransition(
                f"Cannot approve a reservation in status {self.status.value}.",
                status=self.status.value,
            )
        ensure_transition(self.approval_state, ApprovalState.APPROVED)

        from apps.reservations.domain.events import ReservationApproved

        self.approval_state = ApprovalState.APPROVED
        self.updated_at = utc_now()

        self.add_event(ReservationApproved(
            reservation_id=self.id,
            user_id=self.user_id,
            approved_by=approved_by,
        ))

    def reject(self, rejection_reason: str, rejected_by: int):
        """
        Reject a pending all-day reservation (PENDING_APPROVAL -> REJECTED)

        A rejected reservation is cancelled at the same time so its window
        is released.
        Events: ReservationRejected
        """
        if not (rejection_reason or '').strip():
            raise MissingReason("A rejection reason is required.")
        if not self.all_day:
            raise NotRejectable()
        if not self.is_active():
            raise InvalidTransition(
                f"Cannot reject a reservation in status {self.status.value}.",
                status=self.status.value,
            )
        ensure_transition(self.approval_state, ApprovalState.REJECTED)

        from apps.reservations.domain.events import ReservationRejected

        self.approval_state = ApprovalState.REJECTED
        self.rejection_reason = rejection_reason.strip()
        self.status = ReservationStatus.CANCELLED
        self.updated_at = utc_now()

        self.add_event(ReservationRejected(
            reservation_id=self.id,
            user_id=self.user_id,
            rejected_by=rejected_by,
            rejection_reason=self.rejection_reason,
        ))

    def cancel(self, cancelled_by: Optional[int] = None):
        """
        Cancel the reservation (ACTIVE -> CANCELLED)

        Events: ReservationCancelled
        """
        if not self.is_active():
            raise InvalidTransition(
                f"Cannot cancel a reservation in status {self.status.value}.",
                status=self.status.value,
            )

        from apps.reservations.domain.events import ReservationCancelled

        self.status = ReservationStatus.CANCELLED
        self.updated_at = utc_now()

        self.add_event(ReservationCancelled(
            reservation_id=self.id,
            user_id=self.user_id,
            cancelled_by=cancelled_by,
        ))

    def complete(self):
        """
        Mark the reservation as used (ACTIVE -> COMPLETED)

        Events: ReservationCompleted
        """
        if not self.is_active():
            raise InvalidTransition(
                f"Cannot complete a reservation in status {self.status.value}.",
                status=self.status.value,
            )

        from apps.reservations.domain.events import ReservationCompleted

        self.status = ReservationStatus.COMPLETED
        self.updated_at = utc_now()

        self.add_event(ReservationCompleted(
            reservation_id=self.id,
            user_id=self.user_id,
        ))

"""
Reservation Domain Events

Events that represent things that have happened to reservations.
They are published on the message bus after the transaction commits.
"""

from dataclasses import dataclass
from typing import Optional

from shared.domain.base import DomainEvent
from shared.domain.value_objects import TimeRange


@dataclass
class ReservationCreated(DomainEvent):
    """
    Event: A reservation was accepted by the engine

    ``pending_approval`` is true for all-day bookings waiting for an
    administrator.
    """
    reservation_id: int
    user_id: int
    table_id: int
    window: TimeRange
    all_day: bool
    pending_approval: bool


@dataclass
class ReservationUpdated(DomainEvent):
    reservation_id: int
    user_id: int
    table_id: int
    window: TimeRange
    updated_by: int


@dataclass
class ApprovalRequested(DomainEvent):
    """
    Event: An all-day reservation entered PENDING_APPROVAL

    Triggers:
    - Notify club administrators
    """
    reservation_id: int
    user_id: int
    table_id: int
    reason: str


@dataclass
class ReservationApproved(DomainEvent):
    """
    Event: An administrator approved a pending reservation

    Triggers:
    - Notify the owner
    """
    reservation_id: int
    user_id: int
    approved_by: int


@dataclass
class ReservationRejected(DomainEvent):
    """
    Event: An administrator rejected a pending reservation

    Triggers:
    - Notify the owner with the rejection reason
    """
    reservation_id: int
    user_id: int
    rejected_by: int
    rejection_reason: str


@dataclass
class ReservationCancelled(DomainEvent):
    """
    Event: A reservation was cancelled

    Triggers:
    - Notify the owner when somebody else cancelled it
    """
    reservation_id: int
    user_id: int
    cancelled_by: Optional[int]


@dataclass
class ReservationCompleted(DomainEvent):
    reservation_id: int
    user_id: int

"""
Reservation Rules

Pure checks applied to a candidate reservation window. Nothing here reads
or writes the database: callers load the table, the relevant reservations
and the policy, and pass them in. Each check raises the matching
``ReservationError`` on the first violated rule.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from shared.domain.value_objects import TimeRange
from apps.reservations.domain.civil_time import civil_date, civil_datetime, civil_day_bounds
from apps.reservations.domain.entities import Reservation
from apps.reservations.domain.errors import (
    ConsecutiveNotAllowed,
    DailyQuotaExceeded,
    DurationExceeded,
    InsufficientGap,
    InsufficientNotice,
    InvalidRange,
    NotFound,
    OutsideAllowedHours,
    PastDate,
    ResourceConflict,
)
from apps.reservations.domain.policy import ReservationPolicy


def _competitors(reservations: Iterable[Reservation], exclude_id: Optional[int]) -> List[Reservation]:
    return [
        r for r in reservations
        if r.is_active() and (exclude_id is None or r.id != exclude_id)
    ]


def count_reservations_on_day(
    reservations: Iterable[Reservation],
    day: date,
    zone: ZoneInfo,
    exclude_id: Optional[int] = None,
) -> int:
    """Active reservations whose start falls on the given club calendar day."""
    bounds = civil_day_bounds(day, zone)
    return sum(
        1 for r in _competitors(reservations, exclude_id)
        if bounds.contains(r.start.instant)
    )


def check_quota_and_window(
    *,
    table,
    start: datetime,
    end: datetime,
    all_day: bool,
    user_reservations: Iterable[Reservation],
    policy: ReservationPolicy,
    now: datetime,
    zone: ZoneInfo,
    exclude_id: Optional[int] = None,
) -> None:
    """
    Validate a candidate window against the table and the club policy

    Rules run in a fixed order and the first failure wins: table exists,
    range is valid, not in the past, advance notice, maximum duration,
    opening hours, daily quota. ``user_reservations`` only needs to cover
    the candidate's civil day; anything else is ignored.
    """
    if table is None or not getattr(table, 'is_active', True):
        raise NotFound("Table not found.")

    if start >= end:
        raise InvalidRange()

    if start < now:
        raise PastDate()

    notice_hours = (start - now).total_seconds() / 3600
    if policy.min_hours_in_advance > 0 and notice_hours < policy.min_hours_in_advance:
        raise InsufficientNotice(
            f"Reservations must be made at least {policy.min_hours_in_advance:g} hours in advance.",
            min_hours_in_advance=policy.min_hours_in_advance,
        )

    duration_hours = (end - start).total_seconds() / 3600
    if not all_day and duration_hours > policy.max_hours_per_reservation:
        raise DurationExceeded(
            f"A reservation cannot last more than {policy.max_hours_per_reservation:g} hours.",
            max_hours=policy.max_hours_per_reservation,
            requested_hours=round(duration_hours, 2),
        )

    day = civil_date(start, zone)
    if not all_day:
        opens = civil_datetime(day, policy.allowed_start_time, zone)
        closes = civil_datetime(day, policy.allowed_end_time, zone)
        if start < opens or end > closes:
            raise OutsideAllowedHours(
                f"Reservations must be between {policy.allowed_start_time:%H:%M} "
                f"and {policy.allowed_end_time:%H:%M}.",
                allowed_start_time=policy.allowed_start_time.strftime('%H:%M'),
                allowed_end_time=policy.allowed_end_time.strftime('%H:%M'),
            )

    if policy.has_daily_quota:
        count = count_reservations_on_day(user_reservations, day, zone, exclude_id)
        if count >= policy.max_reservations_per_user_per_day:
            raise DailyQuotaExceeded(
                f"You have reached the limit of {policy.max_reservations_per_user_per_day} "
                f"reservations per day.",
                limit=policy.max_reservations_per_user_per_day,
            )


def find_overlapping(
    window: TimeRange,
    reservations: Iterable[Reservation],
    exclude_id: Optional[int] = None,
) -> List[Reservation]:
    return [r for r in _competitors(reservations, exclude_id) if r.window.overlaps_with(window)]


def ensure_no_overlap(
    window: TimeRange,
    reservations: Iterable[Reservation],
    exclude_id: Optional[int] = None,
) -> None:
    conflicts = find_overlapping(window, reservations, exclude_id)
    if conflicts:
        raise ResourceConflict(
            conflicting_reservation_ids=sorted(r.id for r in conflicts if r.id is not None),
        )


def check_adjacency(
    window: TimeRange,
    reservations: Iterable[Reservation],
    policy: ReservationPolicy,
    exclude_id: Optional[int] = None,
) -> None:
    """
    Apply the consecutive-booking and minimum-gap rules

    Only meaningful for a window that overlaps nothing; overlapping
    reservations are skipped here. The consecutive rule is checked first.
    """
    neighbours = [
        r for r in _competitors(reservations, exclude_id)
        if not r.window.overlaps_with(window)
    ]

    if not policy.allow_consecutive_reservations:
        for r in neighbours:
            if window.is_adjacent_to(r.window):
                raise ConsecutiveNotAllowed(conflicting_reservation_id=r.id)

    if policy.requires_gap:
        required = policy.min_time_between_reservations_minutes
        too_close = [
            (window.gap_minutes_to(r.window), r) for r in neighbours
            if window.gap_minutes_to(r.window) < required
        ]
        if too_close:
            actual, closest = min(too_close, key=lambda item: item[0])
            raise InsufficientGap(
                f"There must be at least {required} minutes between reservations on "
                f"the same table; found {actual:g}.",
                actual_minutes=round(actual, 2),
                required_minutes=required,
                conflicting_reservation_id=closest.id,
            )

"""
Civil time helpers

The club runs on one canonical civil calendar: ``CLUB_TIME_ZONE`` (falls
back to ``TIME_ZONE``). Daily quotas, the allowed-hours window and all-day
windows are computed on that calendar with ``zoneinfo``, so day boundaries
follow daylight-saving changes. Input is converted here, at the boundary,
and everything past this module works on aware UTC instants.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from django.conf import settings  # type: ignore

from shared.domain.value_objects import TimeRange, WallClockTime
from apps.reservations.domain.errors import InvalidRange


def club_zone() -> ZoneInfo:
    return ZoneInfo(getattr(settings, "CLUB_TIME_ZONE", None) or settings.TIME_ZONE)


def to_wall_clock(value: datetime, zone: ZoneInfo | None = None) -> WallClockTime:
    """
    Pin a user-supplied datetime to an instant.

    Aware values keep the offset they were written with; naive values are
    read as club civil time. A reading skipped by a daylight-saving jump
    never happened on the wall clock and is refused; a repeated reading
    takes its first occurrence.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=zone or club_zone())
    if not exists_on_wall_clock(value):
        raise InvalidRange(
            f"{value.replace(tzinfo=None).isoformat()} does not exist in {value.tzinfo} "
            f"(skipped by a daylight-saving change).",
        )
    return WallClockTime.from_aware(value)


def exists_on_wall_clock(value: datetime) -> bool:
    round_trip = value.astimezone(timezone.utc).astimezone(value.tzinfo)
    return round_trip.replace(tzinfo=None) == value.replace(tzinfo=None)


def civil_date(instant: datetime, zone: ZoneInfo | None = None) -> date:
    return instant.astimezone(zone or club_zone()).date()


def civil_datetime(day: date, clock: time, zone: ZoneInfo | None = None) -> datetime:
    """Aware datetime for a wall-clock reading on a club calendar day."""
    return datetime.combine(day, clock, tzinfo=zone or club_zone())


def civil_day_bounds(day: date, zone: ZoneInfo | None = None) -> TimeRange:
    """[00:00, next day 00:00) of a club calendar day, as UTC instants."""
    zone = zone or club_zone()
    start = civil_datetime(day, time.min, zone).astimezone(timezone.utc)
    end = civil_datetime(day + timedelta(days=1), time.min, zone).astimezone(timezone.utc)
    return TimeRange(start, end)


def opening_hours(day: date, opens: time, closes: time, zone: ZoneInfo | None = None) -> TimeRange:
    """The configured daily window of a club calendar day."""
    zone = zone or club_zone()
    return TimeRange(
        civil_datetime(day, opens, zone).astimezone(timezone.utc),
        civil_datetime(day, closes, zone).astimezone(timezone.utc),
    )

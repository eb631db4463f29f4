"""
Common Value Objects

Value objects used across multiple domains:
- TimeRange: A half-open window of absolute instants [start, end)
- WallClockTime: An instant paired with the UTC offset it was entered in
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class TimeRange(ValueObject):
    """
    Time range value object

    Represents the half-open interval [start, end) between two timezone-aware
    instants. Comparisons are made on the instants, never on clock readings,
    so two ranges in different offsets compare correctly.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("TimeRange requires timezone-aware datetimes")
        if self.start >= self.end:
            raise ValueError(f"Start ({self.start}) must be before end ({self.end})")

    def overlaps_with(self, other: 'TimeRange') -> bool:
        """
        Check if this range overlaps with another

        Overlap formula: start1 < end2 AND start2 < end1.
        Note: end is exclusive, so adjacent ranges don't overlap.

        Examples:
            - [09:00, 11:00) overlaps with [10:00, 12:00) -> True
            - [09:00, 11:00) overlaps with [09:30, 10:00) -> True (containment)
            - [09:00, 11:00) overlaps with [11:00, 13:00) -> False (adjacent)
        """
        if not isinstance(other, TimeRange):
            raise TypeError("Can only check overlap with another TimeRange")
        return self.start < other.end and other.start < self.end

    def is_adjacent_to(self, other: 'TimeRange') -> bool:
        """True when one range starts at the exact instant the other ends."""
        return self.start == other.end or self.end == other.start

    def gap_to(self, other: 'TimeRange') -> timedelta:
        """
        Distance between two non-overlapping ranges

        Returns the time between the end of the earlier range and the start
        of the later one. Overlapping ranges have no gap and raise ValueError.
        """
        if self.overlaps_with(other):
            raise ValueError(f"{self} overlaps {other}; gap is undefined")
        if other.end <= self.start:
            return self.start - other.end
        return other.start - self.end

    def gap_minutes_to(self, other: 'TimeRange') -> float:
        return self.gap_to(other).total_seconds() / 60

    def contains(self, instant: datetime) -> bool:
        """start is inclusive, end is exclusive"""
        return self.start <= instant < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_hours(self) -> float:
        return self.duration.total_seconds() / 3600

    def __str__(self):
        return f"{self.start.isoformat()} - {self.end.isoformat()}"

    def __repr__(self):
        return f"TimeRange({self.start.isoformat()}, {self.end.isoformat()})"


@dataclass(frozen=True)
class WallClockTime(ValueObject):
    """
    An absolute instant together with the UTC offset the user entered it in

    Storing (instant, offset) instead of a bare local time lets the original
    wall-clock reading be rebuilt exactly, whatever daylight-saving rules
    apply at the moment of reading.
    """
    instant: datetime
    utc_offset_minutes: int

    def __post_init__(self):
        if self.instant.tzinfo is None:
            raise ValueError("WallClockTime requires a timezone-aware instant")
        if not -24 * 60 < self.utc_offset_minutes < 24 * 60:
            raise ValueError(f"Invalid UTC offset: {self.utc_offset_minutes} minutes")

    @classmethod
    def from_aware(cls, value: datetime) -> 'WallClockTime':
        offset = value.utcoffset()
        if offset is None:
            raise ValueError("WallClockTime requires a timezone-aware datetime")
        return cls(
            instant=value.astimezone(timezone.utc),
            utc_offset_minutes=int(offset.total_seconds() // 60),
        )

    @property
    def local(self) -> datetime:
        """The instant as the user saw it, with its original fixed offset."""
        tz = timezone(timedelta(minutes=self.utc_offset_minutes))
        return self.instant.astimezone(tz)

    def __str__(self):
        return self.local.isoformat()

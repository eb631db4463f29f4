"""
Reservation Policy

The club's booking rules as an immutable value object. The configuration
provider builds one per command from the ``ReservationConfig`` row and every
checker receives it explicitly, so a command never mixes two versions of
the policy.
"""

from dataclasses import dataclass
from datetime import time

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class ReservationPolicy(ValueObject):
    """
    Booking rules applied to every reservation request

    Zero disables the numeric limits that are optional
    (daily quota, advance notice, minimum gap).
    """
    max_hours_per_reservation: float = 4.0
    max_reservations_per_user_per_day: int = 1
    min_hours_in_advance: float = 0.0
    allowed_start_time: time = time(8, 0)
    allowed_end_time: time = time(22, 0)
    requires_approval_for_all_day: bool = True
    allow_consecutive_reservations: bool = True
    min_time_between_reservations_minutes: int = 0

    def __post_init__(self):
        if self.max_hours_per_reservation <= 0:
            raise ValueError("max_hours_per_reservation must be positive")
        if self.max_reservations_per_user_per_day < 0:
            raise ValueError("max_reservations_per_user_per_day cannot be negative")
        if self.min_hours_in_advance < 0:
            raise ValueError("min_hours_in_advance cannot be negative")
        if self.min_time_between_reservations_minutes < 0:
            raise ValueError("min_time_between_reservations_minutes cannot be negative")
        if self.allowed_start_time >= self.allowed_end_time:
            raise ValueError(
                f"allowed_start_time ({self.allowed_start_time}) must be before "
                f"allowed_end_time ({self.allowed_end_time})"
            )

    @property
    def has_daily_quota(self) -> bool:
        return self.max_reservations_per_user_per_day > 0

    @property
    def requires_gap(self) -> bool:
        return self.min_time_between_reservations_minutes > 0

    def to_dict(self) -> dict:
        return {
            'max_hours_per_reservation': self.max_hours_per_reservation,
            'max_reservations_per_user_per_day': self.max_reservations_per_user_per_day,
            'min_hours_in_advance': self.min_hours_in_advance,
            'allowed_start_time': self.allowed_start_time.strftime('%H:%M'),
            'allowed_end_time': self.allowed_end_time.strftime('%H:%M'),
            'requires_approval_for_all_day': self.requires_approval_for_all_day,
            'allow_consecutive_reservations': self.allow_consecutive_reservations,
            'min_time_between_reservations_minutes': self.min_time_between_reservations_minutes,
        }

"""
Table Schedule Aggregate

All window allocations on a table go through this aggregate. It holds the
ACTIVE reservations of one table around a candidate window and admits a
candidate only when it overlaps none of them and respects the
consecutive-booking and minimum-gap rules.

Strategy:
1. Domain validation: ensure_admissible() runs the overlap and adjacency rules
2. Pessimistic locking: the table row is locked (SELECT FOR UPDATE) before
   the schedule is loaded, so two admits on one table never interleave
"""

from dataclasses import dataclass, field
from typing import List, Optional

from shared.domain.base import Aggregate
from shared.domain.value_objects import TimeRange
from apps.reservations.domain import rules
from apps.reservations.domain.entities import Reservation
from apps.reservations.domain.policy import ReservationPolicy


@dataclass(eq=False, kw_only=True)
class TableSchedule(Aggregate):
    """
    Table Schedule Aggregate Root

    Key invariants:
    - No two ACTIVE reservations of the table overlap
    - Adjacency and gap rules hold between neighbouring reservations

    Usage:
        schedule = schedule_repo.get_for_table(table_id, window, margin_minutes)
        schedule.ensure_admissible(window, policy, exclude_id=reservation_id)
    """
    table_id: int
    reservations: List[Reservation] = field(default_factory=list)

    def ensure_admissible(
        self,
        window: TimeRange,
        policy: ReservationPolicy,
        exclude_id: Optional[int] = None,
    ) -> None:
        """Raise the first overlap or adjacency violation for the window."""
        rules.ensure_no_overlap(window, self.reservations, exclude_id)
        rules.check_adjacency(window, self.reservations, policy, exclude_id)

    def __str__(self):
        return f"TableSchedule(table={self.table_id}, reservations={len(self.reservations)})"

"""
Reservation Queries

Read-side helpers used by the API. They return querysets so views can
paginate and filter further.
"""

from datetime import date

from apps.reservations.domain.civil_time import civil_day_bounds, club_zone
from apps.reservations.models import Reservation


class ReservationQueries:

    @staticmethod
    def base():
        return Reservation.objects.select_related("user", "table")

    @classmethod
    def visible_to(cls, user):
        """Administrators see every reservation, members only their own."""
        queryset = cls.base()
        if user.is_admin():
            return queryset
        return queryset.filter(user=user)

    @classmethod
    def pending_approvals(cls):
        return cls.base().filter(
            status=Reservation.Status.ACTIVE,
            approval_state=Reservation.ApprovalState.PENDING_APPROVAL,
        ).order_by("start_time")

    @staticmethod
    def starting_on(queryset, day: date):
        """Reservations whose start falls on the given club calendar day."""
        bounds = civil_day_bounds(day, club_zone())
        return queryset.filter(start_time__gte=bounds.start, start_time__lt=bounds.end)

    @classmethod
    def table_agenda(cls, table_id: int, day: date):
        """ACTIVE reservations of a table touching a club calendar day."""
        bounds = civil_day_bounds(day, club_zone())
        return cls.base().filter(
            table_id=table_id,
            status=Reservation.Status.ACTIVE,
            start_time__lt=bounds.end,
            end_time__gt=bounds.start,
        ).order_by("start_time")

"""Filters for the reservation list endpoint."""

from __future__ import annotations

import django_filters  # type: ignore

from .application.queries import ReservationQueries
from .models import Reservation


class ReservationFilter(django_filters.FilterSet):
    table = django_filters.NumberFilter(field_name="table_id")
    status = django_filters.ChoiceFilter(choices=Reservation.Status.choices)
    approval_state = django_filters.ChoiceFilter(choices=Reservation.ApprovalState.choices)
    date = django_filters.DateFilter(method="filter_date", label="Club calendar day (YYYY-MM-DD)")

    class Meta:
        model = Reservation
        fields = ["table", "status", "approval_state", "all_day", "date"]

    def filter_date(self, queryset, name, value):  # type: ignore
        return ReservationQueries.starting_on(queryset, value)

"""API views for the table inventory."""

from __future__ import annotations

from datetime import date

from django.utils import timezone  # type: ignore
from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import ValidationError  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.reservations.application.queries import ReservationQueries
from apps.reservations.domain.civil_time import civil_date
from apps.reservations.serializers import ReservationSerializer
from apps.users.permissions import IsClubAdminOrReadOnly

from .models import Table
from .serializers import TableSerializer


class TableViewSet(viewsets.ModelViewSet):
    """Members browse bookable tables; administrators manage the inventory."""

    serializer_class = TableSerializer
    permission_classes = [IsClubAdminOrReadOnly]
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore
        if self.request.user.is_admin():
            return Table.objects.all()
        return Table.bookable.all()

    def destroy(self, request, *args, **kwargs):  # type: ignore
        """Tables with history are deactivated instead of deleted."""
        table: Table = self.get_object()  # type: ignore
        table.is_active = False
        table.save(update_fields=["is_active", "updated_at"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def agenda(self, request, pk=None):  # type: ignore
        """ACTIVE reservations of the table on one club calendar day."""
        table: Table = self.get_object()  # type: ignore
        raw_day = request.query_params.get("date")
        if raw_day:
            try:
                day = date.fromisoformat(raw_day)
            except ValueError:
                raise ValidationError({"date": "Use the YYYY-MM-DD format."})
        else:
            day = civil_date(timezone.now())

        reservations = ReservationQueries.table_agenda(table.pk, day)
        return Response({
            "table": TableSerializer(table).data,
            "date": day.isoformat(),
            "reservations": ReservationSerializer(reservations, many=True).data,
        })

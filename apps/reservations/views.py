"""API views for the reservation engine."""

from __future__ import annotations

from rest_framework import generics, mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsClubAdmin, IsClubAdminOrReadOnly

from .application.command_handlers import (
    ApproveReservationCommand,
    ApproveReservationHandler,
    CancelReservationCommand,
    CancelReservationHandler,
    CompleteReservationCommand,
    CompleteReservationHandler,
    CreateReservationCommand,
    CreateReservationHandler,
    RejectReservationCommand,
    RejectReservationHandler,
    Requester,
    ReservationResult,
    UpdateReservationCommand,
    UpdateReservationHandler,
)
from .application.queries import ReservationQueries
from .filters import ReservationFilter
from .models import ReservationConfig
from .serializers import (
    RejectReservationSerializer,
    ReservationConfigSerializer,
    ReservationSerializer,
    ReservationWriteSerializer,
)


class ReservationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Viewset for booking tables

    Writes go through the command handlers; engine errors are rendered by
    the project's exception handler.
    """

    serializer_class = ReservationSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = ReservationFilter
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore
        return ReservationQueries.visible_to(self.request.user)

    def _result_response(self, result: ReservationResult, status_code=status.HTTP_200_OK) -> Response:
        row = ReservationQueries.base().get(pk=result.reservation.id)
        return Response(
            {
                "message": result.message,
                "pending_approval": result.pending_approval,
                "reservation": ReservationSerializer(row, context=self.get_serializer_context()).data,
            },
            status=status_code,
        )

    def _reservation_response(self, reservation_id: int) -> Response:
        row = ReservationQueries.base().get(pk=reservation_id)
        return Response(ReservationSerializer(row, context=self.get_serializer_context()).data)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = ReservationWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = CreateReservationHandler().handle(CreateReservationCommand(
            requester=Requester.from_user(request.user),
            table_id=data["table"],
            start_time=data["start_time"],
            end_time=data.get("end_time"),
            all_day=data.get("all_day", False),
            duration_hours=data.get("duration_hours"),
            num_members=data.get("num_members", 1),
            num_guests=data.get("num_guests", 0),
            reason=data.get("reason", ""),
        ))
        return self._result_response(result, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):  # type: ignore
        partial = kwargs.pop("partial", False)
        serializer = ReservationWriteSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = UpdateReservationHandler().handle(UpdateReservationCommand(
            reservation_id=int(kwargs["pk"]),
            requester=Requester.from_user(request.user),
            table_id=data.get("table"),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            all_day=data.get("all_day"),
            duration_hours=data.get("duration_hours"),
            num_members=data.get("num_members"),
            num_guests=data.get("num_guests"),
            reason=data.get("reason"),
        ))
        return self._result_response(result)

    def partial_update(self, request, *args, **kwargs):  # type: ignore
        kwargs["partial"] = True
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        """Deleting a reservation cancels it; the row is kept for history."""
        CancelReservationHandler().handle(CancelReservationCommand(
            reservation_id=int(kwargs["pk"]),
            requester=Requester.from_user(request.user),
        ))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        reservation = CancelReservationHandler().handle(CancelReservationCommand(
            reservation_id=int(pk),
            requester=Requester.from_user(request.user),
        ))
        return self._reservation_response(reservation.id)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        reservation = CompleteReservationHandler().handle(CompleteReservationCommand(
            reservation_id=int(pk),
            requester=Requester.from_user(request.user),
        ))
        return self._reservation_response(reservation.id)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        reservation = ApproveReservationHandler().handle(ApproveReservationCommand(
            reservation_id=int(pk),
            requester=Requester.from_user(request.user),
        ))
        return self._reservation_response(reservation.id)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        serializer = RejectReservationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = RejectReservationHandler().handle(RejectReservationCommand(
            reservation_id=int(pk),
            requester=Requester.from_user(request.user),
            rejection_reason=serializer.validated_data.get("rejection_reason", ""),
        ))
        return self._reservation_response(reservation.id)

    @action(detail=False, methods=["get"], permission_classes=[IsClubAdmin])
    def pending(self, request):  # type: ignore
        queryset = ReservationQueries.pending_approvals()
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        return Response(self.get_serializer(queryset, many=True).data)


class ReservationConfigView(generics.RetrieveUpdateAPIView):
    """Read the booking policy; administrators may change it."""

    serializer_class = ReservationConfigSerializer
    permission_classes = [IsClubAdminOrReadOnly]

    def get_object(self):  # type: ignore
        return ReservationConfig.load()

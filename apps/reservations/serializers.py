"""Serializers for the reservation API."""

from __future__ import annotations

from django.utils.dateparse import parse_datetime  # type: ignore

from rest_framework import serializers  # type: ignore

from .models import Reservation, ReservationConfig


class WallClockDateTimeField(serializers.Field):
    """
    ISO-8601 datetime that keeps the offset it was written with

    ``DateTimeField`` converts aware input to the server timezone, which
    loses the member's offset. Naive values are returned naive and read as
    club civil time further down.
    """

    default_error_messages = {
        "invalid": "Datetime has wrong format. Use ISO-8601, e.g. 2030-06-12T09:00:00+02:00.",
    }

    def to_internal_value(self, data):  # type: ignore
        if not isinstance(data, str):
            self.fail("invalid")
        try:
            value = parse_datetime(data.strip())
        except ValueError:
            value = None
        if value is None:
            self.fail("invalid")
        return value

    def to_representation(self, value):  # type: ignore
        return value.isoformat()


class ReservationSerializer(serializers.ModelSerializer):
    """Reservation as the member entered it."""

    user_id = serializers.ReadOnlyField(source="user.id")
    user_name = serializers.ReadOnlyField(source="user.display_name")
    table_name = serializers.ReadOnlyField(source="table.name")
    start_time = serializers.SerializerMethodField()
    end_time = serializers.SerializerMethodField()
    approved = serializers.ReadOnlyField()
    pending_approval = serializers.ReadOnlyField()

    class Meta:
        model = Reservation
        fields = [
            "id",
            "user_id",
            "user_name",
            "table",
            "table_name",
            "start_time",
            "end_time",
            "duration_hours",
            "num_members",
            "num_guests",
            "all_day",
            "reason",
            "status",
            "approval_state",
            "approved",
            "pending_approval",
            "rejection_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_start_time(self, obj: Reservation) -> str:
        return obj.local_start.isoformat()

    def get_end_time(self, obj: Reservation) -> str:
        return obj.local_end.isoformat()


class ReservationWriteSerializer(serializers.Serializer):
    """
    Input for creating or editing a reservation

    Only shape is validated here; every booking rule is enforced by the
    command handlers so API clients get one consistent error format.
    """

    table = serializers.IntegerField(min_value=1)
    start_time = WallClockDateTimeField()
    end_time = WallClockDateTimeField(required=False, allow_null=True)
    all_day = serializers.BooleanField(required=False, default=False)
    duration_hours = serializers.FloatField(required=False, allow_null=True, min_value=0.25, max_value=24)
    num_members = serializers.IntegerField(required=False, default=1, min_value=0)
    num_guests = serializers.IntegerField(required=False, default=0, min_value=0)
    reason = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):  # type: ignore
        if self.partial:
            return attrs
        if not attrs.get("all_day") and attrs.get("end_time") is None:
            raise serializers.ValidationError({"end_time": "This field is required unless all_day is set."})
        return attrs


class RejectReservationSerializer(serializers.Serializer):
    rejection_reason = serializers.CharField(required=False, allow_blank=True, default="")


class ReservationConfigSerializer(serializers.ModelSerializer):
    allowed_start_time = serializers.TimeField(format="%H:%M")
    allowed_end_time = serializers.TimeField(format="%H:%M")

    class Meta:
        model = ReservationConfig
        fields = [
            "max_hours_per_reservation",
            "max_reservations_per_user_per_day",
            "min_hours_in_advance",
            "allowed_start_time",
            "allowed_end_time",
            "requires_approval_for_all_day",
            "allow_consecutive_reservations",
            "min_time_between_reservations_minutes",
            "updated_at",
        ]
        read_only_fields = ["updated_at"]

    def validate(self, attrs):  # type: ignore
        opens = attrs.get("allowed_start_time", getattr(self.instance, "allowed_start_time", None))
        closes = attrs.get("allowed_end_time", getattr(self.instance, "allowed_end_time", None))
        if opens is not None and closes is not None and opens >= closes:
            raise serializers.ValidationError(
                {"allowed_end_time": "Closing time must be after opening time."}
            )
        return attrs

"""Admin registration for reservations."""

from __future__ import annotations

from django.contrib import admin

from .models import Reservation, ReservationConfig


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "table",
        "user",
        "start_time",
        "end_time",
        "all_day",
        "status",
        "approval_state",
        "created_at",
    )
    list_filter = ("status", "approval_state", "all_day", "table")
    search_fields = ("user__email", "table__name", "reason")
    readonly_fields = (
        "start_time",
        "end_time",
        "start_utc_offset",
        "end_utc_offset",
        "duration_hours",
        "approval_state",
        "rejection_reason",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):  # type: ignore
        # Bookings are created through the API so every rule applies.
        return False


@admin.register(ReservationConfig)
class ReservationConfigAdmin(admin.ModelAdmin):
    list_display = (
        "max_hours_per_reservation",
        "max_reservations_per_user_per_day",
        "allowed_start_time",
        "allowed_end_time",
        "requires_approval_for_all_day",
        "updated_at",
    )

    def has_add_permission(self, request):  # type: ignore
        return not ReservationConfig.objects.exists()

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False

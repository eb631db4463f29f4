"""Reservation models for the club."""

from __future__ import annotations

from datetime import time, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.reservations.domain.policy import ReservationPolicy


class Reservation(models.Model):
    """A member's booking of one table for a window of time."""

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    class ApprovalState(models.TextChoices):
        NOT_REQUIRED = "not_required", _("Not required")
        PENDING_APPROVAL = "pending_approval", _("Pending approval")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reservations",
    )
    table = models.ForeignKey(
        "tables.Table",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    start_time = models.DateTimeField(_("Start"), help_text=_("Stored in UTC."))
    end_time = models.DateTimeField(_("End"), help_text=_("Stored in UTC."))
    start_utc_offset = models.SmallIntegerField(
        default=0,
        help_text=_("UTC offset, in minutes, the start time was entered in."),
    )
    end_utc_offset = models.SmallIntegerField(
        default=0,
        help_text=_("UTC offset, in minutes, the end time was entered in."),
    )
    duration_hours = models.FloatField(default=0, editable=False)
    num_members = models.PositiveSmallIntegerField(default=1)
    num_guests = models.PositiveSmallIntegerField(default=0)
    all_day = models.BooleanField(default=False)
    reason = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    approval_state = models.CharField(
        max_length=20,
        choices=ApprovalState.choices,
        default=ApprovalState.NOT_REQUIRED,
    )
    rejection_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["start_time"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="reservation_valid_window",
            ),
        ]
        indexes = [
            models.Index(fields=["table", "status", "start_time"], name="reservation_table_status_start"),
            models.Index(fields=["user", "status", "start_time"], name="reservation_user_status_start"),
            models.Index(fields=["approval_state"], name="reservation_approval_state"),
        ]

    def __str__(self) -> str:
        return f"Reservation #{self.pk} of table {self.table_id} by user {self.user_id}"

    def clean(self) -> None:
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError(_("The end time must be after the start time."))

    def save(self, *args, **kwargs):
        if self.start_time and self.end_time:
            seconds = (self.end_time - self.start_time).total_seconds()
            self.duration_hours = round(seconds / 3600, 4)
        super().save(*args, **kwargs)

    @property
    def approved(self) -> bool:
        return self.approval_state in (
            self.ApprovalState.NOT_REQUIRED,
            self.ApprovalState.APPROVED,
        )

    @property
    def pending_approval(self) -> bool:
        return self.approval_state == self.ApprovalState.PENDING_APPROVAL

    @property
    def local_start(self):
        """Start as the member entered it, with the original UTC offset."""
        return self.start_time.astimezone(dt_timezone(timedelta(minutes=self.start_utc_offset)))

    @property
    def local_end(self):
        return self.end_time.astimezone(dt_timezone(timedelta(minutes=self.end_utc_offset)))


class ReservationConfig(models.Model):
    """
    The club's booking policy

    There is exactly one row (pk=1). Use ``ReservationConfig.load()`` to
    read it; saving always writes that row.
    """

    SINGLETON_ID = 1

    max_hours_per_reservation = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("4"),
        validators=[MinValueValidator(Decimal("0.25"))],
    )
    max_reservations_per_user_per_day = models.PositiveSmallIntegerField(
        default=1,
        help_text=_("0 disables the daily limit."),
    )
    min_hours_in_advance = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    allowed_start_time = models.TimeField(default=time(8, 0))
    allowed_end_time = models.TimeField(default=time(22, 0))
    requires_approval_for_all_day = models.BooleanField(default=True)
    allow_consecutive_reservations = models.BooleanField(default=True)
    min_time_between_reservations_minutes = models.PositiveIntegerField(
        default=0,
        help_text=_("Minimum minutes between two reservations on the same table. 0 disables it."),
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reservation policy")
        verbose_name_plural = _("Reservation policy")

    def __str__(self) -> str:
        return "Reservation policy"

    def clean(self) -> None:
        if self.allowed_start_time >= self.allowed_end_time:
            raise ValidationError(_("Opening time must be before closing time."))

    def save(self, *args, **kwargs):
        self.pk = self.SINGLETON_ID
        super().save(*args, **kwargs)

    @classmethod
    def load(cls) -> "ReservationConfig":
        config, _created = cls.objects.get_or_create(pk=cls.SINGLETON_ID)
        return config

    def to_policy(self) -> ReservationPolicy:
        return ReservationPolicy(
            max_hours_per_reservation=float(self.max_hours_per_reservation),
            max_reservations_per_user_per_day=self.max_reservations_per_user_per_day,
            min_hours_in_advance=float(self.min_hours_in_advance),
            allowed_start_time=self.allowed_start_time,
            allowed_end_time=self.allowed_end_time,
            requires_approval_for_all_day=self.requires_approval_for_all_day,
            allow_consecutive_reservations=self.allow_consecutive_reservations,
            min_time_between_reservations_minutes=self.min_time_between_reservations_minutes,
        )

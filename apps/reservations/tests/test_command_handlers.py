"""Tests for the reservation command handlers (engine end to end)."""

from __future__ import annotations

from datetime import datetime, timedelta
from itertools import combinations
from zoneinfo import ZoneInfo

import pytest
from django.db import DatabaseError

from apps.notifications.models import Notification
from apps.reservations.application.command_handlers import (
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
    UpdateReservationCommand,
    UpdateReservationHandler,
)
from apps.reservations.domain import errors
from apps.reservations.domain.policy import ReservationPolicy
from apps.reservations.models import Reservation
from apps.reservations.repositories import ReservationRepository

MADRID = ZoneInfo("Europe/Madrid")
NOW = datetime(2030, 6, 10, 8, 0, tzinfo=MADRID)

pytestmark = pytest.mark.django_db


def at(hour: int, minute: int = 0, day: int = 12) -> datetime:
    return datetime(2030, 6, day, hour, minute, tzinfo=MADRID)


def build(handler_class, policy: ReservationPolicy | None = None, **kwargs):
    policy = policy or ReservationPolicy()
    return handler_class(policy_provider=lambda: policy, clock=lambda: NOW, **kwargs)


def create(user, table, start, end=None, policy=None, **kwargs):
    return build(CreateReservationHandler, policy).handle(CreateReservationCommand(
        requester=Requester.from_user(user),
        table_id=table.pk,
        start_time=start,
        end_time=end,
        **kwargs,
    ))


class TestCreate:
    def test_bounded_reservation_is_confirmed(self, member, table):
        result = create(member, table, at(9), at(11))

        assert result.message == "confirmed"
        assert result.pending_approval is False
        row = Reservation.objects.get(pk=result.reservation.id)
        assert row.status == Reservation.Status.ACTIVE
        assert row.approved
        assert row.duration_hours == 2

    def test_naive_input_round_trips_as_club_time(self, member, table):
        result = create(member, table, datetime(2030, 6, 12, 9, 0), datetime(2030, 6, 12, 11, 0))

        row = Reservation.objects.get(pk=result.reservation.id)
        assert row.start_utc_offset == 120
        assert row.local_start.replace(tzinfo=None) == datetime(2030, 6, 12, 9, 0)
        assert row.local_end.replace(tzinfo=None) == datetime(2030, 6, 12, 11, 0)

    def test_unknown_table(self, member):
        with pytest.raises(errors.NotFound):
            build(CreateReservationHandler).handle(CreateReservationCommand(
                requester=Requester.from_user(member),
                table_id=9999,
                start_time=at(9),
                end_time=at(11),
            ))

    def test_bounded_reservation_needs_end_time(self, member, table):
        with pytest.raises(errors.InvalidRange):
            create(member, table, at(9))

    def test_all_day_window_is_opening_hours_of_the_day(self, club_admin, table):
        result = create(club_admin, table, datetime(2030, 6, 12, 15, 0), all_day=True)

        reservation = result.reservation
        assert reservation.start.local.replace(tzinfo=None) == datetime(2030, 6, 12, 8, 0)
        assert reservation.end.local.replace(tzinfo=None) == datetime(2030, 6, 12, 22, 0)
        assert result.message == "confirmed"

    def test_all_day_window_with_duration(self, club_admin, table):
        result = create(club_admin, table, at(10), all_day=True, duration_hours=6)

        assert result.reservation.end.instant == at(16)

    def test_time_skipped_by_daylight_saving_is_refused(self, member, table):
        with pytest.raises(errors.InvalidRange):
            create(member, table, datetime(2031, 3, 30, 2, 30), datetime(2031, 3, 30, 4, 0))

        assert not Reservation.objects.exists()

    def test_rejected_request_writes_nothing(self, member, other_member, table):
        create(member, table, at(9), at(11))

        with pytest.raises(errors.ResourceConflict):
            create(other_member, table, at(10), at(12))

        assert Reservation.objects.count() == 1


class TestScenarios:
    """Example scenarios: an existing 09:00-11:00 booking on the table."""

    @pytest.fixture
    def existing(self, member, table):
        return create(member, table, at(9), at(11)).reservation

    def test_consecutive_rejected_when_disallowed(self, existing, other_member, table):
        policy = ReservationPolicy(allow_consecutive_reservations=False)

        with pytest.raises(errors.ConsecutiveNotAllowed):
            create(other_member, table, at(11), at(13), policy=policy)

    def test_consecutive_accepted_when_allowed_without_gap(self, existing, other_member, table):
        result = create(other_member, table, at(11), at(13))

        assert result.message == "confirmed"

    def test_gap_respected(self, existing, other_member, table):
        policy = ReservationPolicy(min_time_between_reservations_minutes=30)

        result = create(other_member, table, at(11, 30), at(13), policy=policy)

        assert result.reservation.id is not None

    def test_gap_too_small(self, existing, other_member, table):
        policy = ReservationPolicy(min_time_between_reservations_minutes=30)

        with pytest.raises(errors.InsufficientGap) as exc_info:
            create(other_member, table, at(11, 20), at(13), policy=policy)

        assert exc_info.value.extra["actual_minutes"] == 20
        assert exc_info.value.extra["required_minutes"] == 30

    def test_second_reservation_same_day_exceeds_quota(self, existing, member):
        from apps.tables.models import Table

        other_table = Table.objects.create(name="Table 2")

        with pytest.raises(errors.DailyQuotaExceeded):
            create(member, other_table, at(15), at(16))

    def test_all_day_pending_then_rejected(
        self, member, club_admin, table, django_capture_on_commit_callbacks
    ):
        result = create(member, table, at(9), all_day=True, reason="Club tournament")

        assert result.message == "pending administrator approval"
        assert result.pending_approval is True

        with django_capture_on_commit_callbacks(execute=True):
            build(RejectReservationHandler).handle(RejectReservationCommand(
                reservation_id=result.reservation.id,
                requester=Requester.from_user(club_admin),
                rejection_reason="conflict with event",
            ))

        row = Reservation.objects.get(pk=result.reservation.id)
        assert row.status == Reservation.Status.CANCELLED
        assert row.approval_state == Reservation.ApprovalState.REJECTED
        assert row.rejection_reason == "conflict with event"

        notification = Notification.objects.get(user=member)
        assert "conflict with event" in notification.message
        assert notification.related_entity_type == "reservation"
        assert notification.related_entity_id == row.pk


class TestApproval:
    @pytest.fixture
    def pending(self, member, table):
        return create(member, table, at(9), all_day=True, reason="Birthday").reservation

    def test_member_all_day_without_reason(self, member, table):
        with pytest.raises(errors.MissingReason):
            create(member, table, at(9), all_day=True)

        assert not Reservation.objects.exists()

    def test_admin_approves(self, pending, member, club_admin, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            reservation = build(ApproveReservationHandler).handle(ApproveReservationCommand(
                reservation_id=pending.id,
                requester=Requester.from_user(club_admin),
            ))

        assert reservation.approved
        assert Reservation.objects.get(pk=pending.id).approval_state == Reservation.ApprovalState.APPROVED
        assert Notification.objects.filter(user=member, title="Reservation approved").exists()

    def test_member_cannot_approve(self, pending, member):
        with pytest.raises(errors.Forbidden):
            build(ApproveReservationHandler).handle(ApproveReservationCommand(
                reservation_id=pending.id,
                requester=Requester.from_user(member),
            ))

    def test_reject_without_reason(self, pending, club_admin):
        with pytest.raises(errors.MissingReason):
            build(RejectReservationHandler).handle(RejectReservationCommand(
                reservation_id=pending.id,
                requester=Requester.from_user(club_admin),
                rejection_reason="",
            ))

    def test_bounded_reservation_cannot_be_rejected(self, member, club_admin, table):
        reservation = create(member, table, at(9), at(10)).reservation

        with pytest.raises(errors.NotRejectable):
            build(RejectReservationHandler).handle(RejectReservationCommand(
                reservation_id=reservation.id,
                requester=Requester.from_user(club_admin),
                rejection_reason="No",
            ))

    def test_unknown_reservation(self, club_admin):
        with pytest.raises(errors.NotFound):
            build(ApproveReservationHandler).handle(ApproveReservationCommand(
                reservation_id=424242,
                requester=Requester.from_user(club_admin),
            ))

    def test_admins_are_told_about_pending_requests(
        self, member, club_admin, table, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            create(member, table, at(9), all_day=True, reason="Birthday")

        notification = Notification.objects.get(user=club_admin)
        assert notification.title == "Reservation awaiting approval"


class TestUpdate:
    def update(self, user, reservation_id, policy=None, **changes):
        return build(UpdateReservationHandler, policy).handle(UpdateReservationCommand(
            reservation_id=reservation_id,
            requester=Requester.from_user(user),
            **changes,
        ))

    def test_move_within_own_window_ignores_itself(self, member, table):
        reservation = create(member, table, at(9), at(11)).reservation

        result = self.update(member, reservation.id, start_time=at(10), end_time=at(12))

        row = Reservation.objects.get(pk=reservation.id)
        assert row.start_time == at(10)
        assert row.end_time == at(12)
        assert result.message == "confirmed"

    def test_move_into_conflict_keeps_original(self, member, other_member, table):
        mine = create(member, table, at(9), at(11)).reservation
        create(other_member, table, at(12), at(14))

        with pytest.raises(errors.ResourceConflict):
            self.update(member, mine.id, start_time=at(11), end_time=at(13))

        assert Reservation.objects.get(pk=mine.id).end_time == at(11)

    def test_other_member_cannot_edit(self, member, other_member, table):
        reservation = create(member, table, at(9), at(11)).reservation

        with pytest.raises(errors.Forbidden):
            self.update(other_member, reservation.id, num_guests=2)

    def test_admin_edit_counts_quota_against_owner(self, member, club_admin, table):
        reservation = create(member, table, at(9), at(11)).reservation
        create(club_admin, table, at(14), at(15))

        result = self.update(club_admin, reservation.id, start_time=at(11), end_time=at(12))

        assert result.reservation.user_id == member.pk

    def test_turning_all_day_on_reenters_pending(self, member, table):
        reservation = create(member, table, at(9), at(11)).reservation

        result = self.update(member, reservation.id, all_day=True, reason="Tournament")

        assert result.message == "pending administrator approval"
        row = Reservation.objects.get(pk=reservation.id)
        assert row.all_day
        assert row.local_start.replace(tzinfo=None) == datetime(2030, 6, 12, 8, 0)

    def test_turning_all_day_on_without_reason(self, member, table):
        reservation = create(member, table, at(9), at(11)).reservation

        with pytest.raises(errors.MissingReason):
            self.update(member, reservation.id, all_day=True)

        assert not Reservation.objects.get(pk=reservation.id).all_day

    def test_details_only_edit_skips_window_rules(self, member, table):
        reservation = create(member, table, at(9), at(11)).reservation
        stricter = ReservationPolicy(max_hours_per_reservation=1)

        result = self.update(member, reservation.id, policy=stricter, num_guests=3)

        assert result.reservation.num_guests == 3

    def test_all_day_end_edit_keeps_the_start(self, club_admin, table):
        reservation = create(club_admin, table, at(10), all_day=True, duration_hours=3).reservation

        result = self.update(club_admin, reservation.id, end_time=at(14))

        assert result.reservation.start.instant == at(10)
        assert result.reservation.end.instant == at(14)
        row = Reservation.objects.get(pk=reservation.id)
        assert row.local_start.hour == 10
        assert row.duration_hours == 4

    def test_moving_all_day_keeps_its_duration(self, club_admin, table):
        reservation = create(club_admin, table, at(10), all_day=True, duration_hours=3).reservation

        result = self.update(club_admin, reservation.id, start_time=at(12))

        assert result.reservation.start.instant == at(12)
        assert result.reservation.end.instant == at(15)

    def test_moving_opening_hours_booking_to_another_day(self, club_admin, table):
        reservation = create(club_admin, table, at(10), all_day=True).reservation

        result = self.update(club_admin, reservation.id, start_time=at(10, day=13))

        assert result.reservation.start.instant == at(8, day=13)
        assert result.reservation.end.instant == at(22, day=13)

    def test_all_day_end_before_start(self, club_admin, table):
        reservation = create(club_admin, table, at(10), all_day=True, duration_hours=3).reservation

        with pytest.raises(errors.InvalidRange):
            self.update(club_admin, reservation.id, end_time=at(9))

        assert Reservation.objects.get(pk=reservation.id).end_time == at(13)

    def test_cancelled_reservation_cannot_be_edited(self, member, table):
        reservation = create(member, table, at(9), at(11)).reservation
        build(CancelReservationHandler).handle(CancelReservationCommand(
            reservation_id=reservation.id,
            requester=Requester.from_user(member),
        ))

        with pytest.raises(errors.InvalidTransition):
            self.update(member, reservation.id, num_guests=1)


class TestCancelAndComplete:
    def test_cancel_releases_the_window(self, member, other_member, table):
        reservation = create(member, table, at(9), at(11)).reservation

        build(CancelReservationHandler).handle(CancelReservationCommand(
            reservation_id=reservation.id,
            requester=Requester.from_user(member),
        ))

        result = create(other_member, table, at(9), at(11))
        assert result.reservation.id != reservation.id

    def test_other_member_cannot_cancel(self, member, other_member, table):
        reservation = create(member, table, at(9), at(11)).reservation

        with pytest.raises(errors.Forbidden):
            build(CancelReservationHandler).handle(CancelReservationCommand(
                reservation_id=reservation.id,
                requester=Requester.from_user(other_member),
            ))

    def test_admin_cancel_notifies_owner(self, member, club_admin, table, django_capture_on_commit_callbacks):
        reservation = create(member, table, at(9), at(11)).reservation

        with django_capture_on_commit_callbacks(execute=True):
            build(CancelReservationHandler).handle(CancelReservationCommand(
                reservation_id=reservation.id,
                requester=Requester.from_user(club_admin),
            ))

        assert Notification.objects.filter(user=member, title="Reservation cancelled").exists()

    def test_only_admins_complete(self, member, club_admin, table):
        reservation = create(member, table, at(9), at(11)).reservation
        command = CompleteReservationCommand(reservation_id=reservation.id, requester=Requester.from_user(member))

        with pytest.raises(errors.Forbidden):
            build(CompleteReservationHandler).handle(command)

        build(CompleteReservationHandler).handle(
            CompleteReservationCommand(reservation_id=reservation.id, requester=Requester.from_user(club_admin))
        )
        assert Reservation.objects.get(pk=reservation.id).status == Reservation.Status.COMPLETED


def test_store_failure_rolls_back_and_publishes_nothing(
    member, club_admin, table, monkeypatch, django_capture_on_commit_callbacks
):
    def broken_save(self, reservation):
        raise DatabaseError("disk full")

    monkeypatch.setattr(ReservationRepository, "save", broken_save)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(errors.StoreFailure) as exc_info:
            create(member, table, at(9), all_day=True, reason="Birthday")

    assert exc_info.value.status_code == 503
    assert callbacks == []
    assert not Reservation.objects.exists()
    assert not Notification.objects.exists()


def test_no_two_active_reservations_overlap(django_user_model, table):
    policy = ReservationPolicy(max_reservations_per_user_per_day=0)
    user = django_user_model.objects.create_user(email="busy@example.com", password="BusyPass123")
    candidates = [(9, 11), (10, 12), (11, 13), (8, 9), (12, 14), (13, 15), (14, 16), (15, 17)]

    for start_hour, end_hour in candidates:
        try:
            create(user, table, at(start_hour), at(end_hour), policy=policy)
        except errors.ResourceConflict:
            pass

    active = list(Reservation.objects.filter(status=Reservation.Status.ACTIVE))
    assert len(active) == 5
    for first, second in combinations(active, 2):
        assert not (first.start_time < second.end_time and second.start_time < first.end_time)

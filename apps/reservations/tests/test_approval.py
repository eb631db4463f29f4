"""Tests for the approval state machine and reservation transitions."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from shared.domain.value_objects import WallClockTime
from apps.reservations.domain import errors
from apps.reservations.domain.approval import (
    ApprovalState,
    approval_state_after_edit,
    initial_approval_state,
)
from apps.reservations.domain.entities import Reservation, ReservationStatus
from apps.reservations.domain.events import (
    ReservationApproved,
    ReservationCancelled,
    ReservationRejected,
)
from apps.reservations.domain.policy import ReservationPolicy

MADRID = ZoneInfo("Europe/Madrid")
POLICY = ReservationPolicy()


def make_reservation(**kwargs) -> Reservation:
    defaults = dict(
        id=10,
        user_id=1,
        table_id=1,
        start=WallClockTime.from_aware(datetime(2030, 6, 12, 8, tzinfo=MADRID)),
        end=WallClockTime.from_aware(datetime(2030, 6, 12, 22, tzinfo=MADRID)),
        all_day=True,
        reason="Club tournament",
        approval_state=ApprovalState.PENDING_APPROVAL,
    )
    defaults.update(kwargs)
    return Reservation(**defaults)


class TestInitialState:
    def test_bounded_reservation_needs_no_approval(self):
        state = initial_approval_state(all_day=False, reason="", policy=POLICY, requester_is_admin=False)

        assert state == ApprovalState.NOT_REQUIRED
        assert state.counts_as_approved

    def test_member_all_day_reservation_is_pending(self):
        state = initial_approval_state(all_day=True, reason="Tournament", policy=POLICY, requester_is_admin=False)

        assert state == ApprovalState.PENDING_APPROVAL
        assert not state.counts_as_approved

    def test_member_all_day_reservation_requires_reason(self):
        with pytest.raises(errors.MissingReason):
            initial_approval_state(all_day=True, reason="   ", policy=POLICY, requester_is_admin=False)

    def test_admin_all_day_reservation_is_approved_immediately(self):
        state = initial_approval_state(all_day=True, reason="", policy=POLICY, requester_is_admin=True)

        assert state == ApprovalState.NOT_REQUIRED

    def test_policy_can_disable_approvals(self):
        policy = ReservationPolicy(requires_approval_for_all_day=False)

        state = initial_approval_state(all_day=True, reason="", policy=policy, requester_is_admin=False)

        assert state == ApprovalState.NOT_REQUIRED


class TestStateAfterEdit:
    def test_turning_all_day_on_reenters_pending(self):
        state = approval_state_after_edit(
            current=ApprovalState.NOT_REQUIRED,
            was_all_day=False,
            all_day=True,
            reason="Tournament",
            policy=POLICY,
            requester_is_admin=False,
        )

        assert state == ApprovalState.PENDING_APPROVAL

    def test_turning_all_day_on_without_reason(self):
        with pytest.raises(errors.MissingReason):
            approval_state_after_edit(
                current=ApprovalState.NOT_REQUIRED,
                was_all_day=False,
                all_day=True,
                reason="",
                policy=POLICY,
                requester_is_admin=False,
            )

    def test_turning_all_day_off_drops_pending_request(self):
        state = approval_state_after_edit(
            current=ApprovalState.PENDING_APPROVAL,
            was_all_day=True,
            all_day=False,
            reason="",
            policy=POLICY,
            requester_is_admin=False,
        )

        assert state == ApprovalState.NOT_REQUIRED

    def test_other_edits_keep_state(self):
        state = approval_state_after_edit(
            current=ApprovalState.APPROVED,
            was_all_day=True,
            all_day=True,
            reason="Tournament",
            policy=POLICY,
            requester_is_admin=False,
        )

        assert state == ApprovalState.APPROVED


class TestDecisions:
    def test_approve_pending(self):
        reservation = make_reservation()

        reservation.approve(approved_by=99)

        assert reservation.approval_state == ApprovalState.APPROVED
        assert reservation.approved
        assert reservation.rejection_reason == ""
        assert isinstance(reservation.events[-1], ReservationApproved)

    def test_reject_pending_cancels_and_stores_reason(self):
        reservation = make_reservation()

        reservation.reject("conflict with event", rejected_by=99)

        assert reservation.approval_state == ApprovalState.REJECTED
        assert reservation.status == ReservationStatus.CANCELLED
        assert reservation.rejection_reason == "conflict with event"
        assert not reservation.approved
        event = reservation.events[-1]
        assert isinstance(event, ReservationRejected)
        assert event.rejection_reason == "conflict with event"
        assert event.user_id == 1

    def test_reject_requires_reason(self):
        reservation = make_reservation()

        with pytest.raises(errors.MissingReason):
            reservation.reject("  ", rejected_by=99)

        assert reservation.approval_state == ApprovalState.PENDING_APPROVAL

    def test_bounded_reservation_is_not_rejectable(self):
        reservation = make_reservation(all_day=False, approval_state=ApprovalState.NOT_REQUIRED)

        with pytest.raises(errors.NotRejectable):
            reservation.reject("no", rejected_by=99)

    @pytest.mark.parametrize("terminal", [ApprovalState.APPROVED, ApprovalState.REJECTED])
    def test_terminal_decisions_do_not_change(self, terminal):
        reservation = make_reservation(approval_state=terminal)

        with pytest.raises(errors.InvalidTransition):
            reservation.approve(approved_by=99)
        with pytest.raises(errors.InvalidTransition):
            reservation.reject("again", rejected_by=99)

    def test_rejection_reason_only_in_rejected_state(self):
        approved = make_reservation()
        approved.approve(approved_by=99)
        rejected = make_reservation(id=11)
        rejected.reject("closed for maintenance", rejected_by=99)

        for reservation in (approved, rejected):
            has_reason = bool(reservation.rejection_reason)
            assert has_reason == (reservation.approval_state == ApprovalState.REJECTED)


class TestLifecycle:
    def test_cancel_active(self):
        reservation = make_reservation(all_day=False, approval_state=ApprovalState.NOT_REQUIRED)

        reservation.cancel(cancelled_by=1)

        assert reservation.status == ReservationStatus.CANCELLED
        assert isinstance(reservation.events[-1], ReservationCancelled)

    def test_cannot_cancel_twice_or_complete_cancelled(self):
        reservation = make_reservation(all_day=False, approval_state=ApprovalState.NOT_REQUIRED)
        reservation.cancel(cancelled_by=1)

        with pytest.raises(errors.InvalidTransition):
            reservation.cancel(cancelled_by=1)
        with pytest.raises(errors.InvalidTransition):
            reservation.complete()

    def test_complete_active(self):
        reservation = make_reservation(all_day=False, approval_state=ApprovalState.NOT_REQUIRED)

        reservation.complete()

        assert reservation.status == ReservationStatus.COMPLETED
        assert not reservation.is_active()


class TestIdentity:
    def test_unsaved_reservations_are_distinct(self):
        first = make_reservation(id=None)
        second = make_reservation(id=None)

        assert first != second
        assert first == first
        assert len({first, second}) == 2

    def test_saved_reservations_compare_by_id(self):
        assert make_reservation(id=7) == make_reservation(id=7, num_guests=3)
        assert make_reservation(id=7) != make_reservation(id=8)

"""
Approval State Machine

All-day reservations made by members may need an administrator's blessing
before they are considered confirmed. Bounded reservations never do.

State transitions:
- NOT_REQUIRED -> PENDING_APPROVAL (edit turns a booking into an all-day one)
- PENDING_APPROVAL -> APPROVED (administrator approves)
- PENDING_APPROVAL -> REJECTED (administrator rejects with a reason)
- PENDING_APPROVAL -> NOT_REQUIRED (edit turns the booking back into a bounded one)
- APPROVED -> PENDING_APPROVAL (edit turns the booking all-day again)

REJECTED is terminal: the rejected reservation is cancelled at the same time.
"""

from enum import Enum

from apps.reservations.domain.errors import InvalidTransition, MissingReason
from apps.reservations.domain.policy import ReservationPolicy


class ApprovalState(Enum):
    NOT_REQUIRED = 'not_required'
    PENDING_APPROVAL = 'pending_approval'
    APPROVED = 'approved'
    REJECTED = 'rejected'

    @property
    def counts_as_approved(self) -> bool:
        return self in (ApprovalState.NOT_REQUIRED, ApprovalState.APPROVED)


ALLOWED_TRANSITIONS = {
    ApprovalState.NOT_REQUIRED: {ApprovalState.PENDING_APPROVAL},
    ApprovalState.PENDING_APPROVAL: {
        ApprovalState.APPROVED,
        ApprovalState.REJECTED,
        ApprovalState.NOT_REQUIRED,
    },
    ApprovalState.APPROVED: {ApprovalState.PENDING_APPROVAL},
    ApprovalState.REJECTED: set(),
}


def ensure_transition(current: ApprovalState, target: ApprovalState) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(
            f"Cannot move approval state from {current.value} to {target.value}.",
            approval_state=current.value,
        )


def requires_approval(all_day: bool, policy: ReservationPolicy, requester_is_admin: bool) -> bool:
    return all_day and policy.requires_approval_for_all_day and not requester_is_admin


def _require_reason(reason: str) -> None:
    if not (reason or '').strip():
        raise MissingReason("A reason is required for all-day reservations that need approval.")


def initial_approval_state(
    *,
    all_day: bool,
    reason: str,
    policy: ReservationPolicy,
    requester_is_admin: bool,
) -> ApprovalState:
    """Approval state a brand-new reservation starts in."""
    if not requires_approval(all_day, policy, requester_is_admin):
        return ApprovalState.NOT_REQUIRED
    _require_reason(reason)
    return ApprovalState.PENDING_APPROVAL


def approval_state_after_edit(
    *,
    current: ApprovalState,
    was_all_day: bool,
    all_day: bool,
    reason: str,
    policy: ReservationPolicy,
    requester_is_admin: bool,
) -> ApprovalState:
    """
    Approval state after an edit

    Only a change of the all-day flag moves the state. Turning a booking
    into an all-day one under an approval policy re-enters
    PENDING_APPROVAL and needs a reason; turning it back into a bounded one
    drops a pending request.
    """
    if all_day and not was_all_day and requires_approval(all_day, policy, requester_is_admin):
        _require_reason(reason)
        if current != ApprovalState.PENDING_APPROVAL:
            ensure_transition(current, ApprovalState.PENDING_APPROVAL)
        return ApprovalState.PENDING_APPROVAL
    if not all_day and current == ApprovalState.PENDING_APPROVAL:
        return ApprovalState.NOT_REQUIRED
    return current

"""
Reservation Errors

Every way the engine can refuse a request. Each error carries a stable
``code`` (the error kind returned to API clients), the HTTP status the API
layer answers with and optional structured details.
"""

from __future__ import annotations

from typing import Any


class ReservationError(Exception):
    """Base class for all reservation engine failures."""

    code = "ReservationError"
    status_code = 400
    default_message = "The reservation request was refused."

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.extra}


class NotFound(ReservationError):
    code = "NotFound"
    status_code = 404
    default_message = "The requested table or reservation does not exist."


class InvalidRange(ReservationError):
    code = "InvalidRange"
    default_message = "The start time must be before the end time."


class PastDate(ReservationError):
    code = "PastDate"
    default_message = "Reservations cannot start in the past."


class InsufficientNotice(ReservationError):
    code = "InsufficientNotice"
    default_message = "The reservation does not respect the minimum advance notice."


class DurationExceeded(ReservationError):
    code = "DurationExceeded"
    default_message = "The reservation is longer than the maximum allowed duration."


class OutsideAllowedHours(ReservationError):
    code = "OutsideAllowedHours"
    default_message = "The reservation falls outside the club's opening hours."


class DailyQuotaExceeded(ReservationError):
    code = "DailyQuotaExceeded"
    default_message = "The daily reservation limit has been reached."


class ResourceConflict(ReservationError):
    code = "ResourceConflict"
    status_code = 409
    default_message = "The table is already reserved for that time."


class ConsecutiveNotAllowed(ReservationError):
    code = "ConsecutiveNotAllowed"
    status_code = 409
    default_message = "Back-to-back reservations on the same table are not allowed."


class InsufficientGap(ReservationError):
    code = "InsufficientGap"
    status_code = 409
    default_message = "Not enough time between this reservation and another on the same table."


class MissingReason(ReservationError):
    code = "MissingReason"
    default_message = "A reason is required."


class NotRejectable(ReservationError):
    code = "NotRejectable"
    default_message = "Only all-day reservations can be rejected."


class InvalidTransition(ReservationError):
    code = "InvalidTransition"
    status_code = 409
    default_message = "The reservation cannot move to the requested state."


class Forbidden(ReservationError):
    code = "Forbidden"
    status_code = 403
    default_message = "You are not allowed to perform this action."


class StoreFailure(ReservationError):
    code = "StoreFailure"
    status_code = 503
    default_message = "The reservation store could not complete the operation; nothing was saved."

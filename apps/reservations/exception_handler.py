"""DRF exception handler that renders reservation engine errors."""

from __future__ import annotations

import logging

from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from .domain.errors import ReservationError, StoreFailure

logger = logging.getLogger(__name__)


def reservation_exception_handler(exc, context):  # type: ignore
    """Render ``ReservationError`` as ``{"error": kind, "detail": text, ...}``."""
    if isinstance(exc, ReservationError):
        if isinstance(exc, StoreFailure):
            logger.error(f"Reservation store failure: {exc.message}")
        else:
            logger.info(f"Reservation request refused: {exc.code} ({exc.message})")
        return Response(exc.to_dict(), status=exc.status_code)
    return drf_exception_handler(exc, context)

"""Cached access to the club's reservation policy."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.cache import cache  # type: ignore

from apps.reservations.domain.policy import ReservationPolicy

POLICY_CACHE_KEY = "reservations:policy"


def get_reservation_policy() -> ReservationPolicy:
    """Return the current policy, reading the config row on a cache miss."""
    from apps.reservations.models import ReservationConfig

    cached: ReservationPolicy | None = cache.get(POLICY_CACHE_KEY)
    if cached is not None:
        return cached

    policy = ReservationConfig.load().to_policy()
    timeout = getattr(settings, "RESERVATION_POLICY_CACHE_TIMEOUT", 300)
    cache.set(POLICY_CACHE_KEY, policy, timeout)
    return policy


def invalidate_policy_cache() -> None:
    cache.delete(POLICY_CACHE_KEY)


__all__ = [
    "get_reservation_policy",
    "invalidate_policy_cache",
]

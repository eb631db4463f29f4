"""Tests for the cached reservation policy."""

from __future__ import annotations

from datetime import time
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.core.exceptions import ValidationError

from apps.reservations.config import POLICY_CACHE_KEY, get_reservation_policy, invalidate_policy_cache
from apps.reservations.domain.policy import ReservationPolicy
from apps.reservations.models import ReservationConfig

pytestmark = pytest.mark.django_db


def test_defaults_when_no_row_exists():
    policy = get_reservation_policy()

    assert policy == ReservationPolicy()
    assert ReservationConfig.objects.count() == 1


def test_policy_is_cached():
    get_reservation_policy()

    # queryset updates bypass signals, so the cached copy survives
    ReservationConfig.objects.filter(pk=ReservationConfig.SINGLETON_ID).update(max_hours_per_reservation=Decimal("6"))

    assert get_reservation_policy().max_hours_per_reservation == 4.0
    invalidate_policy_cache()
    assert get_reservation_policy().max_hours_per_reservation == 6.0


def test_saving_the_config_invalidates_the_cache():
    get_reservation_policy()
    assert cache.get(POLICY_CACHE_KEY) is not None

    config = ReservationConfig.load()
    config.min_time_between_reservations_minutes = 15
    config.save()

    assert cache.get(POLICY_CACHE_KEY) is None
    assert get_reservation_policy().min_time_between_reservations_minutes == 15


def test_config_is_a_singleton():
    ReservationConfig(max_reservations_per_user_per_day=3).save()
    ReservationConfig(max_reservations_per_user_per_day=5).save()

    assert ReservationConfig.objects.count() == 1
    assert ReservationConfig.load().max_reservations_per_user_per_day == 5


def test_config_rejects_inverted_opening_hours():
    config = ReservationConfig(allowed_start_time=time(22, 0), allowed_end_time=time(8, 0))

    with pytest.raises(ValidationError):
        config.clean()


def test_policy_value_object_validates_itself():
    with pytest.raises(ValueError):
        ReservationPolicy(max_hours_per_reservation=0)
    with pytest.raises(ValueError):
        ReservationPolicy(allowed_start_time=time(12, 0), allowed_end_time=time(12, 0))

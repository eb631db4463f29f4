"""Concurrent booking attempts against a database that serialises writers."""

from __future__ import annotations

import threading
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from django.db import connection

from apps.reservations.application.command_handlers import (
    CreateReservationCommand,
    CreateReservationHandler,
    Requester,
)
from apps.reservations.domain.errors import ReservationError
from apps.reservations.domain.policy import ReservationPolicy
from apps.reservations.models import Reservation

MADRID = ZoneInfo("Europe/Madrid")
NOW = datetime(2030, 6, 10, 8, 0, tzinfo=MADRID)


def _writers_are_serialised() -> bool:
    """Row locks, or SQLite taking its write lock at BEGIN on a shared file."""
    if connection.features.has_select_for_update:
        return True
    settings_dict = connection.settings_dict
    test_name = settings_dict.get("TEST", {}).get("NAME")
    return (
        connection.vendor == "sqlite"
        and settings_dict.get("OPTIONS", {}).get("transaction_mode") == "IMMEDIATE"
        and bool(test_name)
        and ":memory:" not in str(test_name)
    )


pytestmark = [
    pytest.mark.django_db(transaction=True),
    pytest.mark.skipif(
        not _writers_are_serialised(),
        reason="database neither locks rows nor serialises writers",
    ),
]


def _race(attempts):
    barrier = threading.Barrier(len(attempts))
    outcomes = []
    lock = threading.Lock()

    def run(requester, table_id, start, end, policy):
        handler = CreateReservationHandler(policy_provider=lambda: policy, clock=lambda: NOW)
        try:
            barrier.wait()
            handler.handle(CreateReservationCommand(
                requester=requester, table_id=table_id, start_time=start, end_time=end,
            ))
            outcome = "ok"
        except ReservationError as exc:
            outcome = exc.code
        finally:
            connection.close()
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=run, args=attempt) for attempt in attempts]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return sorted(outcomes)


def test_same_window_is_booked_once(member, other_member, table):
    start = datetime(2030, 6, 12, 9, 0, tzinfo=MADRID)
    end = datetime(2030, 6, 12, 11, 0, tzinfo=MADRID)
    policy = ReservationPolicy()

    outcomes = _race([
        (Requester.from_user(member), table.pk, start, end, policy),
        (Requester.from_user(other_member), table.pk, start, end, policy),
    ])

    assert outcomes == ["ResourceConflict", "ok"]
    assert Reservation.objects.filter(table=table, status=Reservation.Status.ACTIVE).count() == 1


def test_same_member_cannot_beat_the_daily_quota(member, table):
    from apps.tables.models import Table

    second_table = Table.objects.create(name="Table 2")
    policy = ReservationPolicy(max_reservations_per_user_per_day=1)
    requester = Requester.from_user(member)

    outcomes = _race([
        (requester, table.pk, datetime(2030, 6, 12, 9, 0, tzinfo=MADRID),
         datetime(2030, 6, 12, 10, 0, tzinfo=MADRID), policy),
        (requester, second_table.pk, datetime(2030, 6, 12, 15, 0, tzinfo=MADRID),
         datetime(2030, 6, 12, 16, 0, tzinfo=MADRID), policy),
    ])

    assert outcomes == ["DailyQuotaExceeded", "ok"]
    assert Reservation.objects.filter(user=member).count() == 1


def test_every_loser_gets_a_conflict(django_user_model, table):
    policy = ReservationPolicy(max_reservations_per_user_per_day=0)
    members = [
        django_user_model.objects.create_user(email=f"racer{n}@example.com", password="RacerPass123")
        for n in range(4)
    ]

    for day in (12, 13, 14):
        start = datetime(2030, 6, day, 18, 0, tzinfo=MADRID)
        end = datetime(2030, 6, day, 20, 0, tzinfo=MADRID)

        outcomes = _race([
            (Requester.from_user(user), table.pk, start, end, policy) for user in members
        ])

        assert outcomes == ["ResourceConflict"] * 3 + ["ok"]

    assert Reservation.objects.filter(table=table).count() == 3

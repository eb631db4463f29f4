"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from django.core.cache import cache

MADRID = ZoneInfo("Europe/Madrid")


@pytest.fixture(autouse=True)
def _clear_cache():
    """Cached policies must not leak between tests (database rows roll back, the cache does not)."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def member(django_user_model):
    return django_user_model.objects.create_user(
        email="member@example.com",
        password="MemberPass123",
        username="Member",
    )


@pytest.fixture
def other_member(django_user_model):
    return django_user_model.objects.create_user(
        email="other@example.com",
        password="OtherPass123",
        username="Other",
    )


@pytest.fixture
def club_admin(django_user_model):
    return django_user_model.objects.create_user(
        email="admin@example.com",
        password="AdminPass123",
        username="Admin",
        role=django_user_model.RoleChoices.ADMIN,
    )


@pytest.fixture
def table(db):
    from apps.tables.models import Table

    return Table.objects.create(name="Table 1", description="By the window")


@pytest.fixture
def local():
    """Build an aware Europe/Madrid datetime: local(2030, 6, 12, 9)."""
    def build(*args: int) -> datetime:
        return datetime(*args, tzinfo=MADRID)
    return build

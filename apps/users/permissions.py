"""Permission classes shared by the club API."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def _is_club_admin(user) -> bool:
    return bool(user and user.is_authenticated and user.is_admin())


class IsClubAdmin(permissions.BasePermission):
    """Only club administrators (role admin, staff or superuser)."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return _is_club_admin(request.user)


class IsClubAdminOrReadOnly(permissions.BasePermission):
    """
    Allow club administrators to write, but anyone authenticated can read.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False

        if request.method in permissions.SAFE_METHODS:
            return True

        return _is_club_admin(user)

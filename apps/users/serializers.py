"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Club member profile."""

    display_name = serializers.ReadOnlyField()
    is_admin = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "display_name",
            "role",
            "is_admin",
            "date_joined",
        ]
        read_only_fields = ["id", "email", "role", "is_admin", "date_joined"]

    def get_is_admin(self, obj) -> bool:  # type: ignore
        return obj.is_admin()

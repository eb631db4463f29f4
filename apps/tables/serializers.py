"""Serializers for the table inventory."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Table


class TableSerializer(serializers.ModelSerializer):
    class Meta:
        model = Table
        fields = ["id", "name", "description", "is_active", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]

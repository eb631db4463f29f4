"""Serializers for notifications."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Serializer for notifications."""

    class Meta:
        model = Notification
        fields = [
            'id',
            'title',
            'message',
            'type',
            'related_entity_type',
            'related_entity_id',
            'is_read',
            'read_at',
            'created_at',
        ]
        read_only_fields = fields

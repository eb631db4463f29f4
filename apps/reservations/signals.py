"""Model signal handlers for reservation policy cache invalidation."""

from django.db.models.signals import post_delete, post_save  # type: ignore
from django.dispatch import receiver  # type: ignore

from .config import invalidate_policy_cache
from .models import ReservationConfig


@receiver([post_save, post_delete], sender=ReservationConfig)
def policy_cache_invalidator(**_: object) -> None:
    """Drop the cached policy whenever the config row changes."""
    invalidate_policy_cache()

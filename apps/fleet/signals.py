"""Model signal handlers for height range cache invalidation."""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .cache import invalidate_height_ranges
from .models import HeightRange


@receiver([post_save, post_delete], sender=HeightRange)
def height_range_cache_invalidator(**_: object) -> None:
    """Drop the cached table whenever a range changes."""
    invalidate_height_ranges()

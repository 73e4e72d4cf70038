"""Caching of the height range table.

Every availability and planning request needs the full table, while
staff change it a few times a season. Cached entries are dropped by
the model signals in ``signals.py``.
"""

from __future__ import annotations

from typing import List

from django.conf import settings
from django.core.cache import cache

from apps.fleet.domain.sizing import HeightRange

HEIGHT_RANGES_CACHE_KEY = "fleet:height_ranges"


def _is_cache_enabled() -> bool:
    return getattr(settings, "HEIGHT_RANGE_CACHE_ENABLED", True)


def _load_height_ranges() -> List[HeightRange]:
    from .models import HeightRange as HeightRangeModel  # Local import to keep the module ORM-free at import time

    return [row.to_value() for row in HeightRangeModel.objects.all()]


def get_height_ranges() -> List[HeightRange]:
    """Return the active height ranges, from cache when possible."""
    if not _is_cache_enabled():
        return _load_height_ranges()

    cached: List[HeightRange] | None = cache.get(HEIGHT_RANGES_CACHE_KEY)
    if cached is not None:
        return cached

    ranges = _load_height_ranges()
    timeout = getattr(settings, "HEIGHT_RANGE_CACHE_TIMEOUT", 300)
    cache.set(HEIGHT_RANGES_CACHE_KEY, ranges, timeout)
    return ranges


def invalidate_height_ranges() -> None:
    cache.delete(HEIGHT_RANGES_CACHE_KEY)


__all__ = [
    "get_height_ranges",
    "invalidate_height_ranges",
]

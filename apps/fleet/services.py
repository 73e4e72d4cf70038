"""Fleet read services used by the booking and reservation apps."""

from __future__ import annotations

from typing import Dict, List

from django.conf import settings  # type: ignore
from django.db.models import Count  # type: ignore

from .cache import get_height_ranges
from .domain.entities import BikeSnapshot
from .domain.sizing import DEFAULT_TOLERANCE, SizeClass, SizeMatcher
from .models import Bike


def size_tolerance() -> float:
    return float(getattr(settings, "BIKE_SIZE_TOLERANCE", DEFAULT_TOLERANCE))


def get_size_matcher() -> SizeMatcher:
    """Size matcher over the current height range table."""
    return SizeMatcher(get_height_ranges(), tolerance=size_tolerance())


def load_fleet() -> List[BikeSnapshot]:
    """Snapshot of the whole roster, ordered by bike id."""
    return Bike.objects.snapshots()


def bike_counts_by_size() -> Dict[SizeClass, int]:
    """Bookable bikes (available or rented) per size class.

    Sizes with no bikes are reported as zero so displays can render the
    full size table.
    """
    counts = {size: 0 for size in SizeClass.ordered()}
    rows = Bike.objects.bookable().values("size_class").annotate(total=Count("id"))
    for row in rows:
        counts[SizeClass(row["size_class"])] = row["total"]
    return counts

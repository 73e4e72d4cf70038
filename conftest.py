"""Shared pytest fixtures."""

from datetime import datetime, timedelta, timezone as dt_timezone

import pytest


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 1, 6, 0, tzinfo=dt_timezone.utc))


@pytest.fixture
def height_ranges(db):
    from apps.fleet.models import HeightRange

    bands = [("XS", 140, 154), ("S", 155, 164), ("M", 165, 174), ("L", 175, 184), ("XL", 185, 200)]
    return [
        HeightRange.objects.create(size_class=size, min_height=low, max_height=high)
        for size, low, high in bands
    ]


@pytest.fixture
def fleet(db):
    """Two M bikes, one L and one S in maintenance."""
    from apps.fleet.models import Bike

    return {
        "m1": Bike.objects.create(size_class="M", sticker_number="M1"),
        "m2": Bike.objects.create(size_class="M", sticker_number="M2"),
        "l1": Bike.objects.create(size_class="L", sticker_number="L1"),
        "s1": Bike.objects.create(size_class="S", status=Bike.Status.MAINTENANCE, sticker_number="S1"),
    }

"""
Availability Calculator

Decides which bikes are free for a (date, session) slot given a fleet
snapshot and the bookings that could compete for it.

Everything here works on snapshots. The result is only true at the
moment the snapshot was taken: under concurrent checkouts it goes stale,
and the lock step, not this read, is what prevents double booking.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from shared.domain.base import ValueObject
from shared.domain.value_objects import Session, SessionSlot
from apps.bookings.domain.entities import BookingSnapshot
from apps.fleet.domain.entities import BikeSnapshot
from apps.fleet.domain.sizing import HeightRange, SizeClass

DEFAULT_OCCUPANCY_THRESHOLDS = {'low': 0.4, 'medium': 0.8}


@dataclass(frozen=True)
class SizeAvailability(ValueObject):
    """Per-size availability row for display"""
    size_class: SizeClass
    available: int
    total: int
    min_height: float
    max_height: float


@dataclass(frozen=True)
class CapacityCheck(ValueObject):
    available: bool
    remaining: int


def competing_bookings(slot: SessionSlot, bookings: Iterable[BookingSnapshot]) -> List[BookingSnapshot]:
    """Non-terminal bookings whose slot blocks the target slot"""
    return [
        booking for booking in bookings
        if booking.status.blocks_bikes and slot.is_blocked_by(booking.slot)
    ]


def blocked_bike_ids(slot: SessionSlot, bookings: Iterable[BookingSnapshot]) -> Set[int]:
    """Every bike referenced by a booking that competes with the slot"""
    blocked = set()
    for booking in competing_bookings(slot, bookings):
        blocked.update(booking.bike_ids)
    return blocked


def available_bikes(
    slot: SessionSlot,
    fleet: Iterable[BikeSnapshot],
    bookings: Iterable[BookingSnapshot],
) -> List[BikeSnapshot]:
    """
    Bikes free for the slot, ordered by bike id

    A bike is free when its status is bookable (available or rented)
    and no competing booking holds it. A rented bike can still be
    offered for a later slot; maintenance and out-of-service bikes never
    are.
    """
    blocked = blocked_bike_ids(slot, bookings)
    free = [bike for bike in fleet if bike.is_bookable and bike.id not in blocked]
    return sorted(free, key=lambda bike: bike.id)


def booked_count(
    target_date: date,
    session: Optional[Session],
    bookings: Iterable[BookingSnapshot],
) -> int:
    """
    Riders booked against a slot

    With a session, counts riders of every competing booking. Without
    one, counts riders of all non-terminal bookings on the date itself.
    """
    if session is None:
        matching = [
            booking for booking in bookings
            if booking.status.blocks_bikes and booking.date == target_date
        ]
    else:
        matching = competing_bookings(SessionSlot(target_date, session), bookings)
    return sum(len(booking.riders) for booking in matching)


def availability_by_size(
    slot: SessionSlot,
    fleet: Iterable[BikeSnapshot],
    bookings: Iterable[BookingSnapshot],
    height_ranges: Iterable[HeightRange],
) -> List[SizeAvailability]:
    """
    Free and total bikes per size, with the size's height band

    `total` counts bookable bikes of the size regardless of the slot.
    Sizes without a configured range report a 0-0 band.
    """
    fleet = list(fleet)
    ranges = {height_range.size_class: height_range for height_range in height_ranges}
    free = available_bikes(slot, fleet, bookings)

    rows = []
    for size in SizeClass.ordered():
        height_range = ranges.get(size)
        rows.append(SizeAvailability(
            size_class=size,
            available=sum(1 for bike in free if bike.size_class == size),
            total=sum(1 for bike in fleet if bike.size_class == size and bike.is_bookable),
            min_height=height_range.min_height if height_range else 0,
            max_height=height_range.max_height if height_range else 0,
        ))
    return rows


def check_capacity(booked: int, capacity: int, requested: int) -> CapacityCheck:
    """Coarse "N of M remaining" check against the online capacity"""
    remaining = max(0, capacity - booked)
    return CapacityCheck(available=requested <= remaining, remaining=remaining)


def occupancy_level(
    booked: int,
    total: int,
    thresholds: Optional[Dict[str, float]] = None,
) -> str:
    """
    Colour band for calendar displays

    full at 100%, high above the medium threshold, medium above the low
    threshold, low otherwise. An empty fleet is always full.
    """
    limits = thresholds or DEFAULT_OCCUPANCY_THRESHOLDS
    if total <= 0:
        return 'full'
    occupancy = booked / total
    if occupancy >= 1:
        return 'full'
    if occupancy > limits['medium']:
        return 'high'
    if occupancy > limits['low']:
        return 'medium'
    return 'low'

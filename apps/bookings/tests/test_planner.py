"""Unit tests for the bike assignment planner."""

from datetime import date

import pytest

from apps.bookings.domain.entities import BookingSnapshot, RiderRequest, RiderSnapshot
from apps.bookings.domain.planner import BikeAssignmentPlanner
from apps.fleet.domain.entities import BikeSnapshot
from apps.fleet.domain.sizing import HeightRange, SizeClass, SizeMatcher
from shared.domain.exceptions import InsufficientInventory, NoMatchingSize
from shared.domain.value_objects import Session, SessionSlot

SLOT = SessionSlot(date(2025, 6, 10), Session.MORNING)

RANGES = [
    HeightRange(SizeClass.XS, 140, 154),
    HeightRange(SizeClass.S, 155, 164),
    HeightRange(SizeClass.M, 165, 174),
    HeightRange(SizeClass.L, 175, 184),
    HeightRange(SizeClass.XL, 185, 200),
]


@pytest.fixture
def planner():
    return BikeAssignmentPlanner(SizeMatcher(RANGES))


def bikes(*specs):
    return [BikeSnapshot(id=bike_id, size_class=size, status="available") for bike_id, size in specs]


def riders(*heights):
    return [RiderRequest(ref=str(n), height=height) for n, height in enumerate(heights, start=1)]


def test_each_rider_gets_lowest_id_bike_of_ideal_size(planner):
    fleet = bikes((8, "M"), (2, "M"), (5, "L"))

    plan = planner.plan(riders(170, 172), SLOT, fleet, [])

    assert [a.bike_id for a in plan] == [2, 8]
    assert not any(a.is_substitute for a in plan)


def test_substitute_probes_one_size_up_before_one_down(planner):
    fleet = bikes((1, "S"), (2, "L"))

    (assignment,) = planner.plan(riders(170), SLOT, fleet, [])

    assert assignment.bike_id == 2
    assert assignment.size_class == SizeClass.L
    assert assignment.ideal_size_class == SizeClass.M
    assert assignment.is_substitute


def test_substitute_falls_back_to_one_size_down(planner):
    (assignment,) = planner.plan(riders(170), SLOT, bikes((1, "S")), [])
    assert assignment.size_class == SizeClass.S


def test_sizes_outside_tolerance_are_never_offered():
    planner = BikeAssignmentPlanner(SizeMatcher(RANGES, tolerance=0.05))

    with pytest.raises(InsufficientInventory):
        planner.plan(riders(170), SLOT, bikes((1, "L"), (2, "S")), [])


def test_plan_is_deterministic(planner):
    fleet = bikes((4, "M"), (3, "L"), (9, "S"), (1, "M"))
    group = riders(170, 170, 170, 160)

    assert planner.plan(group, SLOT, fleet, []) == planner.plan(group, SLOT, fleet, [])


def test_one_unmatched_rider_fails_the_whole_group(planner):
    fleet = bikes((1, "M"), (2, "M"))

    with pytest.raises(InsufficientInventory) as excinfo:
        planner.plan(riders(170, 170, 190, 170), SLOT, fleet, [])

    assert excinfo.value.rider_id == "3"


def test_height_outside_every_range_fails_with_no_matching_size(planner):
    with pytest.raises(NoMatchingSize) as excinfo:
        planner.plan(riders(170, 120), SLOT, bikes((1, "M")), [])

    assert excinfo.value.rider_id == "2"
    assert excinfo.value.height == 120


def test_bikes_held_by_competing_bookings_are_skipped(planner):
    held = BookingSnapshot(
        id=1,
        date=date(2025, 6, 9),
        session=Session.DAILY,
        status="confirmed",
        riders=(RiderSnapshot(id=1, height=170, assigned_bike_id=1),),
    )

    (assignment,) = planner.plan(riders(170), SLOT, bikes((1, "M"), (2, "M")), [held])

    assert assignment.bike_id == 2


def test_bike_is_not_assigned_twice_within_one_plan(planner):
    plan = planner.plan(riders(170, 170), SLOT, bikes((1, "M"), (2, "L")), [])
    assert [a.bike_id for a in plan] == [1, 2]

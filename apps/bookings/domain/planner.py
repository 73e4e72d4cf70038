"""
Bike Assignment Planner

Greedy, deterministic matching of riders to free bikes within one
booking. Riders are served in input order; each takes the lowest-id
free bike of its ideal size, then of the first tolerated adjacent size
(1 up, 1 down, 2 up, 2 down).

The planner has no side effects. Its output is a proposal that only
becomes a reservation once every bike in it is locked.
"""

import logging
from typing import Iterable, List, Sequence, Set

from shared.domain.exceptions import InsufficientInventory, NoMatchingSize
from shared.domain.value_objects import SessionSlot
from apps.bookings.domain.availability import available_bikes
from apps.bookings.domain.entities import BookingSnapshot, RiderAssignment, RiderRequest
from apps.fleet.domain.entities import BikeSnapshot
from apps.fleet.domain.sizing import SizeMatcher

logger = logging.getLogger(__name__)


class BikeAssignmentPlanner:
    """
    Plans bike assignments for a group booking

    Usage:
        planner = BikeAssignmentPlanner(matcher)
        assignments = planner.plan(riders, slot, fleet, bookings)

    All-or-nothing: if any rider cannot be matched the whole plan fails
    and no partial assignment is returned.
    """

    def __init__(self, matcher: SizeMatcher):
        self.matcher = matcher

    def plan(
        self,
        riders: Sequence[RiderRequest],
        slot: SessionSlot,
        fleet: Iterable[BikeSnapshot],
        bookings: Iterable[BookingSnapshot],
    ) -> List[RiderAssignment]:
        """
        Assign one bike to every rider

        Raises:
            NoMatchingSize: a rider's height is outside every height range
            InsufficientInventory: no ideal or tolerated bike is left for a rider
        """
        free = available_bikes(slot, fleet, bookings)
        taken: Set[int] = set()
        assignments = []

        for rider in riders:
            assignment = self._assign(rider, free, taken)
            taken.add(assignment.bike_id)
            assignments.append(assignment)

        logger.debug(f"Planned {len(assignments)} riders for {slot}")
        return assignments

    def _assign(
        self,
        rider: RiderRequest,
        free: List[BikeSnapshot],
        taken: Set[int],
    ) -> RiderAssignment:
        ideal = self.matcher.ideal_size(rider.height)
        if ideal is None:
            raise NoMatchingSize(rider_id=rider.ref, height=rider.height)

        for size in self.matcher.candidate_sizes(rider.height):
            bike = next(
                (b for b in free if b.size_class == size and b.id not in taken),
                None,
            )
            if bike is not None:
                return RiderAssignment(
                    rider_ref=rider.ref,
                    height=rider.height,
                    bike_id=bike.id,
                    size_class=size,
                    ideal_size_class=ideal,
                )

        raise InsufficientInventory(
            rider_id=rider.ref,
            detail=f"No {ideal.value} bike or tolerated substitute is free for rider {rider.ref}.",
        )

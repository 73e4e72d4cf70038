"""
Fleet Domain Entities

Read-only views of the fleet used by the availability and planning
code. They are built from ORM rows once per request and never written
back.
"""

from dataclasses import dataclass
from enum import Enum

from shared.domain.base import ValueObject
from apps.fleet.domain.sizing import SizeClass


class BikeStatus(str, Enum):
    """
    Operational bike status

    AVAILABLE and RENTED bikes are part of the bookable fleet. RENTED
    only says the bike is out right now; whether it is free for a slot
    is decided by the overlap rules. MAINTENANCE and UNAVAILABLE bikes
    are never offered.
    """
    AVAILABLE = 'available'
    RENTED = 'rented'
    MAINTENANCE = 'maintenance'
    UNAVAILABLE = 'unavailable'

    @classmethod
    def bookable(cls) -> frozenset:
        return frozenset({cls.AVAILABLE, cls.RENTED})


@dataclass(frozen=True)
class BikeSnapshot(ValueObject):
    """Point-in-time view of one bike"""
    id: int
    size_class: SizeClass
    status: BikeStatus

    def __post_init__(self):
        if not isinstance(self.size_class, SizeClass):
            object.__setattr__(self, 'size_class', SizeClass(self.size_class))
        if not isinstance(self.status, BikeStatus):
            object.__setattr__(self, 'status', BikeStatus(self.status))

    @property
    def is_bookable(self) -> bool:
        return self.status in BikeStatus.bookable()

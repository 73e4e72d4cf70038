"""
Booking Domain Events

Events raised while a checkout runs and when bookings change state.
They are published on the message bus after the surrounding
transaction commits.
"""

from dataclasses import dataclass, field
from typing import List

from shared.domain.base import DomainEvent
from shared.domain.value_objects import SessionSlot


@dataclass
class BikesLocked(DomainEvent):
    """
    Event: every bike of a plan is leased to one checkout session

    Triggers:
    - Log the lease for rate-limit and contention telemetry
    """
    session_token: str = ''
    bike_ids: List[int] = field(default_factory=list)
    slot: SessionSlot = None
    ttl_seconds: int = 0


@dataclass
class LocksReleased(DomainEvent):
    """Event: a checkout session gave its leases back"""
    session_token: str = ''
    released_count: int = 0
    committed: bool = False


@dataclass
class BookingCommitted(DomainEvent):
    """
    Event: a booking was written with its bike assignments

    Triggers:
    - Send the booking confirmation
    - Refresh availability displays
    """
    booking_id: int = None
    slot: SessionSlot = None
    bike_ids: List[int] = field(default_factory=list)
    substitutions: int = 0


@dataclass
class BookingCancelled(DomainEvent):
    """Event: a booking was cancelled and its bikes returned to the pool"""
    booking_id: int = None
    slot: SessionSlot = None
    returned_bike_ids: List[int] = field(default_factory=list)

"""
Booking Domain Entities

- BookingStatus: lifecycle states and which of them hold bikes
- RiderSnapshot / BookingSnapshot: read-only views of stored bookings
- RiderRequest / RiderAssignment: planner input and output
- Checkout: aggregate for one checkout attempt (plan, lock, commit)
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Tuple
from uuid import UUID

from shared.domain.base import Aggregate, ValueObject
from shared.domain.value_objects import Session, SessionSlot
from apps.fleet.domain.sizing import SizeClass


class BookingStatus(str, Enum):
    """
    Booking lifecycle

    - PENDING -> CONFIRMED (payment taken)
    - CONFIRMED -> CHECKED_IN (safety briefing done, bikes handed over)
    - CHECKED_IN -> ACTIVE (riders out on the trail)
    - ACTIVE -> COMPLETED (bikes returned)
    - any non-terminal state -> CANCELLED

    Only non-terminal bookings hold their bikes.
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CHECKED_IN = 'checked-in'
    ACTIVE = 'active'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    @classmethod
    def terminal(cls) -> frozenset:
        return frozenset({cls.COMPLETED, cls.CANCELLED})

    @property
    def blocks_bikes(self) -> bool:
        return self not in BookingStatus.terminal()


@dataclass(frozen=True)
class RiderSnapshot(ValueObject):
    id: int
    height: float
    assigned_bike_id: Optional[int] = None
    assigned_size_class: Optional[SizeClass] = None


@dataclass(frozen=True)
class BookingSnapshot(ValueObject):
    """Point-in-time view of a stored booking"""
    id: int
    date: date
    session: Session
    status: BookingStatus
    riders: Tuple[RiderSnapshot, ...] = ()

    def __post_init__(self):
        if not isinstance(self.session, Session):
            object.__setattr__(self, 'session', Session(self.session))
        if not isinstance(self.status, BookingStatus):
            object.__setattr__(self, 'status', BookingStatus(self.status))
        object.__setattr__(self, 'riders', tuple(self.riders))

    @property
    def slot(self) -> SessionSlot:
        return SessionSlot(self.date, self.session)

    @property
    def bike_ids(self) -> List[int]:
        return [r.assigned_bike_id for r in self.riders if r.assigned_bike_id is not None]


@dataclass(frozen=True)
class RiderRequest(ValueObject):
    """
    A rider to be matched to a bike

    `ref` is the caller's handle for the rider (list position, form id);
    it is echoed back in the assignment and in planner errors.
    """
    ref: str
    height: float
    name: str = ''


@dataclass(frozen=True)
class RiderAssignment(ValueObject):
    rider_ref: str
    height: float
    bike_id: int
    size_class: SizeClass
    ideal_size_class: SizeClass

    @property
    def is_substitute(self) -> bool:
        return self.size_class != self.ideal_size_class


class CheckoutState(Enum):
    PLANNED = 'planned'
    LOCKED = 'locked'
    COMMITTED = 'committed'
    RELEASED = 'released'


@dataclass
class Checkout(Aggregate):
    """
    Checkout Aggregate Root

    Tracks one attempt to turn a rider list into a booking:
    PLANNED -> LOCKED -> COMMITTED -> RELEASED, or PLANNED/LOCKED ->
    RELEASED when the attempt is abandoned. Lock rows and booking rows
    live in the database; this aggregate only records what happened so
    the unit of work can publish it after commit.
    """
    session_token: str = ''
    slot: SessionSlot = None
    assignments: List[RiderAssignment] = field(default_factory=list)
    state: CheckoutState = CheckoutState.PLANNED
    booking_id: Optional[int] = None
    attempts: int = 0

    def __post_init__(self):
        if not self.session_token:
            raise ValueError("Checkout requires a session token")
        if self.slot is None:
            raise ValueError("Checkout requires a slot")

    @property
    def bike_ids(self) -> List[int]:
        return [a.bike_id for a in self.assignments]

    def replan(self, assignments: List[RiderAssignment]):
        """Start a new plan-lock cycle with a fresh assignment"""
        if self.state not in (CheckoutState.PLANNED, CheckoutState.RELEASED):
            raise ValueError(f"Cannot replan a checkout in state {self.state.value}")
        self.assignments = list(assignments)
        self.state = CheckoutState.PLANNED
        self.attempts += 1

    def mark_locked(self, ttl_seconds: int):
        from apps.bookings.domain.events import BikesLocked

        if self.state != CheckoutState.PLANNED:
            raise ValueError(f"Cannot lock bikes from state {self.state.value}")
        self.state = CheckoutState.LOCKED
        self.add_event(BikesLocked(
            aggregate_id=self.id,
            session_token=self.session_token,
            bike_ids=self.bike_ids,
            slot=self.slot,
            ttl_seconds=ttl_seconds,
        ))

    def mark_committed(self, booking_id: int):
        from apps.bookings.domain.events import BookingCommitted

        if self.state != CheckoutState.LOCKED:
            raise ValueError(
                f"Cannot commit a booking from state {self.state.value}. "
                f"Bikes must be locked first."
            )
        self.state = CheckoutState.COMMITTED
        self.booking_id = booking_id
        self.add_event(BookingCommitted(
            aggregate_id=self.id,
            booking_id=booking_id,
            slot=self.slot,
            bike_ids=self.bike_ids,
            substitutions=sum(1 for a in self.assignments if a.is_substitute),
        ))

    def mark_released(self, released_count: int):
        from apps.bookings.domain.events import LocksReleased

        was_committed = self.state == CheckoutState.COMMITTED
        self.state = CheckoutState.RELEASED
        self.add_event(LocksReleased(
            aggregate_id=self.id,
            session_token=self.session_token,
            released_count=released_count,
            committed=was_committed,
        ))

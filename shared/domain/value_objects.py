"""
Common Value Objects

Value objects used across the fleet, booking and reservation domains:
- Session: The two rental windows a bike can be booked for
- SessionSlot: A (date, session) pair and the overlap rules between slots
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import FrozenSet, Tuple

from shared.domain.base import ValueObject


class Session(str, Enum):
    """
    Rental windows

    - MORNING: half-day rental, bikes come back the same day
    - DAILY: 24-hour rental, bikes come back the following morning
    """
    MORNING = 'morning'
    DAILY = 'daily'


@dataclass(frozen=True)
class SessionSlot(ValueObject):
    """
    A rental slot: one calendar date plus one session

    The slot knows which other slots compete with it for the same
    physical bike. Given a target slot (D, S), a booking in slot (B, T)
    blocks it when:

    1. B == D and T == S
    2. B == D - 1, T is daily and S is morning (the daily bikes are only
       back the following morning), and conversely B == D + 1, T is
       morning and S is daily (the bike must be back for that morning)
    3. S is morning and a daily booking exists on D (already out)
    4. S is daily and a morning booking exists on D (two-way sync)

    A daily booking on D - 1 does not block a daily slot on D: the next
    daily rental starts after the morning return. The relation is
    symmetric: if a booking in (B, T) blocks (D, S), a booking in (D, S)
    blocks (B, T).
    """
    date: date
    session: Session

    def __post_init__(self):
        # Accept raw strings from serializers/ORM rows
        if not isinstance(self.session, Session):
            object.__setattr__(self, 'session', Session(self.session))

    @property
    def previous_day(self) -> date:
        return self.date - timedelta(days=1)

    @property
    def next_day(self) -> date:
        return self.date + timedelta(days=1)

    def neighbouring_dates(self) -> Tuple[date, date, date]:
        """Every date a blocking booking can fall on"""
        return (self.previous_day, self.date, self.next_day)

    def blocking_slots(self) -> FrozenSet[Tuple[date, Session]]:
        """All (date, session) pairs whose bookings block this slot"""
        slots = {
            (self.date, Session.MORNING),
            (self.date, Session.DAILY),
        }
        if self.session == Session.MORNING:
            slots.add((self.previous_day, Session.DAILY))
        else:
            slots.add((self.next_day, Session.MORNING))
        return frozenset(slots)

    def is_blocked_by(self, other: 'SessionSlot') -> bool:
        """
        Check if a booking held in `other` makes bikes unavailable here

        A daily booking on Monday blocks Tuesday morning, and a Tuesday
        morning booking blocks Monday daily.
        """
        if not isinstance(other, SessionSlot):
            raise TypeError("Can only check overlap with another SessionSlot")
        return (other.date, other.session) in self.blocking_slots()

    def __str__(self):
        return f"{self.date.isoformat()}/{self.session.value}"

    def __repr__(self):
        return f"SessionSlot({self.date}, '{self.session.value}')"

"""
Session booking windows

Same-day bookings close once it is too late to start the ride:
morning sessions at the morning cutoff hour, daily sessions at the
daily cutoff hour, both on the rental location's local clock. Past
dates are always closed and future dates always open.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import List
from zoneinfo import ZoneInfo

from shared.domain.value_objects import Session

MORNING_SESSION_PASSED = 'morning_session_passed'
DAILY_SESSION_PASSED = 'daily_session_passed'
PAST_DATE = 'past_date'


@dataclass(frozen=True)
class SessionWindowPolicy:
    timezone: str = 'Asia/Jerusalem'
    morning_cutoff_hour: int = 10
    daily_cutoff_hour: int = 12

    def cutoff_hour(self, session: Session) -> int:
        if Session(session) == Session.MORNING:
            return self.morning_cutoff_hour
        return self.daily_cutoff_hour

    def is_open(self, target: date, session: Session, now: datetime) -> tuple:
        """
        Check if a slot can still be booked

        Returns (True, None) or (False, reason) where reason is one of
        past_date, morning_session_passed, daily_session_passed.
        `now` must be timezone-aware.
        """
        local_now = now.astimezone(ZoneInfo(self.timezone))
        today = local_now.date()

        if target > today:
            return True, None
        if target < today:
            return False, PAST_DATE

        session = Session(session)
        if local_now.hour >= self.cutoff_hour(session):
            reason = MORNING_SESSION_PASSED if session == Session.MORNING else DAILY_SESSION_PASSED
            return False, reason
        return True, None

    def open_sessions(self, target: date, now: datetime) -> List[Session]:
        return [session for session in Session if self.is_open(target, session, now)[0]]

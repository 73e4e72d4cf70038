"""Unit tests for same-day booking windows."""

from datetime import date, datetime, timezone

import pytest

from apps.bookings.domain.sessions import (
    DAILY_SESSION_PASSED,
    MORNING_SESSION_PASSED,
    PAST_DATE,
    SessionWindowPolicy,
)
from shared.domain.value_objects import Session

TODAY = date(2025, 6, 10)


def utc(hour, minute=0):
    # Jerusalem is UTC+3 in June
    return datetime(2025, 6, 10, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def policy():
    return SessionWindowPolicy()


def test_both_sessions_open_early_in_the_day(policy):
    assert policy.open_sessions(TODAY, utc(6, 30)) == [Session.MORNING, Session.DAILY]


def test_morning_closes_at_the_morning_cutoff(policy):
    assert policy.is_open(TODAY, Session.MORNING, utc(7, 0)) == (False, MORNING_SESSION_PASSED)
    assert policy.is_open(TODAY, Session.DAILY, utc(7, 0)) == (True, None)


def test_daily_closes_at_the_daily_cutoff(policy):
    assert policy.is_open(TODAY, Session.DAILY, utc(9, 0)) == (False, DAILY_SESSION_PASSED)
    assert policy.open_sessions(TODAY, utc(9, 0)) == []


def test_past_dates_are_closed(policy):
    assert policy.is_open(date(2025, 6, 9), Session.DAILY, utc(6)) == (False, PAST_DATE)


def test_future_dates_are_open_regardless_of_the_hour(policy):
    assert policy.is_open(date(2025, 6, 11), Session.MORNING, utc(20)) == (True, None)


def test_local_date_is_used_near_midnight(policy):
    # 22:30 UTC on the 9th is already the 10th in Jerusalem
    late = datetime(2025, 6, 9, 22, 30, tzinfo=timezone.utc)
    assert policy.is_open(date(2025, 6, 9), Session.DAILY, late) == (False, PAST_DATE)
    assert policy.is_open(TODAY, Session.MORNING, late) == (True, None)

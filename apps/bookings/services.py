"""Availability read services for the booking flow.

These functions load fleet and booking snapshots from the database and
hand them to the pure availability calculator. Every result describes
the moment the snapshot was taken; double booking is prevented by the
bike locks, not by these reads.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set
from zoneinfo import ZoneInfo

from django.conf import settings  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain import availability
from apps.bookings.domain.availability import CapacityCheck, SizeAvailability
from apps.bookings.domain.entities import BookingSnapshot
from apps.bookings.domain.sessions import SessionWindowPolicy
from apps.fleet.cache import get_height_ranges
from apps.fleet.domain.entities import BikeSnapshot
from apps.fleet.services import load_fleet
from shared.domain.exceptions import SessionClosed
from shared.domain.value_objects import Session, SessionSlot

from .models import Booking, Rider

MAX_CALENDAR_DAYS = 62


def online_capacity() -> int:
    return int(getattr(settings, "ONLINE_CAPACITY", 15))


def occupancy_thresholds() -> Dict[str, float]:
    return dict(getattr(settings, "OCCUPANCY_THRESHOLDS", availability.DEFAULT_OCCUPANCY_THRESHOLDS))


def session_policy() -> SessionWindowPolicy:
    return SessionWindowPolicy(
        timezone=getattr(settings, "BOOKING_TIMEZONE", "Asia/Jerusalem"),
        morning_cutoff_hour=int(getattr(settings, "MORNING_SESSION_CUTOFF_HOUR", 10)),
        daily_cutoff_hour=int(getattr(settings, "DAILY_SESSION_CUTOFF_HOUR", 12)),
    )


def ensure_session_open(slot: SessionSlot, now: Optional[datetime] = None) -> None:
    """Raise SessionClosed when the slot can no longer be booked."""

    is_open, reason = session_policy().is_open(slot.date, slot.session, now or timezone.now())
    if not is_open:
        raise SessionClosed(reason=reason)


def local_today(now: Optional[datetime] = None) -> date:
    """Calendar date at the rental location."""
    return (now or timezone.now()).astimezone(ZoneInfo(session_policy().timezone)).date()


def bikes_out_on(day: date, bike_ids: Iterable[int]) -> Set[int]:
    """
    Bikes among bike_ids that a live booking has out on day

    A bike is out when a non-terminal booking holds it for either
    session of that day, or for the previous day's daily session
    (returned the next morning).
    """
    out = Booking.objects.holding_bikes().filter(
        Q(date=day) | Q(date=day - timedelta(days=1), session=Session.DAILY.value)
    )
    return set(
        Rider.objects.filter(booking__in=out, assigned_bike_id__in=list(bike_ids))
        .values_list("assigned_bike_id", flat=True)
    )


def load_competing_bookings(slot: SessionSlot) -> List[BookingSnapshot]:
    """Snapshots of every non-terminal booking that could block the slot."""

    return Booking.objects.competing_with(slot).snapshots()


def available_bikes(target_date: date, session: Session) -> List[BikeSnapshot]:
    slot = SessionSlot(target_date, session)
    return availability.available_bikes(slot, load_fleet(), load_competing_bookings(slot))


def booked_count(target_date: date, session: Optional[Session] = None) -> int:
    """Riders booked against a slot, or against the whole date without a session."""

    if session is None:
        bookings = Booking.objects.holding_bikes().filter(date=target_date).snapshots()
    else:
        bookings = load_competing_bookings(SessionSlot(target_date, session))
    return availability.booked_count(target_date, session, bookings)


def availability_by_size(target_date: date, session: Session) -> List[SizeAvailability]:
    slot = SessionSlot(target_date, session)
    return availability.availability_by_size(
        slot,
        load_fleet(),
        load_competing_bookings(slot),
        get_height_ranges(),
    )


def check_capacity(target_date: date, session: Session, requested: int) -> CapacityCheck:
    return availability.check_capacity(
        booked=booked_count(target_date, session),
        capacity=online_capacity(),
        requested=requested,
    )


def booked_counts_between(start: date, end: date) -> List[dict]:
    """
    Per-day booked rider counts and occupancy bands for a calendar view.

    One query covers the whole range; days are computed in memory. The
    range is inclusive and capped at MAX_CALENDAR_DAYS.
    """
    if end < start:
        raise ValueError("End date must not be before start date")
    if (end - start).days >= MAX_CALENDAR_DAYS:
        raise ValueError(f"Calendar range cannot exceed {MAX_CALENDAR_DAYS} days")

    bookings = (
        Booking.objects.holding_bikes()
        .filter(date__gte=start - timedelta(days=1), date__lte=end + timedelta(days=1))
        .snapshots()
    )
    capacity = online_capacity()
    thresholds = occupancy_thresholds()

    days = []
    current = start
    while current <= end:
        row = {"date": current, "booked": availability.booked_count(current, None, bookings)}
        for session in Session:
            booked = availability.booked_count(current, session, bookings)
            row[session.value] = {
                "booked": booked,
                "remaining": max(0, capacity - booked),
                "level": availability.occupancy_level(booked, capacity, thresholds),
            }
        days.append(row)
        current += timedelta(days=1)
    return days

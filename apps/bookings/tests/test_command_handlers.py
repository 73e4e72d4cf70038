"""Tests for the booking commit flow."""

from datetime import date, timedelta

import pytest

from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CreateBookingCommand,
    CreateBookingHandler,
)
from apps.bookings.domain.entities import RiderRequest
from apps.bookings.models import Booking, Rider
from apps.fleet.models import Bike
from apps.reservations.models import BikeLock
from apps.reservations.services import BikeLockManager
from apps.throttle.models import AttemptRecord
from shared.domain.exceptions import (
    BookingStateError,
    InsufficientInventory,
    LockOwnershipLost,
    NoMatchingSize,
    RateLimited,
    SessionClosed,
)
from shared.domain.value_objects import Session

TOKEN = "checkout-token-1"
FUTURE = date(2025, 6, 10)
# The shared clock fixture starts at 2025-06-01 09:00 in Jerusalem
TODAY = date(2025, 6, 1)


def command(*heights, day=FUTURE, session=Session.MORNING, client="client-1"):
    return CreateBookingCommand(
        date=day,
        session=session,
        riders=[RiderRequest(ref=str(n), height=h, name=f"Rider {n}") for n, h in enumerate(heights, start=1)],
        session_token=TOKEN,
        client_id=client,
        contact_phone="+972500000000",
    )


@pytest.fixture
def handler(clock):
    return CreateBookingHandler(clock=clock)


@pytest.mark.django_db
def test_booking_is_written_with_assigned_bikes(handler, height_ranges, fleet):
    booking = handler.handle(command(170, 172))

    riders = list(booking.riders.order_by("position"))
    assert [r.assigned_bike_id for r in riders] == [fleet["m1"].id, fleet["m2"].id]
    assert [r.assigned_size_class for r in riders] == ["M", "M"]
    assert riders[0].name == "Rider 1"
    assert booking.status == Booking.Status.PENDING
    assert booking.checkout_session == TOKEN
    assert not BikeLock.objects.exists()
    assert AttemptRecord.objects.get().outcome == AttemptRecord.Outcome.SUCCESS


@pytest.mark.django_db
def test_future_booking_leaves_bike_status_alone(handler, height_ranges, fleet):
    handler.handle(command(170))
    fleet["m1"].refresh_from_db()
    assert fleet["m1"].status == Bike.Status.AVAILABLE


@pytest.mark.django_db
def test_same_day_booking_marks_bikes_rented(handler, height_ranges, fleet):
    handler.handle(command(170, day=TODAY))
    fleet["m1"].refresh_from_db()
    assert fleet["m1"].status == Bike.Status.RENTED


@pytest.mark.django_db
def test_substitute_size_is_used_when_ideal_is_gone(handler, height_ranges, fleet):
    booking = handler.handle(command(170, 170, 170))
    assert [r.assigned_size_class for r in booking.riders.order_by("position")] == ["M", "M", "L"]


@pytest.mark.django_db
def test_second_booking_cannot_reuse_held_bikes(handler, height_ranges, fleet):
    handler.handle(command(170, 170, 170, session=Session.DAILY))

    with pytest.raises(InsufficientInventory):
        handler.handle(command(170, day=date(2025, 6, 11)))

    assert Booking.objects.count() == 1
    assert not BikeLock.objects.exists()
    outcomes = list(AttemptRecord.objects.order_by("id").values_list("outcome", flat=True))
    assert outcomes == ["success", "failure"]


@pytest.mark.django_db
def test_unmatched_height_fails_without_side_effects(handler, height_ranges, fleet):
    with pytest.raises(NoMatchingSize):
        handler.handle(command(170, 120))

    assert not Booking.objects.exists()
    assert not Rider.objects.exists()


@pytest.mark.django_db
def test_closed_session_is_refused(handler, height_ranges, fleet, clock):
    clock.advance(hours=2)  # 11:00 local, morning cutoff passed

    with pytest.raises(SessionClosed) as excinfo:
        handler.handle(command(170, day=TODAY))

    assert excinfo.value.reason == "morning_session_passed"


@pytest.mark.django_db
def test_booking_attempts_are_throttled(handler, height_ranges, fleet):
    for _ in range(5):
        with pytest.raises(NoMatchingSize):
            handler.handle(command(120))

    with pytest.raises(RateLimited):
        handler.handle(command(170))

    assert AttemptRecord.objects.count() == 5
    assert handler.handle(command(170, client="client-2")).pk


@pytest.mark.django_db
def test_bikes_locked_by_another_checkout_are_skipped(handler, height_ranges, fleet, clock):
    BikeLockManager(clock=clock).acquire_lock(fleet["m1"].id, "someone-else")

    booking = handler.handle(command(170))

    assert booking.riders.get().assigned_bike_id == fleet["m2"].id
    assert BikeLock.objects.get().session_token == "someone-else"


class RacingLockManager(BikeLockManager):
    """Commits a competing booking on bike `stolen_id` right before locking."""

    def __init__(self, stolen_id, **kwargs):
        super().__init__(**kwargs)
        self.stolen_id = stolen_id
        self.raced = False

    def lock_or_raise(self, bike_ids, session_token, ttl=None):
        if not self.raced:
            self.raced = True
            competitor = Booking.objects.create(date=FUTURE, session="morning")
            Rider.objects.create(booking=competitor, height=170, assigned_bike_id=self.stolen_id)
        return super().lock_or_raise(bike_ids, session_token, ttl)


@pytest.mark.django_db
def test_stale_plan_is_replanned(height_ranges, fleet, clock):
    handler = CreateBookingHandler(lock_manager=RacingLockManager(fleet["m1"].id, clock=clock), clock=clock)

    booking = handler.handle(command(170))

    assert booking.riders.get().assigned_bike_id == fleet["m2"].id
    assert not BikeLock.objects.held_by(TOKEN).exists()


class HijackedLockManager(BikeLockManager):
    """Loses every lock to another session right after acquiring it."""

    def lock_or_raise(self, bike_ids, session_token, ttl=None):
        super().lock_or_raise(bike_ids, session_token, ttl)
        BikeLock.objects.filter(bike_id__in=bike_ids).update(session_token="hijacker")


@pytest.mark.django_db
def test_lost_lock_aborts_the_commit(height_ranges, fleet, clock):
    handler = CreateBookingHandler(lock_manager=HijackedLockManager(clock=clock), clock=clock)

    with pytest.raises(LockOwnershipLost):
        handler.handle(command(170))

    assert not Booking.objects.exists()


@pytest.mark.django_db
def test_cancel_returns_rented_bikes(handler, height_ranges, fleet, clock):
    booking = handler.handle(command(170, day=TODAY))

    cancelled = CancelBookingHandler(clock=clock).handle(CancelBookingCommand(booking_id=booking.pk))

    assert cancelled.status == Booking.Status.CANCELLED
    assert cancelled.cancelled_at == clock.now
    fleet["m1"].refresh_from_db()
    assert fleet["m1"].status == Bike.Status.AVAILABLE

    # The bike is bookable again for the same slot
    again = handler.handle(command(170, day=TODAY))
    assert again.riders.get().assigned_bike_id == fleet["m1"].id


@pytest.mark.django_db
def test_cancelling_a_future_booking_keeps_todays_rental_out(handler, height_ranges, fleet, clock):
    handler.handle(command(170, day=TODAY))
    future = handler.handle(command(170))
    assert future.riders.get().assigned_bike_id == fleet["m1"].id

    CancelBookingHandler(clock=clock).handle(CancelBookingCommand(booking_id=future.pk))

    fleet["m1"].refresh_from_db()
    assert fleet["m1"].status == Bike.Status.RENTED


def _held_booking(bike, day, session, status=Booking.Status.CONFIRMED):
    booking = Booking.objects.create(date=day, session=session, status=status)
    Rider.objects.create(booking=booking, height=170, assigned_bike=bike, assigned_size_class=bike.size_class)
    return booking


@pytest.mark.django_db
def test_cancel_keeps_bike_out_on_yesterdays_daily_rental(height_ranges, fleet, clock):
    bike = fleet["m1"]
    _held_booking(bike, TODAY - timedelta(days=1), "daily", status=Booking.Status.ACTIVE)
    today = _held_booking(bike, TODAY, "daily")
    Bike.objects.filter(pk=bike.pk).update(status=Bike.Status.RENTED)

    CancelBookingHandler(clock=clock).handle(CancelBookingCommand(booking_id=today.pk))

    bike.refresh_from_db()
    assert bike.status == Bike.Status.RENTED


@pytest.mark.django_db
def test_terminal_booking_cannot_be_cancelled(handler, height_ranges, fleet):
    booking = handler.handle(command(170))
    CancelBookingHandler().handle(CancelBookingCommand(booking_id=booking.pk))

    with pytest.raises(BookingStateError):
        CancelBookingHandler().handle(CancelBookingCommand(booking_id=booking.pk))

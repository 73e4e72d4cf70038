"""
Booking event subscribers

Registered on the message bus by BookingsConfig.ready(). They run after
the booking transaction has committed.
"""

import structlog

from apps.bookings.domain.events import BikesLocked, BookingCancelled, BookingCommitted, LocksReleased
from shared.application.message_bus import MessageBus

logger = structlog.get_logger(__name__)


def log_bikes_locked(event: BikesLocked):
    logger.info(
        "checkout.bikes_locked",
        checkout_id=str(event.aggregate_id),
        session=event.session_token[:8],
        slot=str(event.slot),
        bike_ids=event.bike_ids,
        ttl_seconds=event.ttl_seconds,
    )


def log_locks_released(event: LocksReleased):
    logger.info(
        "checkout.locks_released",
        checkout_id=str(event.aggregate_id),
        session=event.session_token[:8],
        released=event.released_count,
        committed=event.committed,
    )


def log_booking_committed(event: BookingCommitted):
    logger.info(
        "booking.committed",
        booking_id=event.booking_id,
        slot=str(event.slot),
        bike_ids=event.bike_ids,
        substitutions=event.substitutions,
    )


def log_booking_cancelled(event: BookingCancelled):
    logger.info(
        "booking.cancelled_event",
        booking_id=event.booking_id,
        slot=str(event.slot),
        returned_bike_ids=event.returned_bike_ids,
    )


def register(bus: MessageBus):
    bus.subscribe(BikesLocked, log_bikes_locked)
    bus.subscribe(LocksReleased, log_locks_released)
    bus.subscribe(BookingCommitted, log_booking_committed)
    bus.subscribe(BookingCancelled, log_booking_cancelled)

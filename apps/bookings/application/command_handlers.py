"""
Booking Command Handlers

Use cases that change bookings. They orchestrate the planner, the bike
locks and the attempt throttle inside database transactions.

Commands:
- CreateBookingCommand: Plan, lock and commit a group booking
- CancelBookingCommand: Cancel a booking and hand its bikes back
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Sequence

import structlog
from django.conf import settings
from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    BookingStateError,
    InsufficientInventory,
    LockContention,
)
from shared.domain.value_objects import Session, SessionSlot
from apps.bookings import services
from apps.bookings.domain.availability import blocked_bike_ids
from apps.bookings.domain.entities import Checkout, RiderAssignment, RiderRequest
from apps.bookings.domain.events import BookingCancelled
from apps.bookings.domain.planner import BikeAssignmentPlanner
from apps.bookings.models import Booking, Rider
from apps.fleet.models import Bike
from apps.fleet.services import get_size_matcher, load_fleet
from apps.reservations.services import BikeLockManager, default_lock_ttl
from apps.throttle.models import AttemptRecord
from apps.throttle.services import AttemptThrottle

logger = structlog.get_logger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to book bikes for a group of riders

    `session_token` scopes the bike locks to this checkout attempt;
    `client_id` is the throttle key of the caller.
    """
    date: date
    session: Session
    riders: List[RiderRequest]
    session_token: str
    client_id: str
    contact_phone: str = ''
    contact_email: str = ''


@dataclass
class CancelBookingCommand:
    booking_id: int
    reason: str = ''


@dataclass
class PlanResult:
    slot: SessionSlot
    assignments: List[RiderAssignment] = field(default_factory=list)


def plan_assignments(
    riders: Sequence[RiderRequest],
    slot: SessionSlot,
    lock_manager: Optional[BikeLockManager] = None,
    session_token: Optional[str] = None,
) -> PlanResult:
    """
    Propose bikes for the riders without taking any lock

    Bikes currently locked by other checkout sessions are left out so
    the proposal does not point at bikes someone else is about to book.
    """
    lock_manager = lock_manager or BikeLockManager()
    locked_elsewhere = lock_manager.locked_bike_ids(exclude_session=session_token)
    fleet = [bike for bike in load_fleet() if bike.id not in locked_elsewhere]
    bookings = services.load_competing_bookings(slot)

    planner = BikeAssignmentPlanner(get_size_matcher())
    return PlanResult(slot=slot, assignments=planner.plan(riders, slot, fleet, bookings))


class _StalePlan(Exception):
    """A planned bike was booked between the plan and the lock"""

    def __init__(self, bike_ids):
        self.bike_ids = sorted(bike_ids)
        super().__init__(f"Bikes booked concurrently: {self.bike_ids}")


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    Flow per attempt:
    1. Plan against a fresh snapshot, skipping bikes locked by others
    2. Lock every planned bike (all or nothing)
    3. In one transaction: verify lock ownership, re-check the slot's
       bookings, write the booking and its riders, release the locks
    4. If the locks were contended or the plan went stale, replan

    Attempts are capped at BOOKING_PLAN_MAX_RETRIES. Planner failures
    (no matching size, not enough bikes) end the command immediately.
    Every attempt that passes the throttle is recorded with its outcome.
    """

    def __init__(
        self,
        lock_manager: Optional[BikeLockManager] = None,
        throttle: Optional[AttemptThrottle] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_attempts: Optional[int] = None,
    ):
        self.clock = clock or timezone.now
        self.lock_manager = lock_manager or BikeLockManager(clock=self.clock)
        self.throttle = throttle or AttemptThrottle(clock=self.clock)
        self.max_attempts = max_attempts or int(getattr(settings, "BOOKING_PLAN_MAX_RETRIES", 3))

    def handle(self, command: CreateBookingCommand) -> Booking:
        """
        Create the booking

        Raises:
            RateLimited: too many booking attempts from this client
            SessionClosed: past date or same-day cutoff passed
            NoMatchingSize / InsufficientInventory: the group cannot be served
            LockContention / LockOwnershipLost: retries ran out under contention
        """
        category = AttemptRecord.Category.BOOKING
        attempt = self.throttle.begin_attempt(command.client_id, category)

        slot = SessionSlot(command.date, command.session)
        log = logger.bind(slot=str(slot), session=command.session_token[:8], riders=len(command.riders))

        succeeded = False
        try:
            services.ensure_session_open(slot, self.clock())
            if not command.riders:
                raise InsufficientInventory(detail="A booking needs at least one rider.")
            booking = self._book(command, slot, log)
            succeeded = True
            return booking
        finally:
            self.throttle.finish_attempt(attempt, success=succeeded, detail=str(slot))

    def _book(self, command: CreateBookingCommand, slot: SessionSlot, log) -> Booking:
        try:
            return self._plan_lock_commit(command, slot, log)
        except Exception:
            self.lock_manager.release_all(command.session_token)
            raise

    def _plan_lock_commit(self, command: CreateBookingCommand, slot: SessionSlot, log) -> Booking:
        checkout = Checkout(session_token=command.session_token, slot=slot)
        ttl = default_lock_ttl()

        for attempt in range(1, self.max_attempts + 1):
            plan = plan_assignments(command.riders, slot, self.lock_manager, command.session_token)
            checkout.replan(plan.assignments)

            try:
                self.lock_manager.lock_or_raise(checkout.bike_ids, command.session_token, ttl)
            except LockContention as exc:
                log.info("booking.lock_contended", attempt=attempt, bike_ids=exc.bike_ids)
                if attempt == self.max_attempts:
                    raise
                continue
            checkout.mark_locked(ttl)

            try:
                return self._commit(command, checkout)
            except _StalePlan as exc:
                released = self.lock_manager.release_all(command.session_token)
                checkout.mark_released(released)
                log.info("booking.plan_stale", attempt=attempt, bike_ids=exc.bike_ids)
                if attempt == self.max_attempts:
                    raise InsufficientInventory(
                        detail="The bikes for this group were just booked by someone else."
                    ) from exc

        # Unreachable: the last attempt either returns or raises
        raise LockContention(bike_ids=checkout.bike_ids)

    def _commit(self, command: CreateBookingCommand, checkout: Checkout) -> Booking:
        slot = checkout.slot
        bike_ids = set(checkout.bike_ids)

        with DjangoUnitOfWork() as uow:
            self.lock_manager.verify_ownership(bike_ids, command.session_token)

            # Bookings committed after our snapshot hold their bikes now
            taken = blocked_bike_ids(slot, services.load_competing_bookings(slot)) & bike_ids
            if taken:
                raise _StalePlan(taken)

            booking = Booking.objects.create(
                date=slot.date,
                session=slot.session.value,
                contact_phone=command.contact_phone,
                contact_email=command.contact_email,
                client_identifier=command.client_id,
                checkout_session=command.session_token,
            )
            requests = {rider.ref: rider for rider in command.riders}
            Rider.objects.bulk_create([
                Rider(
                    booking=booking,
                    name=requests[assignment.rider_ref].name,
                    height=round(assignment.height),
                    assigned_bike_id=assignment.bike_id,
                    assigned_size_class=assignment.size_class.value,
                    position=position,
                )
                for position, assignment in enumerate(checkout.assignments)
            ])

            if slot.date == services.local_today(self.clock()):
                Bike.objects.filter(pk__in=bike_ids, status=Bike.Status.AVAILABLE).update(
                    status=Bike.Status.RENTED
                )

            checkout.mark_committed(booking.pk)
            released = self.lock_manager.release_all(command.session_token)
            checkout.mark_released(released)
            uow.collect_events(checkout)

        logger.info(
            "booking.created",
            booking_code=booking.booking_code,
            slot=str(slot),
            bike_ids=sorted(bike_ids),
            attempts=checkout.attempts,
        )
        return booking


class CancelBookingHandler:
    """
    Handler for CancelBooking command

    Cancelled bookings stop holding their bikes at once. Only a booking
    that has its bikes out today can have marked them rented; those go
    back to available unless another live booking still has them out
    today.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or timezone.now

    def handle(self, command: CancelBookingCommand) -> Booking:
        with DjangoUnitOfWork() as uow:
            booking = Booking.objects.select_for_update().get(pk=command.booking_id)
            if booking.is_terminal:
                raise BookingStateError(
                    status=booking.status,
                    detail=f"Booking {booking.booking_code} is already {booking.status}.",
                )

            booking.status = Booking.Status.CANCELLED
            booking.cancelled_at = self.clock()
            booking.save(update_fields=["status", "cancelled_at", "updated_at"])

            returned = []
            today = services.local_today(self.clock())
            if booking.date == today or (
                booking.session == Booking.SessionChoice.DAILY and booking.date == today - timedelta(days=1)
            ):
                bike_ids = set(
                    booking.riders.exclude(assigned_bike__isnull=True).values_list("assigned_bike_id", flat=True)
                )
                returned = sorted(bike_ids - services.bikes_out_on(today, bike_ids))
            Bike.objects.filter(pk__in=returned, status=Bike.Status.RENTED).update(status=Bike.Status.AVAILABLE)

            uow.record(BookingCancelled(
                booking_id=booking.pk,
                slot=booking.slot,
                returned_bike_ids=returned,
            ))

        logger.info(
            "booking.cancelled",
            booking_code=booking.booking_code,
            reason=command.reason,
            returned_bike_ids=returned,
        )
        return booking

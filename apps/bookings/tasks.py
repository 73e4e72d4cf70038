"""Celery tasks for the booking domain."""

from __future__ import annotations

from datetime import timedelta
from zoneinfo import ZoneInfo

import structlog
from celery import shared_task  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore

from apps.fleet.models import Bike

from .models import Booking, Rider
from .services import bikes_out_on, session_policy

logger = structlog.get_logger(__name__)

# Riders are out on the trail; once the session is over the booking is done
IN_PROGRESS_STATUSES = (Booking.Status.CHECKED_IN, Booking.Status.ACTIVE)


@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    Complete bookings whose bikes are back.

    Morning bikes are back at the end of the booking date. Daily bikes
    are back the next morning, counted from the morning cutoff hour.
    Bikes marked rented go back to available unless another live
    booking still has them out today, including yesterday's daily
    rentals that are not back yet.

    Runs hourly via Celery Beat.
    """
    policy = session_policy()
    local_now = timezone.now().astimezone(ZoneInfo(policy.timezone))
    today = local_now.date()
    yesterday = today - timedelta(days=1)

    daily_returned = Q(session=Booking.SessionChoice.DAILY, date__lt=yesterday)
    if local_now.hour >= policy.morning_cutoff_hour:
        daily_returned |= Q(session=Booking.SessionChoice.DAILY, date=yesterday)
    finished = Q(session=Booking.SessionChoice.MORNING, date__lt=today) | daily_returned

    with transaction.atomic():
        bookings = Booking.objects.select_for_update().filter(status__in=IN_PROGRESS_STATUSES).filter(finished)
        booking_ids = list(bookings.values_list("pk", flat=True))
        if not booking_ids:
            return {"completed": 0, "bikes_returned": 0}

        bike_ids = set(
            Rider.objects.filter(booking_id__in=booking_ids, assigned_bike__isnull=False)
            .values_list("assigned_bike_id", flat=True)
        )
        Booking.objects.filter(pk__in=booking_ids).update(
            status=Booking.Status.COMPLETED,
            updated_at=timezone.now(),
        )

        still_out = bikes_out_on(today, bike_ids)
        returned = Bike.objects.filter(
            pk__in=bike_ids - still_out,
            status=Bike.Status.RENTED,
        ).update(status=Bike.Status.AVAILABLE)

    logger.info("booking.completed_finished", completed=len(booking_ids), bikes_returned=returned)
    return {"completed": len(booking_ids), "bikes_returned": returned}

"""Celery tasks for checkout locks."""

from __future__ import annotations

from datetime import timedelta

import structlog
from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore

from .services import BikeLockManager

logger = structlog.get_logger(__name__)


@shared_task(name="reservations.purge_expired_locks")
def purge_expired_locks() -> dict[str, int]:
    """
    Delete lock rows that expired a while ago.

    Expired rows are already ignored by every read; this job only keeps
    the table small. Rows are kept for BIKE_LOCK_RETENTION_SECONDS after
    expiry so recent contention can still be inspected in the admin.

    Runs every 10 minutes via Celery Beat.
    """
    retention = timedelta(seconds=int(getattr(settings, "BIKE_LOCK_RETENTION_SECONDS", 3600)))
    purged = BikeLockManager().purge_expired(retention)
    if purged:
        logger.info("bike_lock.purged", purged=purged)
    return {"purged": purged}

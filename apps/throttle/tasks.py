"""Celery tasks for the attempt log."""

from __future__ import annotations

from datetime import timedelta

import structlog
from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore

from .services import AttemptThrottle

logger = structlog.get_logger(__name__)


@shared_task(name="throttle.prune_attempt_records")
def prune_attempt_records() -> dict[str, int]:
    """
    Drop attempt records older than ATTEMPT_RETENTION_DAYS.

    Windows are at most a few hours long, so old rows only matter for
    the admin telemetry page. Runs daily via Celery Beat.
    """
    retention = timedelta(days=int(getattr(settings, "ATTEMPT_RETENTION_DAYS", 30)))
    pruned = AttemptThrottle().prune(retention)
    logger.info("throttle.pruned", pruned=pruned, retention_days=retention.days)
    return {"pruned": pruned}

import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("velorent")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Expired bike locks - every 10 minutes
    "purge-expired-locks": {
        "task": "reservations.purge_expired_locks",
        "schedule": 600.0,
        "options": {"expires": 540},
    },
    # Attempt log retention - daily at 03:30
    "prune-attempt-records": {
        "task": "throttle.prune_attempt_records",
        "schedule": crontab(minute=30, hour=3),
    },
    # Finished rentals - every hour at :05
    "complete-finished-bookings": {
        "task": "bookings.complete_finished_bookings",
        "schedule": crontab(minute=5),
    },
}

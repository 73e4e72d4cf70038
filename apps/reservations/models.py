"""Checkout lock model.

One row per bike at most: the unique constraint on ``bike_id`` is what
makes two racing inserts resolve to a single winner. A row whose
``expires_at`` has passed is a dead lease; every read treats it as
absent and the next acquire takes it over in place.
"""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class BikeLockQuerySet(models.QuerySet):
    def active(self, now=None):
        return self.filter(expires_at__gt=now or timezone.now())

    def expired(self, now=None):
        return self.filter(expires_at__lte=now or timezone.now())

    def held_by(self, session_token: str):
        return self.filter(session_token=session_token)


class BikeLock(models.Model):
    """Short-lived exclusive lease on one bike during checkout."""

    bike_id = models.PositiveIntegerField(unique=True)
    session_token = models.CharField(max_length=64, db_index=True)
    acquired_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(db_index=True)

    objects = BikeLockQuerySet.as_manager()

    class Meta:
        verbose_name = _("Bike lock")
        verbose_name_plural = _("Bike locks")
        ordering = ["bike_id"]

    def __str__(self) -> str:
        return f"Bike #{self.bike_id} locked by {self.session_token[:8]} until {self.expires_at:%H:%M:%S}"

    def is_active(self, now=None) -> bool:
        return self.expires_at > (now or timezone.now())

"""Attempt log used by the throttle."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class AttemptRecord(models.Model):
    """One booking, coupon or login attempt by a client. Append-only."""

    class Category(models.TextChoices):
        BOOKING = "booking", _("Booking creation")
        COUPON = "coupon", _("Coupon validation")
        LOGIN = "login", _("Login")

    class Outcome(models.TextChoices):
        SUCCESS = "success", _("Success")
        FAILURE = "failure", _("Failure")

    client_identifier = models.CharField(max_length=128)
    category = models.CharField(max_length=16, choices=Category.choices)
    outcome = models.CharField(max_length=16, choices=Outcome.choices)
    attempted_at = models.DateTimeField(default=timezone.now)
    detail = models.CharField(
        max_length=255,
        blank=True,
        help_text=_("What was attempted, e.g. the coupon code or username."),
    )

    class Meta:
        verbose_name = _("Attempt")
        verbose_name_plural = _("Attempts")
        ordering = ["-attempted_at"]
        indexes = [
            models.Index(
                fields=["client_identifier", "category", "attempted_at"],
                name="attempt_client_window_idx",
            ),
            models.Index(fields=["attempted_at"], name="attempt_time_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.category} {self.outcome} by {self.client_identifier} at {self.attempted_at:%Y-%m-%d %H:%M:%S}"


class ThrottleKey(models.Model):
    """
    One row per (client, category), locked while an attempt is admitted

    Admission reads the window and appends the attempt under this row's
    lock, so concurrent requests from one client are counted one at a
    time.
    """

    client_identifier = models.CharField(max_length=128)
    category = models.CharField(max_length=16, choices=AttemptRecord.Category.choices)

    class Meta:
        verbose_name = _("Throttle key")
        verbose_name_plural = _("Throttle keys")
        constraints = [
            models.UniqueConstraint(
                fields=["client_identifier", "category"],
                name="throttle_key_client_category_uniq",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.category} by {self.client_identifier}"

"""Booking models for VeloRent."""

from __future__ import annotations

import secrets
from datetime import date

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.bookings.domain.entities import BookingSnapshot, BookingStatus, RiderSnapshot
from apps.fleet.domain.sizing import SizeClass
from apps.fleet.models import SizeClassChoices
from shared.domain.value_objects import Session, SessionSlot


class BookingQuerySet(models.QuerySet):
    def holding_bikes(self):
        """Bookings whose riders still hold their bikes."""
        return self.exclude(status__in=[status.value for status in BookingStatus.terminal()])

    def competing_with(self, slot: SessionSlot):
        """Candidate bookings for the overlap rules: the slot date and both neighbouring days."""
        return self.holding_bikes().filter(date__in=slot.neighbouring_dates())

    def snapshots(self) -> list[BookingSnapshot]:
        return [booking.to_snapshot() for booking in self.prefetch_related("riders").order_by("id")]


class Booking(models.Model):
    """Group booking of bikes for one date and session."""

    class SessionChoice(models.TextChoices):
        MORNING = Session.MORNING.value, _("Morning")
        DAILY = Session.DAILY.value, _("Daily (24h)")

    class Status(models.TextChoices):
        PENDING = BookingStatus.PENDING.value, _("Pending")
        CONFIRMED = BookingStatus.CONFIRMED.value, _("Confirmed")
        CHECKED_IN = BookingStatus.CHECKED_IN.value, _("Checked in")
        ACTIVE = BookingStatus.ACTIVE.value, _("Out on the trail")
        COMPLETED = BookingStatus.COMPLETED.value, _("Completed")
        CANCELLED = BookingStatus.CANCELLED.value, _("Cancelled")

    booking_code = models.CharField(max_length=12, unique=True, editable=False)
    date = models.DateField()
    session = models.CharField(max_length=10, choices=SessionChoice.choices)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    contact_phone = models.CharField(max_length=32, blank=True)
    contact_email = models.EmailField(blank=True)
    client_identifier = models.CharField(
        max_length=128,
        blank=True,
        help_text=_("Throttle key of the client that created the booking."),
    )
    checkout_session = models.CharField(
        max_length=64,
        blank=True,
        help_text=_("Session token whose bike locks were held at commit time."),
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["date", "session", "status"], name="booking_slot_status_idx"),
            models.Index(fields=["booking_code"], name="booking_code_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_code} for {self.date} ({self.session})"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_code:
            self.booking_code = self.generate_booking_code()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_booking_code() -> str:
        return secrets.token_hex(4).upper()

    @property
    def slot(self) -> SessionSlot:
        return SessionSlot(self.date, self.session)

    @property
    def is_terminal(self) -> bool:
        return BookingStatus(self.status) in BookingStatus.terminal()

    def starts_today(self, today: date | None = None) -> bool:
        return self.date == (today or timezone.localdate())

    def to_snapshot(self) -> BookingSnapshot:
        return BookingSnapshot(
            id=self.pk,
            date=self.date,
            session=self.session,
            status=self.status,
            riders=tuple(rider.to_snapshot() for rider in self.riders.all()),
        )


class Rider(models.Model):
    """A rider inside a booking and the bike assigned to them."""

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="riders",
    )
    name = models.CharField(max_length=120, blank=True)
    height = models.PositiveSmallIntegerField(help_text=_("Centimeters."))
    assigned_bike = models.ForeignKey(
        "fleet.Bike",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="rider_assignments",
    )
    assigned_size_class = models.CharField(
        max_length=2,
        choices=SizeClassChoices.choices,
        blank=True,
    )
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        verbose_name = _("Rider")
        verbose_name_plural = _("Riders")
        ordering = ["booking_id", "position", "id"]

    def __str__(self) -> str:
        return f"{self.name or 'Rider'} ({self.height} cm)"

    def to_snapshot(self) -> RiderSnapshot:
        return RiderSnapshot(
            id=self.pk,
            height=self.height,
            assigned_bike_id=self.assigned_bike_id,
            assigned_size_class=SizeClass(self.assigned_size_class) if self.assigned_size_class else None,
        )

"""Fleet models: the bike roster and the height range table."""

from __future__ import annotations

from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.fleet.domain.entities import BikeSnapshot, BikeStatus
from apps.fleet.domain.sizing import HeightRange as HeightRangeValue, SizeClass


class SizeClassChoices(models.TextChoices):
    XS = SizeClass.XS.value, "XS"
    S = SizeClass.S.value, "S"
    M = SizeClass.M.value, "M"
    L = SizeClass.L.value, "L"
    XL = SizeClass.XL.value, "XL"


class BikeQuerySet(models.QuerySet):
    def bookable(self):
        return self.filter(status__in=[status.value for status in BikeStatus.bookable()])

    def snapshots(self) -> list[BikeSnapshot]:
        return [bike.to_snapshot() for bike in self.order_by("id")]


class Bike(models.Model):
    """A physical bike in the rental fleet."""

    class Status(models.TextChoices):
        AVAILABLE = BikeStatus.AVAILABLE.value, _("Available")
        RENTED = BikeStatus.RENTED.value, _("Rented")
        MAINTENANCE = BikeStatus.MAINTENANCE.value, _("In maintenance")
        UNAVAILABLE = BikeStatus.UNAVAILABLE.value, _("Out of service")

    size_class = models.CharField(max_length=2, choices=SizeClassChoices.choices)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.AVAILABLE,
    )
    sticker_number = models.CharField(
        max_length=16,
        blank=True,
        help_text=_("Label painted on the frame, e.g. R07."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BikeQuerySet.as_manager()

    class Meta:
        verbose_name = _("Bike")
        verbose_name_plural = _("Bikes")
        ordering = ["id"]
        indexes = [
            models.Index(fields=["size_class", "status"], name="fleet_bike_size_status_idx"),
        ]

    def __str__(self) -> str:
        label = self.sticker_number or f"#{self.pk}"
        return f"Bike {label} ({self.size_class})"

    def to_snapshot(self) -> BikeSnapshot:
        return BikeSnapshot(id=self.pk, size_class=self.size_class, status=self.status)


class HeightRange(models.Model):
    """Rider height band served by one frame size."""

    size_class = models.CharField(
        max_length=2,
        choices=SizeClassChoices.choices,
        unique=True,
    )
    min_height = models.PositiveSmallIntegerField(help_text=_("Centimeters, inclusive."))
    max_height = models.PositiveSmallIntegerField(help_text=_("Centimeters, inclusive."))
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Height range")
        verbose_name_plural = _("Height ranges")
        ordering = ["min_height"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(max_height__gte=models.F("min_height")),
                name="height_range_valid_bounds",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.size_class}: {self.min_height}-{self.max_height} cm"

    def clean(self) -> None:
        if self.min_height is not None and self.max_height is not None and self.min_height > self.max_height:
            raise ValidationError(_("Minimum height must not exceed maximum height."))

    def to_value(self) -> HeightRangeValue:
        return HeightRangeValue(
            size_class=self.size_class,
            min_height=self.min_height,
            max_height=self.max_height,
        )

"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, Rider


class RiderInline(admin.TabularInline):
    model = Rider
    extra = 0
    fields = ("position", "name", "height", "assigned_bike", "assigned_size_class")
    raw_id_fields = ("assigned_bike",)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "date",
        "session",
        "status",
        "rider_count",
        "contact_phone",
        "created_at",
    )
    list_filter = ("status", "session", "date")
    search_fields = ("booking_code", "contact_phone", "contact_email")
    date_hierarchy = "date"
    readonly_fields = (
        "booking_code",
        "client_identifier",
        "checkout_session",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    inlines = [RiderInline]

    def get_queryset(self, request):  # type: ignore
        return super().get_queryset(request).prefetch_related("riders")

    @admin.display(description="Riders")
    def rider_count(self, obj: Booking) -> int:
        return len(obj.riders.all())

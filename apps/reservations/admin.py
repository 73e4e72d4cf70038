"""Admin registration for checkout locks."""

from __future__ import annotations

from django.contrib import admin

from .models import BikeLock


@admin.register(BikeLock)
class BikeLockAdmin(admin.ModelAdmin):
    list_display = ("bike_id", "session_token", "acquired_at", "expires_at", "active")
    search_fields = ("session_token",)
    readonly_fields = ("bike_id", "session_token", "acquired_at", "expires_at")

    @admin.display(boolean=True, description="Active")
    def active(self, obj: BikeLock) -> bool:
        return obj.is_active()

    def has_add_permission(self, request) -> bool:  # type: ignore
        return False

"""Admin registration for the attempt log."""

from __future__ import annotations

from django.contrib import admin

from .models import AttemptRecord


@admin.register(AttemptRecord)
class AttemptRecordAdmin(admin.ModelAdmin):
    list_display = ("attempted_at", "category", "outcome", "client_identifier", "detail")
    list_filter = ("category", "outcome", "attempted_at")
    search_fields = ("client_identifier", "detail")
    date_hierarchy = "attempted_at"
    readonly_fields = ("client_identifier", "category", "outcome", "attempted_at", "detail")

    def has_add_permission(self, request) -> bool:  # type: ignore
        return False

    def has_change_permission(self, request, obj=None) -> bool:  # type: ignore
        return False

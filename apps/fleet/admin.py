"""Admin registrations for the fleet."""

from __future__ import annotations

from django.contrib import admin

from .models import Bike, HeightRange


@admin.register(Bike)
class BikeAdmin(admin.ModelAdmin):
    list_display = ("id", "sticker_number", "size_class", "status", "updated_at")
    list_filter = ("size_class", "status")
    search_fields = ("sticker_number",)
    list_editable = ("status",)


@admin.register(HeightRange)
class HeightRangeAdmin(admin.ModelAdmin):
    list_display = ("size_class", "min_height", "max_height", "updated_at")
    ordering = ("min_height",)

"""Serializers for checkout locks."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.fleet.models import Bike

from .models import BikeLock


class AcquireLocksSerializer(serializers.Serializer):
    bike_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
        max_length=50,
    )
    ttl_seconds = serializers.IntegerField(min_value=1, required=False)

    def validate_bike_ids(self, value: list[int]) -> list[int]:
        known = set(Bike.objects.filter(pk__in=value).values_list("pk", flat=True))
        unknown = sorted(set(value) - known)
        if unknown:
            raise serializers.ValidationError(f"Unknown bike ids: {unknown}.")
        return value

    def validate_ttl_seconds(self, value: int) -> int:
        ceiling = int(getattr(settings, "BIKE_LOCK_MAX_TTL_SECONDS", 900))
        if value > ceiling:
            raise serializers.ValidationError(f"Lock TTL cannot exceed {ceiling} seconds.")
        return value


class BikeLockSerializer(serializers.ModelSerializer):
    class Meta:
        model = BikeLock
        fields = ["bike_id", "acquired_at", "expires_at"]
        read_only_fields = fields

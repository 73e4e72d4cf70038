"""Serializers for the fleet."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Bike, HeightRange


class BikeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Bike
        fields = ["id", "sticker_number", "size_class", "status"]
        read_only_fields = fields


class HeightRangeSerializer(serializers.ModelSerializer):
    class Meta:
        model = HeightRange
        fields = ["size_class", "min_height", "max_height"]


class SizeForHeightQuerySerializer(serializers.Serializer):
    height = serializers.FloatField(min_value=1)

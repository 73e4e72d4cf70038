"""Serializers for the attempt throttle."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import AttemptRecord


class AttemptRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = AttemptRecord
        fields = ["id", "client_identifier", "category", "outcome", "attempted_at", "detail"]
        read_only_fields = fields


class ThrottleCheckQuerySerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=AttemptRecord.Category.choices)


class ThrottleDecisionSerializer(serializers.Serializer):
    category = serializers.CharField()
    allowed = serializers.BooleanField()
    attempts_remaining = serializers.IntegerField()
    retry_after_seconds = serializers.IntegerField()
    limit = serializers.IntegerField()

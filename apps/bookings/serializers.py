"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.domain.entities import RiderRequest
from shared.domain.value_objects import Session

from .models import Booking, Rider

MAX_RIDERS_PER_BOOKING = 20


class SlotQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
    session = serializers.ChoiceField(choices=Booking.SessionChoice.choices)

    def validate_session(self, value: str) -> Session:
        return Session(value)


class BookedCountQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
    session = serializers.ChoiceField(choices=Booking.SessionChoice.choices, required=False)

    def validate_session(self, value: str) -> Session:
        return Session(value)


class CalendarQuerySerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        if attrs["end"] < attrs["start"]:
            raise serializers.ValidationError("End date must not be before start date.")
        return attrs


class SessionsQuerySerializer(serializers.Serializer):
    date = serializers.DateField()


class RiderInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    height = serializers.IntegerField(min_value=50, max_value=250)


class RiderListSerializer(SlotQuerySerializer):
    riders = RiderInputSerializer(many=True, allow_empty=False, max_length=MAX_RIDERS_PER_BOOKING)

    def rider_requests(self) -> list[RiderRequest]:
        """Planner input; each rider is referred to by its 1-based position."""
        return [
            RiderRequest(ref=str(position), height=rider["height"], name=rider.get("name", ""))
            for position, rider in enumerate(self.validated_data["riders"], start=1)
        ]


class BookingCreateSerializer(RiderListSerializer):
    contact_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    contact_email = serializers.EmailField(required=False, allow_blank=True, default="")

    def validate(self, attrs):  # type: ignore
        if not attrs.get("contact_phone") and not attrs.get("contact_email"):
            raise serializers.ValidationError("Provide a contact phone or email.")
        return attrs


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class RiderSerializer(serializers.ModelSerializer):
    assigned_bike_sticker = serializers.CharField(source="assigned_bike.sticker_number", read_only=True, default="")

    class Meta:
        model = Rider
        fields = ["id", "name", "height", "assigned_bike", "assigned_bike_sticker", "assigned_size_class"]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    riders = RiderSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "date",
            "session",
            "status",
            "contact_phone",
            "contact_email",
            "riders",
            "cancelled_at",
            "created_at",
        ]
        read_only_fields = fields


class AssignmentSerializer(serializers.Serializer):
    rider = serializers.CharField(source="rider_ref")
    height = serializers.FloatField()
    bike_id = serializers.IntegerField()
    size_class = serializers.CharField(source="size_class.value")
    ideal_size_class = serializers.CharField(source="ideal_size_class.value")
    is_substitute = serializers.BooleanField()


class SizeAvailabilitySerializer(serializers.Serializer):
    size_class = serializers.CharField(source="size_class.value")
    available = serializers.IntegerField()
    total = serializers.IntegerField()
    min_height = serializers.FloatField()
    max_height = serializers.FloatField()

"""API views for the booking domain."""

from __future__ import annotations

from django.utils import timezone  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import ValidationError  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings import services
from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CreateBookingCommand,
    CreateBookingHandler,
    plan_assignments,
)
from shared.domain.value_objects import SessionSlot
from shared.infrastructure.request_identity import checkout_session_token, client_identifier

from .models import Booking
from .serializers import (
    AssignmentSerializer,
    BookedCountQuerySerializer,
    BookingCreateSerializer,
    BookingSerializer,
    CalendarQuerySerializer,
    CancelBookingSerializer,
    RiderListSerializer,
    SessionsQuerySerializer,
    SizeAvailabilitySerializer,
    SlotQuerySerializer,
)


def _validated(serializer_class, data) -> dict:
    serializer = serializer_class(data=data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class AvailabilityViewSet(viewsets.ViewSet):
    """Read-only availability queries for a date and session."""

    permission_classes = [permissions.AllowAny]

    @action(detail=False, methods=["get"])
    def bikes(self, request):  # type: ignore
        query = _validated(SlotQuerySerializer, request.query_params)
        free = services.available_bikes(query["date"], query["session"])
        return Response({
            "date": query["date"],
            "session": query["session"].value,
            "count": len(free),
            "bike_ids": [bike.id for bike in free],
        })

    @action(detail=False, methods=["get"], url_path="by-size")
    def by_size(self, request):  # type: ignore
        query = _validated(SlotQuerySerializer, request.query_params)
        rows = services.availability_by_size(query["date"], query["session"])
        return Response(SizeAvailabilitySerializer(rows, many=True).data)

    @action(detail=False, methods=["get"], url_path="booked-count")
    def booked_count(self, request):  # type: ignore
        query = _validated(BookedCountQuerySerializer, request.query_params)
        session = query.get("session")
        booked = services.booked_count(query["date"], session)
        capacity = services.online_capacity()
        return Response({
            "date": query["date"],
            "session": session.value if session else None,
            "booked": booked,
            "capacity": capacity,
            "remaining": max(0, capacity - booked),
            "level": services.availability.occupancy_level(booked, capacity, services.occupancy_thresholds()),
        })

    @action(detail=False, methods=["get"])
    def calendar(self, request):  # type: ignore
        query = _validated(CalendarQuerySerializer, request.query_params)
        try:
            days = services.booked_counts_between(query["start"], query["end"])
        except ValueError as exc:
            raise ValidationError({"detail": str(exc)}) from exc
        return Response({"capacity": services.online_capacity(), "days": days})

    @action(detail=False, methods=["get"])
    def sessions(self, request):  # type: ignore
        query = _validated(SessionsQuerySerializer, request.query_params)
        policy = services.session_policy()
        now = timezone.now()
        result = []
        for session in Booking.SessionChoice.values:
            is_open, reason = policy.is_open(query["date"], session, now)
            result.append({"session": session, "open": is_open, "reason": reason})
        return Response({"date": query["date"], "sessions": result})

    @action(detail=False, methods=["post"])
    def plan(self, request):  # type: ignore
        """Dry run of the planner; nothing is locked or written."""
        serializer = RiderListSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        slot = SessionSlot(serializer.validated_data["date"], serializer.validated_data["session"])
        services.ensure_session_open(slot)

        result = plan_assignments(
            serializer.rider_requests(),
            slot,
            session_token=checkout_session_token(request),
        )
        capacity = services.check_capacity(slot.date, slot.session, len(result.assignments))
        return Response({
            "slot": str(slot),
            "assignments": AssignmentSerializer(result.assignments, many=True).data,
            "capacity": {"available": capacity.available, "remaining": capacity.remaining},
        })


class IsStaffOrCreate(permissions.BasePermission):
    """Anyone may book and look a booking up by its code; listing is staff only."""

    def has_permission(self, request, view):  # type: ignore
        if view.action in ("create", "retrieve"):
            return True
        return bool(request.user and request.user.is_staff)


class BookingViewSet(viewsets.ReadOnlyModelViewSet):
    """Create, look up and cancel bookings."""

    queryset = Booking.objects.prefetch_related("riders__assigned_bike").all()
    serializer_class = BookingSerializer
    permission_classes = [IsStaffOrCreate]
    lookup_field = "booking_code"

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        token = checkout_session_token(request)
        if token is None:
            raise ValidationError({"detail": "X-Checkout-Session header is missing or malformed."})

        data = serializer.validated_data
        booking = CreateBookingHandler().handle(CreateBookingCommand(
            date=data["date"],
            session=data["session"],
            riders=serializer.rider_requests(),
            session_token=token,
            client_id=client_identifier(request),
            contact_phone=data["contact_phone"],
            contact_email=data["contact_email"],
        ))
        booking = self.get_queryset().get(pk=booking.pk)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def cancel(self, request, booking_code=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = CancelBookingHandler().handle(
            CancelBookingCommand(booking_id=booking.pk, reason=serializer.validated_data["reason"])
        )
        return Response({"booking_code": booking.booking_code, "status": booking.status})

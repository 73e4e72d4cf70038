"""API views for checkout locks.

All endpoints act on behalf of the checkout session named in the
``X-Checkout-Session`` header.
"""

from __future__ import annotations

from rest_framework import permissions, status  # type: ignore
from rest_framework.exceptions import ValidationError  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.infrastructure.request_identity import checkout_session_token

from .models import BikeLock
from .serializers import AcquireLocksSerializer, BikeLockSerializer
from .services import BikeLockManager, default_lock_ttl


def _require_session(request) -> str:
    token = checkout_session_token(request)
    if token is None:
        raise ValidationError({"detail": "X-Checkout-Session header is missing or malformed."})
    return token


class CheckoutLockListView(APIView):
    """List, acquire and release all locks of the calling checkout session."""

    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        token = _require_session(request)
        locks = BikeLock.objects.active().held_by(token)
        return Response(BikeLockSerializer(locks, many=True).data)

    def post(self, request):  # type: ignore
        token = _require_session(request)
        serializer = AcquireLocksSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ttl = serializer.validated_data.get("ttl_seconds", default_lock_ttl())

        BikeLockManager().lock_or_raise(serializer.validated_data["bike_ids"], token, ttl)

        locks = BikeLock.objects.held_by(token).filter(bike_id__in=serializer.validated_data["bike_ids"])
        return Response(
            {"ttl_seconds": ttl, "locks": BikeLockSerializer(locks, many=True).data},
            status=status.HTTP_201_CREATED,
        )

    def delete(self, request):  # type: ignore
        token = _require_session(request)
        released = BikeLockManager().release_all(token)
        return Response({"released": released})


class CheckoutLockDetailView(APIView):
    permission_classes = [permissions.AllowAny]

    def delete(self, request, bike_id: int):  # type: ignore
        token = _require_session(request)
        if BikeLockManager().release_lock(bike_id, token):
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(
            {"detail": "This bike is not locked by your checkout session."},
            status=status.HTTP_404_NOT_FOUND,
        )

"""API views for the attempt throttle."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import filters, permissions, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.infrastructure.request_identity import client_identifier

from .filters import AttemptRecordFilterSet
from .models import AttemptRecord
from .serializers import (
    AttemptRecordSerializer,
    ThrottleCheckQuerySerializer,
    ThrottleDecisionSerializer,
)
from .services import AttemptThrottle


class AttemptRecordViewSet(viewsets.ReadOnlyModelViewSet):
    """Attempt telemetry for staff."""

    queryset = AttemptRecord.objects.all()
    serializer_class = AttemptRecordSerializer
    permission_classes = [permissions.IsAdminUser]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = AttemptRecordFilterSet
    ordering_fields = ["attempted_at"]
    ordering = ["-attempted_at"]


class ThrottleCheckView(APIView):
    """Tell the caller how many attempts it has left in a category."""

    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        query = ThrottleCheckQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        category = query.validated_data["category"]

        decision = AttemptThrottle().check_limit(client_identifier(request), category)
        payload = {"category": category, **decision.to_dict()}
        return Response(ThrottleDecisionSerializer(payload).data)

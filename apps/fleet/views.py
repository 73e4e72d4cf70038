"""Read-only API views for the fleet."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .filters import BikeFilterSet
from .models import Bike, HeightRange
from .serializers import BikeSerializer, HeightRangeSerializer, SizeForHeightQuerySerializer
from .services import bike_counts_by_size, get_size_matcher


class BikeViewSet(viewsets.ReadOnlyModelViewSet):
    """Bike roster with size/status filters."""

    queryset = Bike.objects.all()
    serializer_class = BikeSerializer
    permission_classes = [permissions.AllowAny]
    filter_backends = [DjangoFilterBackend]
    filterset_class = BikeFilterSet

    @action(detail=False, methods=["get"], url_path="counts-by-size")
    def counts_by_size(self, request):  # type: ignore
        counts = bike_counts_by_size()
        return Response({size.value: total for size, total in counts.items()})


class HeightRangeViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = HeightRange.objects.all()
    serializer_class = HeightRangeSerializer
    permission_classes = [permissions.AllowAny]
    pagination_class = None

    @action(detail=False, methods=["get"], url_path="size-for-height")
    def size_for_height(self, request):  # type: ignore
        query = SizeForHeightQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        height = query.validated_data["height"]

        matcher = get_size_matcher()
        ideal = matcher.ideal_size(height)
        if ideal is None:
            return Response(
                {"code": "no_matching_size", "detail": f"No bike size is configured for height {height:g} cm."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response({
            "height": height,
            "size_class": ideal.value,
            "candidates": [size.value for size in matcher.candidate_sizes(height)],
        })

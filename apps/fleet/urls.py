"""URL routing for the fleet."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import BikeViewSet, HeightRangeViewSet

router = DefaultRouter()
router.register(r"bikes", BikeViewSet, basename="bike")
router.register(r"height-ranges", HeightRangeViewSet, basename="height-range")

urlpatterns = [
    path("", include(router.urls)),
]

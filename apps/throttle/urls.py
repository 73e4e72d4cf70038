"""URL routing for the attempt throttle."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AttemptRecordViewSet, ThrottleCheckView

router = DefaultRouter()
router.register(r"attempts", AttemptRecordViewSet, basename="attempt")

urlpatterns = [
    path("check/", ThrottleCheckView.as_view(), name="throttle-check"),
    path("", include(router.urls)),
]

"""URL routing for checkout locks."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import CheckoutLockDetailView, CheckoutLockListView

urlpatterns = [
    path("locks/", CheckoutLockListView.as_view(), name="checkout-lock-list"),
    path("locks/<int:bike_id>/", CheckoutLockDetailView.as_view(), name="checkout-lock-detail"),
]

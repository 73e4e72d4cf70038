"""Integration tests for checkout lock endpoints."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.fleet.models import Bike
from apps.reservations.models import BikeLock
from apps.reservations.services import BikeLockManager


class CheckoutLockAPITests(APITestCase):
    def setUp(self) -> None:
        self.list_url = reverse("checkout-lock-list")
        self.client.credentials(HTTP_X_CHECKOUT_SESSION="tab-session-0001")
        self.b1, self.b2, self.b3, self.b4 = [
            Bike.objects.create(size_class="M", sticker_number=f"L0{n}") for n in range(1, 5)
        ]

    def test_acquire_and_list_locks(self) -> None:
        response = self.client.post(self.list_url, {"bike_ids": [self.b4.id, self.b2.id]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([lock["bike_id"] for lock in response.data["locks"]], [self.b2.id, self.b4.id])

        listed = self.client.get(self.list_url)
        self.assertEqual(len(listed.data), 2)

    def test_unknown_bike_is_rejected(self) -> None:
        missing = self.b4.id + 100

        response = self.client.post(self.list_url, {"bike_ids": [self.b1.id, missing]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("bike_ids", response.data)
        self.assertFalse(BikeLock.objects.exists())

    def test_contended_bike_returns_conflict(self) -> None:
        BikeLockManager().acquire_lock(self.b2.id, "other-session-99")

        response = self.client.post(self.list_url, {"bike_ids": [self.b1.id, self.b2.id]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "lock_contention")
        self.assertEqual(response.data["bike_ids"], [self.b2.id])
        self.assertTrue(response.data["retryable"])
        self.assertFalse(BikeLock.objects.held_by("tab-session-0001").exists())

    def test_ttl_above_ceiling_is_rejected(self) -> None:
        response = self.client.post(
            self.list_url,
            {"bike_ids": [self.b1.id], "ttl_seconds": 100000},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_release_single_lock(self) -> None:
        self.client.post(self.list_url, {"bike_ids": [self.b3.id]}, format="json")

        response = self.client.delete(reverse("checkout-lock-detail", args=[self.b3.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        again = self.client.delete(reverse("checkout-lock-detail", args=[self.b3.id]))
        self.assertEqual(again.status_code, status.HTTP_404_NOT_FOUND)

    def test_release_all(self) -> None:
        self.client.post(self.list_url, {"bike_ids": [self.b1.id, self.b2.id, self.b3.id]}, format="json")

        response = self.client.delete(self.list_url)

        self.assertEqual(response.data, {"released": 3})
        self.assertEqual(self.client.delete(self.list_url).data, {"released": 0})

    def test_missing_session_header(self) -> None:
        self.client.credentials()

        response = self.client.post(self.list_url, {"bike_ids": [self.b1.id]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

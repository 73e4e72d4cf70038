"""Integration tests for fleet API endpoints."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.fleet.models import Bike, HeightRange
from apps.fleet.services import bike_counts_by_size


class FleetAPITests(APITestCase):
    def setUp(self) -> None:
        HeightRange.objects.create(size_class="S", min_height=155, max_height=164)
        HeightRange.objects.create(size_class="M", min_height=165, max_height=174)
        HeightRange.objects.create(size_class="L", min_height=175, max_height=184)
        self.m1 = Bike.objects.create(size_class="M", sticker_number="R01")
        self.m2 = Bike.objects.create(size_class="M", status=Bike.Status.RENTED, sticker_number="R02")
        self.l1 = Bike.objects.create(size_class="L", status=Bike.Status.MAINTENANCE, sticker_number="R03")

    def test_bike_list_filters_by_size_and_status(self) -> None:
        response = self.client.get(reverse("bike-list"), {"size_class": "M", "status": "available"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [row["id"] for row in response.data["results"]]
        self.assertEqual(ids, [self.m1.id])

    def test_bookable_filter_excludes_maintenance(self) -> None:
        response = self.client.get(reverse("bike-list"), {"bookable": "true"})

        ids = {row["id"] for row in response.data["results"]}
        self.assertEqual(ids, {self.m1.id, self.m2.id})

    def test_counts_by_size_reports_every_size(self) -> None:
        response = self.client.get(reverse("bike-counts-by-size"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"XS": 0, "S": 0, "M": 2, "L": 0, "XL": 0})

    def test_size_for_height(self) -> None:
        response = self.client.get(reverse("height-range-size-for-height"), {"height": 170})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["size_class"], "M")
        self.assertEqual(response.data["candidates"], ["M", "L", "S"])

    def test_size_for_height_outside_ranges(self) -> None:
        response = self.client.get(reverse("height-range-size-for-height"), {"height": 120})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "no_matching_size")

    def test_height_ranges_are_listed_in_height_order(self) -> None:
        response = self.client.get(reverse("height-range-list"))

        self.assertEqual([row["size_class"] for row in response.data], ["S", "M", "L"])

    def test_bike_counts_service_ignores_out_of_service_bikes(self) -> None:
        Bike.objects.create(size_class="XL", status=Bike.Status.UNAVAILABLE)

        counts = bike_counts_by_size()

        self.assertEqual(sum(counts.values()), 2)

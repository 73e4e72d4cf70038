"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import date, timedelta

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking, Rider
from apps.fleet.models import Bike, HeightRange
from apps.reservations.services import BikeLockManager
from apps.throttle.services import AttemptThrottle


class BookingAPITestCase(APITestCase):
    def setUp(self) -> None:
        for size, low, high in [("S", 155, 164), ("M", 165, 174), ("L", 175, 184)]:
            HeightRange.objects.create(size_class=size, min_height=low, max_height=high)
        self.m1 = Bike.objects.create(size_class="M")
        self.m2 = Bike.objects.create(size_class="M")
        self.l1 = Bike.objects.create(size_class="L")
        self.future = date.today() + timedelta(days=7)
        self.client.credentials(HTTP_X_CHECKOUT_SESSION="browser-tab-0001", HTTP_X_CLIENT_ID="client-9")

    def _payload(self, *heights, session="morning") -> dict:
        return {
            "date": str(self.future),
            "session": session,
            "riders": [{"name": f"Rider {n}", "height": h} for n, h in enumerate(heights, start=1)],
            "contact_phone": "+972500000000",
        }

    def _book_directly(self, bike: Bike, day: date, session: str) -> Booking:
        booking = Booking.objects.create(date=day, session=session, status=Booking.Status.CONFIRMED)
        Rider.objects.create(booking=booking, height=170, assigned_bike=bike, assigned_size_class=bike.size_class)
        return booking


class AvailabilityAPITests(BookingAPITestCase):
    def test_available_bikes_apply_overlap_rules(self) -> None:
        self._book_directly(self.m1, self.future, "daily")
        next_day = self.future + timedelta(days=1)
        url = reverse("availability-bikes")

        morning = self.client.get(url, {"date": str(next_day), "session": "morning"})
        daily = self.client.get(url, {"date": str(next_day), "session": "daily"})

        self.assertEqual(morning.status_code, status.HTTP_200_OK)
        self.assertEqual(morning.data["bike_ids"], [self.m2.id, self.l1.id])
        self.assertEqual(daily.data["bike_ids"], [self.m1.id, self.m2.id, self.l1.id])

    def test_availability_by_size(self) -> None:
        self._book_directly(self.m1, self.future, "morning")

        response = self.client.get(
            reverse("availability-by-size"), {"date": str(self.future), "session": "morning"}
        )

        rows = {row["size_class"]: row for row in response.data}
        self.assertEqual(rows["M"]["available"], 1)
        self.assertEqual(rows["M"]["total"], 2)
        self.assertEqual(rows["L"]["min_height"], 175)
        self.assertEqual(rows["XL"]["total"], 0)

    def test_booked_count_with_and_without_session(self) -> None:
        self._book_directly(self.m1, self.future, "morning")
        self._book_directly(self.m2, self.future, "daily")
        url = reverse("availability-booked-count")

        by_date = self.client.get(url, {"date": str(self.future)})
        morning = self.client.get(url, {"date": str(self.future), "session": "morning"})

        self.assertEqual(by_date.data["booked"], 2)
        self.assertEqual(morning.data["booked"], 2)
        self.assertEqual(morning.data["remaining"], 13)
        self.assertEqual(morning.data["level"], "low")

    def test_calendar_counts_each_day(self) -> None:
        self._book_directly(self.m1, self.future, "daily")

        response = self.client.get(
            reverse("availability-calendar"),
            {"start": str(self.future), "end": str(self.future + timedelta(days=1))},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        first, second = response.data["days"]
        self.assertEqual(first["booked"], 1)
        self.assertEqual(second["booked"], 0)
        self.assertEqual(second["morning"]["booked"], 1)
        self.assertEqual(second["daily"]["booked"], 0)

    def test_calendar_rejects_long_ranges(self) -> None:
        response = self.client.get(
            reverse("availability-calendar"),
            {"start": str(self.future), "end": str(self.future + timedelta(days=120))},
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sessions_for_a_future_date_are_open(self) -> None:
        response = self.client.get(reverse("availability-sessions"), {"date": str(self.future)})

        self.assertEqual(
            response.data["sessions"],
            [
                {"session": "morning", "open": True, "reason": None},
                {"session": "daily", "open": True, "reason": None},
            ],
        )

    def test_past_date_sessions_are_closed(self) -> None:
        response = self.client.get(
            reverse("availability-sessions"), {"date": str(date.today() - timedelta(days=2))}
        )
        self.assertEqual({row["reason"] for row in response.data["sessions"]}, {"past_date"})

    def test_plan_is_a_dry_run(self) -> None:
        response = self.client.post(reverse("availability-plan"), self._payload(170, 170, 170), format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [(a["bike_id"], a["size_class"], a["is_substitute"]) for a in response.data["assignments"]],
            [(self.m1.id, "M", False), (self.m2.id, "M", False), (self.l1.id, "L", True)],
        )
        self.assertFalse(Booking.objects.exists())
        self.assertEqual(BikeLockManager().locked_bike_ids(), set())

    def test_plan_reports_no_matching_size(self) -> None:
        response = self.client.post(reverse("availability-plan"), self._payload(130), format="json")

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data["code"], "no_matching_size")
        self.assertFalse(response.data["retryable"])


class BookingLifecycleAPITests(BookingAPITestCase):
    def test_create_booking(self) -> None:
        response = self.client.post(reverse("booking-list"), self._payload(170, 180), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(
            [(r["assigned_bike"], r["assigned_size_class"]) for r in response.data["riders"]],
            [(self.m1.id, "M"), (self.l1.id, "L")],
        )
        self.assertEqual(response.data["status"], "pending")

    def test_create_requires_checkout_session(self) -> None:
        self.client.credentials(HTTP_X_CLIENT_ID="client-9")

        response = self.client.post(reverse("booking-list"), self._payload(170), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_requires_contact(self) -> None:
        payload = self._payload(170)
        payload.pop("contact_phone")

        response = self.client.post(reverse("booking-list"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sold_out_slot_is_a_conflict(self) -> None:
        response = self.client.post(reverse("booking-list"), self._payload(170, 170, 170, 170), format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "insufficient_inventory")
        self.assertEqual(response.data["rider_id"], "4")

    def test_rate_limited_client_gets_retry_after(self) -> None:
        throttle = AttemptThrottle()
        for _ in range(5):
            throttle.record_attempt("client-9", "booking", success=False)

        response = self.client.post(reverse("booking-list"), self._payload(170), format="json")

        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertEqual(response.data["code"], "rate_limited")
        self.assertGreater(int(response["Retry-After"]), 0)

    def test_lookup_and_cancel_by_code(self) -> None:
        created = self.client.post(reverse("booking-list"), self._payload(170), format="json")
        code = created.data["booking_code"]

        detail = self.client.get(reverse("booking-detail", args=[code]))
        self.assertEqual(detail.status_code, status.HTTP_200_OK)

        staff = get_user_model().objects.create_user(username="desk", password="pass", is_staff=True)
        self.client.force_authenticate(staff)
        cancelled = self.client.post(reverse("booking-cancel", args=[code]), {"reason": "weather"}, format="json")
        self.assertEqual(cancelled.data, {"booking_code": code, "status": "cancelled"})

        again = self.client.post(reverse("booking-cancel", args=[code]), {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(again.data["code"], "invalid_booking_state")

    def test_cancel_requires_staff(self) -> None:
        created = self.client.post(reverse("booking-list"), self._payload(170), format="json")

        response = self.client.post(reverse("booking-cancel", args=[created.data["booking_code"]]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_booking_list_is_staff_only(self) -> None:
        response = self.client.get(reverse("booking-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

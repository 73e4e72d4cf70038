import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("fleet", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_code", models.CharField(editable=False, max_length=12, unique=True)),
                ("date", models.DateField()),
                (
                    "session",
                    models.CharField(choices=[("morning", "Morning"), ("daily", "Daily (24h)")], max_length=10),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("checked-in", "Checked in"),
                            ("active", "Out on the trail"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("contact_phone", models.CharField(blank=True, max_length=32)),
                ("contact_email", models.EmailField(blank=True, max_length=254)),
                (
                    "client_identifier",
                    models.CharField(
                        blank=True,
                        help_text="Throttle key of the client that created the booking.",
                        max_length=128,
                    ),
                ),
                (
                    "checkout_session",
                    models.CharField(
                        blank=True,
                        help_text="Session token whose bike locks were held at commit time.",
                        max_length=64,
                    ),
                ),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["date", "session", "status"], name="booking_slot_status_idx"),
                    models.Index(fields=["booking_code"], name="booking_code_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Rider",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(blank=True, max_length=120)),
                ("height", models.PositiveSmallIntegerField(help_text="Centimeters.")),
                (
                    "assigned_size_class",
                    models.CharField(
                        blank=True,
                        choices=[("XS", "XS"), ("S", "S"), ("M", "M"), ("L", "L"), ("XL", "XL")],
                        max_length=2,
                    ),
                ),
                ("position", models.PositiveSmallIntegerField(default=0)),
                (
                    "assigned_bike",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rider_assignments",
                        to="fleet.bike",
                    ),
                ),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="riders",
                        to="bookings.booking",
                    ),
                ),
            ],
            options={
                "verbose_name": "Rider",
                "verbose_name_plural": "Riders",
                "ordering": ["booking_id", "position", "id"],
            },
        ),
    ]

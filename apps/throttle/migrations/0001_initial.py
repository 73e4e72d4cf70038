import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AttemptRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("client_identifier", models.CharField(max_length=128)),
                (
                    "category",
                    models.CharField(
                        choices=[("booking", "Booking creation"), ("coupon", "Coupon validation"), ("login", "Login")],
                        max_length=16,
                    ),
                ),
                (
                    "outcome",
                    models.CharField(choices=[("success", "Success"), ("failure", "Failure")], max_length=16),
                ),
                ("attempted_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "detail",
                    models.CharField(
                        blank=True,
                        help_text="What was attempted, e.g. the coupon code or username.",
                        max_length=255,
                    ),
                ),
            ],
            options={
                "verbose_name": "Attempt",
                "verbose_name_plural": "Attempts",
                "ordering": ["-attempted_at"],
                "indexes": [
                    models.Index(
                        fields=["client_identifier", "category", "attempted_at"],
                        name="attempt_client_window_idx",
                    ),
                    models.Index(fields=["attempted_at"], name="attempt_time_idx"),
                ],
            },
        ),
    ]

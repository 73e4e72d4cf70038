from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Bike",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "size_class",
                    models.CharField(
                        choices=[("XS", "XS"), ("S", "S"), ("M", "M"), ("L", "L"), ("XL", "XL")],
                        max_length=2,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("available", "Available"),
                            ("rented", "Rented"),
                            ("maintenance", "In maintenance"),
                            ("unavailable", "Out of service"),
                        ],
                        default="available",
                        max_length=20,
                    ),
                ),
                (
                    "sticker_number",
                    models.CharField(blank=True, help_text="Label painted on the frame, e.g. R07.", max_length=16),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Bike",
                "verbose_name_plural": "Bikes",
                "ordering": ["id"],
                "indexes": [models.Index(fields=["size_class", "status"], name="fleet_bike_size_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="HeightRange",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "size_class",
                    models.CharField(
                        choices=[("XS", "XS"), ("S", "S"), ("M", "M"), ("L", "L"), ("XL", "XL")],
                        max_length=2,
                        unique=True,
                    ),
                ),
                ("min_height", models.PositiveSmallIntegerField(help_text="Centimeters, inclusive.")),
                ("max_height", models.PositiveSmallIntegerField(help_text="Centimeters, inclusive.")),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Height range",
                "verbose_name_plural": "Height ranges",
                "ordering": ["min_height"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("max_height__gte", models.F("min_height"))),
                        name="height_range_valid_bounds",
                    )
                ],
            },
        ),
    ]

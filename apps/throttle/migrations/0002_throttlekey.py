from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("throttle", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ThrottleKey",
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
            ],
            options={
                "verbose_name": "Throttle key",
                "verbose_name_plural": "Throttle keys",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("client_identifier", "category"),
                        name="throttle_key_client_category_uniq",
                    ),
                ],
            },
        ),
    ]

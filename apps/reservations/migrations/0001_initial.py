import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="BikeLock",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("bike_id", models.PositiveIntegerField(unique=True)),
                ("session_token", models.CharField(db_index=True, max_length=64)),
                ("acquired_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("expires_at", models.DateTimeField(db_index=True)),
            ],
            options={
                "verbose_name": "Bike lock",
                "verbose_name_plural": "Bike locks",
                "ordering": ["bike_id"],
            },
        ),
    ]

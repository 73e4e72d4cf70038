from django.apps import AppConfig


class ThrottleConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.throttle"

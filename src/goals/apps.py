"""App config for the goals module."""
from django.apps import AppConfig


class GoalsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "goals"
    verbose_name = "Agent Goals"

    def ready(self):
        import goals.signals  # noqa: F401

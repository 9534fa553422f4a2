"""Celery configuration."""
import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault(
    "DJANGO_SETTINGS_MODULE",
    os.getenv("DJANGO_SETTINGS_MODULE", "config.settings.dev"),
)

app = Celery("bulwark")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# Beat schedule
app.conf.beat_schedule = {
    "goals-sync-active": {
        "task": "goals.tasks.sync_active_goals",
        "schedule": crontab(minute=5),  # Every hour
    },
    "reminders-flag-overdue": {
        "task": "reminders.tasks.log_overdue_reminders",
        "schedule": crontab(minute=0, hour=7),  # Daily at 7am
    },
}

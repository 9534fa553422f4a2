"""Celery tasks for the reminders module."""
import logging

from celery import shared_task
from django.db.models import Count

logger = logging.getLogger(__name__)


@shared_task
def log_overdue_reminders():
    """Log how many reminders are overdue per agent (scheduled daily)."""
    from reminders.models import Reminder

    rows = (
        Reminder.objects.overdue()
        .values("agent_id")
        .annotate(total=Count("id"))
        .order_by("-total")
    )
    total = 0
    for row in rows:
        total += row["total"]
        logger.info("Agent %s has %d overdue reminders", row["agent_id"], row["total"])
    return total

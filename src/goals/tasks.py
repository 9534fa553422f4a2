"""Celery tasks for the goals module."""
from __future__ import annotations

import logging
from datetime import date

from celery import shared_task
from django.db import OperationalError

logger = logging.getLogger(__name__)


@shared_task
def sync_active_goals():
    """Recompute every active goal (scheduled hourly)."""
    from goals.engine import GoalProgressEngine

    summary = GoalProgressEngine().sync_all()
    return {
        "total_goals": summary["total_goals"],
        "synced_goals": summary["synced_goals"],
        "errors": len(summary["errors"]),
    }


@shared_task(bind=True, max_retries=3, default_retry_delay=30)
def refresh_agent_goals(self, *, agent_id: str, on_date: str | None = None, metric_types=None):
    """Recompute one agent's active goals after a sale or client write."""
    from goals.engine import GoalProgressEngine

    day = date.fromisoformat(on_date) if on_date else None
    try:
        count = GoalProgressEngine().refresh_for_agent(
            agent_id,
            on_date=day,
            metric_types=metric_types,
        )
    except OperationalError as exc:
        logger.warning("Goal refresh for agent=%s failed, retrying: %s", agent_id, exc)
        raise self.retry(exc=exc)
    logger.info("Refreshed %d goals for agent=%s date=%s", count, agent_id, on_date)
    return count

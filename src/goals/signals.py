"""Signals: keep goal values and their cache in step with writes."""
from __future__ import annotations

import logging

from django.db import transaction
from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver
from django.utils import timezone
from kombu.exceptions import OperationalError

from goals.cache import goal_value_cache
from goals.engine import CLIENT_COUNT_METRICS, SALE_COUNT_METRICS, SALE_SUM_FIELDS

logger = logging.getLogger(__name__)

SALE_METRICS = sorted(SALE_COUNT_METRICS | set(SALE_SUM_FIELDS))
CLIENT_METRICS = sorted(CLIENT_COUNT_METRICS)


def _queue_refresh(*, agent_id, on_date=None, metric_types) -> None:
    payload = {
        "agent_id": str(agent_id),
        "on_date": on_date.isoformat() if on_date else None,
        "metric_types": list(metric_types),
    }

    def _dispatch() -> None:
        from goals.tasks import refresh_agent_goals

        try:
            refresh_agent_goals.delay(**payload)
        except OperationalError as exc:
            # Broker unavailable: recompute inline so progress stays current.
            logger.warning("goal refresh dispatch failed, running inline: %s", exc)
            refresh_agent_goals.apply(kwargs=payload)

    # Queue after commit so the worker reads the committed rows.
    transaction.on_commit(_dispatch)


# ---------------------------------------------------------------------------
# Goal writes -> cache invalidation
# ---------------------------------------------------------------------------

@receiver(post_save, sender="goals.Goal")
def on_goal_saved(sender, instance, **kwargs):
    goal_value_cache.invalidate(instance.pk)


@receiver(post_delete, sender="goals.Goal")
def on_goal_deleted(sender, instance, **kwargs):
    goal_value_cache.invalidate(instance.pk)


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------

@receiver(pre_save, sender="sales.Sale")
def on_sale_pre_save(sender, instance, **kwargs):
    """Remember the previous owner/date so moved sales refresh both sides."""
    if instance.pk is None:
        instance._previous_goal_key = None
        return
    previous = sender.objects.filter(pk=instance.pk).values("agent_id", "sale_date").first()
    instance._previous_goal_key = (
        (previous["agent_id"], previous["sale_date"]) if previous else None
    )


@receiver(post_save, sender="sales.Sale")
def on_sale_saved(sender, instance, **kwargs):
    _queue_refresh(agent_id=instance.agent_id, on_date=instance.sale_date, metric_types=SALE_METRICS)
    previous = getattr(instance, "_previous_goal_key", None)
    if previous and previous != (instance.agent_id, instance.sale_date):
        _queue_refresh(agent_id=previous[0], on_date=previous[1], metric_types=SALE_METRICS)


@receiver(post_delete, sender="sales.Sale")
def on_sale_deleted(sender, instance, **kwargs):
    _queue_refresh(agent_id=instance.agent_id, on_date=instance.sale_date, metric_types=SALE_METRICS)


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

@receiver(pre_save, sender="clients.Client")
def on_client_pre_save(sender, instance, **kwargs):
    if instance.pk is None:
        instance._previous_agent_id = None
        return
    instance._previous_agent_id = (
        sender.objects.filter(pk=instance.pk).values_list("agent_id", flat=True).first()
    )


@receiver(post_save, sender="clients.Client")
def on_client_saved(sender, instance, created, **kwargs):
    previous_agent_id = getattr(instance, "_previous_agent_id", None)
    if not created and previous_agent_id == instance.agent_id:
        return
    on_date = timezone.localdate(instance.created_at)
    _queue_refresh(agent_id=instance.agent_id, on_date=on_date, metric_types=CLIENT_METRICS)
    if previous_agent_id and previous_agent_id != instance.agent_id:
        _queue_refresh(agent_id=previous_agent_id, on_date=on_date, metric_types=CLIENT_METRICS)


@receiver(post_delete, sender="clients.Client")
def on_client_deleted(sender, instance, **kwargs):
    _queue_refresh(
        agent_id=instance.agent_id,
        on_date=timezone.localdate(instance.created_at),
        metric_types=CLIENT_METRICS,
    )

"""Goal progress engine.

Core rules:
- A goal's value is recomputed from raw Sale/Client rows for the goal's
  agent inside its window; the persisted ``current_value`` is a snapshot.
- Windows are whole days, both ends inclusive.
- Only active sales count; cancelled and expired sales are excluded.
- New-occurrence count metrics (``sales_count``, ``policies_sold``) start
  at 0: only sales recorded after the goal's ``counts_after`` cutoff count.
- Reads always recompute. One engine instance serves one request, so a
  goal read twice through it is computed once.
- Every recomputation persists the value and refreshes the shared cache;
  any write to the goal invalidates its cache entry.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable

from django.db import transaction
from django.db.models import DecimalField, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.exceptions import ServiceError
from goals.cache import GoalValueCache, goal_value_cache

if TYPE_CHECKING:
    from goals.models import Goal

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

SALE_SUM_FIELDS = {
    "sales_amount": "premium_amount",
    "commission": "commission_amount",
}
SALE_COUNT_METRICS = frozenset({"sales_count", "policies_sold"})
CLIENT_COUNT_METRICS = frozenset({"client_count", "new_clients"})
ZERO_SEEDED_METRICS = SALE_COUNT_METRICS

SUPPORTED_METRICS = frozenset(SALE_SUM_FIELDS) | SALE_COUNT_METRICS | CLIENT_COUNT_METRICS


class UnsupportedMetric(ServiceError):
    default_detail = "Unsupported goal metric."
    default_code = "UNSUPPORTED_METRIC"


def day_bounds(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """Expand a date window to [start 00:00:00, end 23:59:59.999999] local time."""
    tz = timezone.get_current_timezone()
    start_dt = timezone.make_aware(datetime.combine(start_date, time.min), tz)
    end_dt = timezone.make_aware(datetime.combine(end_date, time.max), tz)
    return start_dt, end_dt


class GoalProgressEngine:
    """Compute and persist goal progress."""

    def __init__(self, cache: GoalValueCache | None = None) -> None:
        self.cache = cache if cache is not None else goal_value_cache
        self._fresh: dict = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compute(
        self,
        *,
        agent_id,
        metric_type: str,
        start_date: date,
        end_date: date,
        recorded_after: datetime | None = None,
    ) -> Decimal:
        """Raw aggregate for one agent, metric and window. Never negative, never None.

        *recorded_after* restricts sale metrics to rows created after that moment.
        """
        from clients.models import Client
        from sales.models import Sale

        if metric_type in CLIENT_COUNT_METRICS:
            start_dt, end_dt = day_bounds(start_date, end_date)
            count = Client.objects.filter(
                agent_id=agent_id,
                created_at__gte=start_dt,
                created_at__lte=end_dt,
            ).count()
            return Decimal(count).quantize(CENT)

        if metric_type not in SUPPORTED_METRICS:
            raise UnsupportedMetric(f"Unsupported goal metric: {metric_type!r}.")

        sales = Sale.objects.active().for_agent(agent_id).in_window(start_date, end_date)
        if recorded_after is not None:
            sales = sales.filter(created_at__gt=recorded_after)
        if metric_type in SALE_COUNT_METRICS:
            return Decimal(sales.count()).quantize(CENT)

        total = sales.aggregate(
            total=Coalesce(
                Sum(SALE_SUM_FIELDS[metric_type]),
                Value(ZERO),
                output_field=DecimalField(max_digits=14, decimal_places=2),
            )
        )["total"]
        return Decimal(total or ZERO).quantize(CENT)

    def compute_for_goal(self, goal: "Goal") -> Decimal:
        """Goal value from current data: derived aggregate plus manual adjustment."""
        value = self._derived(goal) + Decimal(goal.adjustment)
        return max(ZERO, value).quantize(CENT)

    def seed(self, goal: "Goal") -> "Goal":
        """Set the cutoff and current value on a goal that is about to be saved.

        Called on creation and whenever the window or metric changes.
        """
        now = timezone.now()
        goal.adjustment = ZERO
        if goal.metric_type in ZERO_SEEDED_METRICS:
            goal.counts_after = now
            goal.current_value = ZERO
        else:
            goal.counts_after = None
            goal.current_value = self._derived(goal)
        goal.last_computed_at = now
        self._fresh.pop(goal.pk, None)
        return goal

    def current_value(self, goal: "Goal") -> Decimal:
        """Read path: recompute and persist, once per goal for this engine."""
        if goal.pk in self._fresh:
            goal.current_value = self._fresh[goal.pk]
            return goal.current_value
        _, new_value = self.refresh(goal)
        return new_value

    def refresh(self, goal: "Goal") -> tuple[Decimal, Decimal]:
        """Recompute, persist and cache one goal. Returns (old, new)."""
        old_value = Decimal(goal.current_value)
        new_value = self.compute_for_goal(goal)
        self._persist(goal, new_value)
        return old_value, new_value

    def refresh_goals(self, goals: Iterable["Goal"]) -> list[dict]:
        """Recompute a batch; unsupported metrics are reported per goal."""
        results = []
        for goal in goals:
            try:
                old_value, new_value = self.refresh(goal)
            except UnsupportedMetric as exc:
                logger.warning("Goal %s not recalculated: %s", goal.pk, exc.detail)
                results.append({
                    "goal_id": goal.pk,
                    "title": goal.title,
                    "error": str(exc.detail),
                    "success": False,
                })
                continue
            results.append({
                "goal_id": goal.pk,
                "title": goal.title,
                "old_value": old_value,
                "new_value": new_value,
                "success": True,
            })
        return results

    def sync_all(self) -> dict:
        """Recompute every active goal system-wide."""
        from goals.models import Goal

        goals = Goal.objects.filter(is_active=True).order_by("pk")
        results = self.refresh_goals(goals.iterator())
        errors = [r for r in results if not r["success"]]
        summary = {
            "total_goals": len(results),
            "synced_goals": len(results) - len(errors),
            "errors": errors,
        }
        logger.info(
            "Goal sync complete: %d/%d goals synced",
            summary["synced_goals"],
            summary["total_goals"],
        )
        return summary

    def refresh_for_agent(self, agent_id, *, on_date: date | None = None, metric_types=None) -> int:
        """Recompute the agent's active goals whose window covers *on_date*."""
        from goals.models import Goal

        goals = Goal.objects.filter(agent_id=agent_id, is_active=True)
        if on_date is not None:
            goals = goals.filter(start_date__lte=on_date, end_date__gte=on_date)
        if metric_types:
            goals = goals.filter(metric_type__in=list(metric_types))

        count = 0
        for goal in goals:
            self.refresh(goal)
            count += 1
        logger.debug("Refreshed %d goals for agent %s", count, agent_id)
        return count

    def apply_manual_value(self, goal: "Goal", value: Decimal) -> "Goal":
        """Pin the goal at *value* by recording the difference as an adjustment.

        The adjustment is kept by later recomputations, so the derived value
        stays the single source of truth.
        """
        derived = self._derived(goal)
        value = Decimal(value).quantize(CENT)
        with transaction.atomic():
            goal.adjustment = value - derived
            goal.current_value = value
            goal.last_computed_at = timezone.now()
            goal.save(update_fields=["adjustment", "current_value", "last_computed_at", "updated_at"])
        self.cache.set(goal.pk, value)
        self._fresh[goal.pk] = value
        logger.info("Goal %s manually set to %s (adjustment %s)", goal.pk, value, goal.adjustment)
        return goal

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _derived(self, goal: "Goal") -> Decimal:
        recorded_after = goal.counts_after if goal.metric_type in ZERO_SEEDED_METRICS else None
        return self.compute(
            agent_id=goal.agent_id,
            metric_type=goal.metric_type,
            start_date=goal.start_date,
            end_date=goal.end_date,
            recorded_after=recorded_after,
        )

    def _persist(self, goal: "Goal", value: Decimal) -> None:
        from goals.models import Goal

        now = timezone.now()
        # queryset update: no post_save, so the fresh cache entry survives
        Goal.objects.filter(pk=goal.pk).update(current_value=value, last_computed_at=now)
        goal.current_value = value
        goal.last_computed_at = now
        self.cache.set(goal.pk, value)
        self._fresh[goal.pk] = value

"""Goal value cache.

A thin get/set/invalidate interface over the Django cache framework, so the
backing store is whatever ``CACHES`` configures (Redis in deployments,
shared by every worker process). Entries are an optimisation only and
expire after ``GOAL_CACHE_TTL`` seconds.
"""
from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.cache import caches


class GoalValueCache:
    key_prefix = "goals:current-value"

    def __init__(self, *, alias: str = "default", ttl: int | None = None) -> None:
        self.alias = alias
        self.ttl = ttl if ttl is not None else getattr(settings, "GOAL_CACHE_TTL", 300)

    @property
    def backend(self):
        return caches[self.alias]

    def key(self, goal_id) -> str:
        return f"{self.key_prefix}:{goal_id}"

    def get(self, goal_id) -> Decimal | None:
        raw = self.backend.get(self.key(goal_id))
        return Decimal(raw) if raw is not None else None

    def set(self, goal_id, value) -> None:
        self.backend.set(self.key(goal_id), str(value), timeout=self.ttl)

    def invalidate(self, goal_id) -> None:
        self.backend.delete(self.key(goal_id))

    def invalidate_many(self, goal_ids) -> None:
        keys = [self.key(goal_id) for goal_id in goal_ids]
        if keys:
            self.backend.delete_many(keys)


goal_value_cache = GoalValueCache()

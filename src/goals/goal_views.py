"""API views for the goals module."""
from __future__ import annotations

import logging
from collections import defaultdict

from django.db import transaction
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.capabilities import CREATE, READ, has_any_scope
from accounts.models import User
from api.normalization import normalize_keys
from api.v1.pagination import GoalPagination
from api.v1.permissions import PolicyPermission
from core.exceptions import AccessDenied, ResourceNotFound
from goals.engine import GoalProgressEngine
from goals.goal_serializers import (
    GoalProgressUpdateSerializer,
    GoalQuerySerializer,
    GoalSerializer,
    GoalWriteSerializer,
)
from goals.models import Goal

logger = logging.getLogger(__name__)

RESEED_FIELDS = ("metric_type", "start_date", "end_date")


class GoalViewSet(viewsets.ModelViewSet):
    """
    Agent goals.

    - List: the caller's own goals, recomputed on read.
    - Detail/update/delete: owner, or a manager.
    - Collection actions: progress summary, recalculation, manager sync.
    """

    permission_classes = [PolicyPermission]
    policy_resource = "goals"
    policy_owner_field = "agent_id"
    policy_actions = {
        "progress_summary": "read",
        "recalculate_progress": "update",
        "fix_client_counts": "update",
        "set_progress": "update",
        "sync_all": "manage",
    }
    not_found_code = "GOAL_NOT_FOUND"
    pagination_class = GoalPagination
    lookup_value_regex = r"\d+"
    filter_backends = []

    def get_engine(self) -> GoalProgressEngine:
        return GoalProgressEngine()

    def get_queryset(self):
        qs = Goal.objects.select_related("agent")
        if self.action == "list":
            return qs.filter(agent=self.request.user)
        return qs

    def get_serializer_class(self):
        if self.action in ("create", "update", "partial_update"):
            return GoalWriteSerializer
        return GoalSerializer

    def get_object(self):
        obj = Goal.objects.select_related("agent").filter(pk=self.kwargs.get("pk")).first()
        if obj is None:
            raise ResourceNotFound("Goal not found.", code="GOAL_NOT_FOUND")
        self.check_object_permissions(self.request, obj)
        return obj

    def _filtered_list(self):
        params = GoalQuerySerializer(data=normalize_keys(self.request.query_params.dict()))
        params.is_valid(raise_exception=True)
        filters = params.validated_data

        qs = self.get_queryset()
        if filters.get("goal_type"):
            qs = qs.filter(goal_type=filters["goal_type"])
        if filters.get("metric_type"):
            qs = qs.filter(metric_type=filters["metric_type"])
        if filters.get("is_active") is not None:
            qs = qs.filter(is_active=filters["is_active"])
        return qs

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def list(self, request, *args, **kwargs):
        page = self.paginate_queryset(self._filtered_list())
        engine = self.get_engine()
        for goal in page:
            engine.current_value(goal)
        return self.get_paginated_response(GoalSerializer(page, many=True).data)

    def retrieve(self, request, *args, **kwargs):
        goal = self.get_object()
        self.get_engine().current_value(goal)
        return Response({"data": GoalSerializer(goal).data})

    def create(self, request, *args, **kwargs):
        serializer = GoalWriteSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        agent = self._resolve_agent(data.pop("agent_id", None))
        goal = Goal(agent=agent, **data)
        self.get_engine().seed(goal)
        with transaction.atomic():
            goal.save()
        logger.info(
            "Goal %s created for agent %s (%s, seeded %s)",
            goal.pk, agent.pk, goal.metric_type, goal.current_value,
        )
        return Response({"data": GoalSerializer(goal).data}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        goal = self.get_object()
        serializer = GoalWriteSerializer(
            goal,
            data=request.data,
            partial=True,
            context=self.get_serializer_context(),
        )
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data.pop("agent_id", None)

        reseed = any(
            field in data and data[field] != getattr(goal, field)
            for field in RESEED_FIELDS
        )
        for field, value in data.items():
            setattr(goal, field, value)
        engine = self.get_engine()
        if reseed:
            engine.seed(goal)
        goal.save()
        if not reseed:
            engine.current_value(goal)
        return Response({"data": GoalSerializer(goal).data})

    def perform_destroy(self, instance):
        logger.info("Goal %s deleted by %s", instance.pk, self.request.user.pk)
        instance.delete()

    def _resolve_agent(self, agent_id):
        user = self.request.user
        if agent_id is None or str(agent_id) == str(user.pk):
            return user
        if not has_any_scope(user, CREATE, "goals"):
            raise AccessDenied("Only managers can set goals for other agents.")
        agent = User.objects.active().filter(pk=agent_id).first()
        if agent is None:
            raise ResourceNotFound("Agent not found.", code="USER_NOT_FOUND")
        return agent

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put", "post"], url_path="progress")
    def set_progress(self, request, pk=None):
        goal = self.get_object()
        serializer = GoalProgressUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.get_engine().apply_manual_value(goal, serializer.validated_data["current_value"])
        return Response({"data": GoalSerializer(goal).data})

    @action(detail=False, methods=["get"], url_path="progress")
    def progress_summary(self, request):
        params = GoalQuerySerializer(data=normalize_keys(request.query_params.dict()))
        params.is_valid(raise_exception=True)
        filters = params.validated_data

        qs = Goal.objects.select_related("agent").filter(is_active=True)
        if not has_any_scope(request.user, READ, "goals"):
            qs = qs.filter(agent=request.user)
        if filters.get("start_date") and filters.get("end_date"):
            qs = qs.filter(start_date__gte=filters["start_date"], end_date__lte=filters["end_date"])

        engine = self.get_engine()
        goals = list(qs.order_by("-end_date"))
        rows = []
        for goal in goals:
            engine.current_value(goal)
            rows.append(GoalSerializer(goal).data)

        total = len(rows)
        completed = sum(1 for row in rows if row["progress"] >= 100)
        not_started = sum(1 for row in rows if row["progress"] == 0)
        by_type = defaultdict(list)
        by_metric = defaultdict(list)
        for row in rows:
            by_type[row["goal_type"]].append(row)
            by_metric[row["metric_type"]].append(row)

        return Response({
            "data": {
                "summary": {
                    "total": total,
                    "completed": completed,
                    "in_progress": total - completed - not_started,
                    "not_started": not_started,
                    "completion_rate": round(completed / total * 100, 2) if total else 0,
                },
                "goals": rows,
                "by_type": dict(by_type),
                "by_metric": dict(by_metric),
            }
        })

    @action(detail=False, methods=["post"], url_path="recalculate-progress")
    def recalculate_progress(self, request):
        goals = Goal.objects.filter(agent=request.user, is_active=True).order_by("pk")
        results = self.get_engine().refresh_goals(goals)
        recalculated = sum(1 for r in results if r["success"])
        return Response({
            "message": f"Progress recalculated for {recalculated} goals",
            "data": {
                "total_goals": len(results),
                "recalculated_count": recalculated,
                "results": results,
            },
        })

    @action(detail=False, methods=["post"], url_path="sync-all")
    def sync_all(self, request):
        summary = self.get_engine().sync_all()
        return Response({
            "message": "Goal sync completed",
            "data": {
                "total_goals": summary["total_goals"],
                "synced_goals": summary["synced_goals"],
                "errors": len(summary["errors"]),
            },
            "errors": summary["errors"],
        })

    @action(detail=False, methods=["post"], url_path="fix-client-counts")
    def fix_client_counts(self, request):
        goals = Goal.objects.filter(
            agent=request.user,
            metric_type__in=[Goal.MetricType.CLIENT_COUNT, Goal.MetricType.NEW_CLIENTS],
        ).order_by("pk")
        results = self.get_engine().refresh_goals(goals)
        return Response({
            "message": "Client count goals recalculated",
            "data": {
                "total_goals": len(results),
                "fixed_goals": sum(1 for r in results if r["success"]),
                "results": results,
            },
        })

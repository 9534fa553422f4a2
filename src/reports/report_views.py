"""API views for the reports module."""
from __future__ import annotations

import logging

from rest_framework import serializers
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.capabilities import READ, can
from accounts.models import User
from api.normalization import normalize_keys
from core.exceptions import AccessDenied, ResourceNotFound
from goals.models import Goal
from reports import services
from sales.models import Sale

logger = logging.getLogger("bulwark")


# ──────────────────────────────────────────────
# Query parameters
# ──────────────────────────────────────────────

class ReportRangeSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError({"end_date": "End date must not be before start date."})
        return attrs


class SalesReportQuerySerializer(ReportRangeSerializer):
    agent_id = serializers.UUIDField(required=False)
    product_id = serializers.IntegerField(required=False, min_value=1)
    status = serializers.ChoiceField(choices=Sale.Status.choices, required=False)
    group_by = serializers.ChoiceField(choices=services.GROUP_BY_CHOICES, required=False, default="month")


class PerformanceQuerySerializer(ReportRangeSerializer):
    agent_id = serializers.UUIDField(required=False)


class GoalsReportQuerySerializer(ReportRangeSerializer):
    goal_type = serializers.ChoiceField(choices=Goal.GoalType.choices, required=False)


class DashboardQuerySerializer(serializers.Serializer):
    user_id = serializers.UUIDField(required=False)


class ReportAPIView(APIView):
    permission_classes = [IsAuthenticated]
    query_serializer_class = ReportRangeSerializer

    def get_filters(self, request) -> dict:
        params = self.query_serializer_class(data=normalize_keys(request.query_params.dict()))
        params.is_valid(raise_exception=True)
        return dict(params.validated_data)


# ──────────────────────────────────────────────
# Views
# ──────────────────────────────────────────────

class DashboardReportView(ReportAPIView):
    query_serializer_class = DashboardQuerySerializer

    def get(self, request):
        user_id = self.get_filters(request).get("user_id")
        target = request.user
        if user_id is not None and str(user_id) != str(request.user.pk):
            if not can(request.user, READ, "reports", owner_id=user_id):
                raise AccessDenied()
            target = User.objects.not_deleted().filter(pk=user_id).first()
            if target is None:
                raise ResourceNotFound("User not found.", code="USER_NOT_FOUND")
        return Response({"data": services.get_dashboard(request.user, target=target)})


class SalesReportView(ReportAPIView):
    """Sales grouped by period, agent or product."""

    query_serializer_class = SalesReportQuerySerializer

    def get(self, request):
        filters = self.get_filters(request)
        group_by = filters.pop("group_by")
        report = services.get_sales_report(request.user, group_by=group_by, **filters)
        return Response({"report": report})


class PerformanceReportView(ReportAPIView):
    query_serializer_class = PerformanceQuerySerializer

    def get(self, request):
        report = services.get_performance_report(request.user, **self.get_filters(request))
        return Response({"report": report})


class TeamReportView(ReportAPIView):
    def get(self, request):
        report = services.get_team_report(request.user, **self.get_filters(request))
        return Response({"data": report})


class GoalsReportView(ReportAPIView):
    query_serializer_class = GoalsReportQuerySerializer

    def get(self, request):
        report = services.get_goals_report(request.user, **self.get_filters(request))
        return Response({"report": report})

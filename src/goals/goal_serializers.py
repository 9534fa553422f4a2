"""DRF Serializers for the goals module."""
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from core.exceptions import ServiceError
from goals.models import Goal


class GoalSerializer(serializers.ModelSerializer):
    agent_name = serializers.CharField(source="agent.get_full_name", read_only=True)
    progress = serializers.SerializerMethodField()

    class Meta:
        model = Goal
        fields = [
            "id", "agent", "agent_name", "title", "goal_type", "metric_type",
            "target_value", "current_value", "progress", "start_date",
            "end_date", "is_active", "notes", "last_computed_at",
            "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_progress(self, obj) -> float:
        return float(obj.progress_percent)


class GoalWriteSerializer(serializers.ModelSerializer):
    """Used for create/update. Managers may set ``agent_id``."""

    agent_id = serializers.UUIDField(required=False, write_only=True)
    target_value = serializers.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        model = Goal
        fields = [
            "agent_id", "title", "goal_type", "metric_type", "target_value",
            "start_date", "end_date", "is_active", "notes",
        ]
        extra_kwargs = {
            "goal_type": {"required": True},
        }

    def validate_target_value(self, value):
        if value is None or value <= Decimal("0"):
            raise ServiceError("Target value must be greater than zero.", code="INVALID_TARGET_VALUE")
        return value

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and start >= end:
            raise ServiceError("Start date must be before end date.", code="INVALID_DATE_RANGE")
        return attrs


class GoalProgressUpdateSerializer(serializers.Serializer):
    current_value = serializers.DecimalField(max_digits=12, decimal_places=2)

    def validate_current_value(self, value):
        if value < Decimal("0"):
            raise serializers.ValidationError("Current value must be zero or greater.")
        return value


class GoalQuerySerializer(serializers.Serializer):
    """Validates list filters (already normalised to snake_case)."""

    goal_type = serializers.ChoiceField(choices=Goal.GoalType.choices, required=False)
    metric_type = serializers.ChoiceField(choices=Goal.MetricType.choices, required=False)
    is_active = serializers.BooleanField(required=False, allow_null=True, default=None)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

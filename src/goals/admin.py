"""Admin configuration for the goals app."""
from django.contrib import admin

from goals.models import Goal


@admin.register(Goal)
class GoalAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "agent",
        "goal_type",
        "metric_type",
        "target_value",
        "current_value",
        "start_date",
        "end_date",
        "is_active",
    )
    list_filter = ("goal_type", "metric_type", "is_active")
    search_fields = ("title", "agent__email", "agent__first_name", "agent__last_name")
    readonly_fields = ("current_value", "last_computed_at", "created_at", "updated_at")

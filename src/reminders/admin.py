"""Admin configuration for the reminders app."""
from django.contrib import admin

from reminders.models import Reminder


@admin.register(Reminder)
class ReminderAdmin(admin.ModelAdmin):
    list_display = ("title", "agent", "client", "reminder_date", "priority", "reminder_type", "is_completed")
    list_filter = ("priority", "reminder_type", "is_completed")
    search_fields = ("title", "description", "agent__email")
    date_hierarchy = "reminder_date"

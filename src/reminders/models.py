"""Models for the reminders app."""
from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import TimeStampedModel


class ReminderQuerySet(models.QuerySet):
    def pending(self):
        return self.filter(is_completed=False)

    def upcoming(self, now=None):
        return self.pending().filter(reminder_date__gte=now or timezone.now())

    def overdue(self, now=None):
        return self.pending().filter(reminder_date__lt=now or timezone.now())


class Reminder(TimeStampedModel):
    """A dated follow-up an agent has scheduled, optionally about a client."""

    class Priority(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"
        URGENT = "urgent", "Urgent"

    class ReminderType(models.TextChoices):
        CALL_BACK = "call_back", "Call back"
        OUTSTANDING_DOCUMENTS = "outstanding_documents", "Outstanding documents"
        DELAYED_START_DATE = "delayed_start_date", "Delayed start date"
        FOLLOW_UP = "follow_up", "Follow-up"
        POLICY_RENEWAL = "policy_renewal", "Policy renewal"

    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reminders",
        verbose_name="agent",
    )
    client = models.ForeignKey(
        "clients.Client",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="reminders",
        verbose_name="client",
    )
    title = models.CharField("title", max_length=200)
    description = models.TextField("description", blank=True, default="")
    reminder_date = models.DateTimeField("due", db_index=True)
    priority = models.CharField(
        "priority",
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM,
    )
    reminder_type = models.CharField(
        "type",
        max_length=30,
        choices=ReminderType.choices,
        default=ReminderType.FOLLOW_UP,
    )
    is_completed = models.BooleanField("completed", default=False, db_index=True)
    completed_at = models.DateTimeField("completed at", null=True, blank=True)

    objects = ReminderQuerySet.as_manager()

    class Meta:
        verbose_name = "reminder"
        verbose_name_plural = "reminders"
        ordering = ["reminder_date"]
        indexes = [
            models.Index(
                fields=["agent", "is_completed", "reminder_date"],
                name="reminder_agent_due_idx",
            ),
        ]

    def __str__(self):
        return self.title

    def mark_completed(self, now=None):
        self.is_completed = True
        self.completed_at = now or timezone.now()
        self.save(update_fields=["is_completed", "completed_at", "updated_at"])

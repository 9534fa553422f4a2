"""Models for the goals app."""
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.models import TimeStampedModel


class Goal(TimeStampedModel):
    """A target an agent works toward over a date window.

    ``current_value`` is derived: the engine recomputes it from Sale/Client
    rows and persists the result. For new-occurrence metrics only sales
    recorded after ``counts_after`` count. ``adjustment`` carries a manual
    correction that survives recomputation.
    """

    class GoalType(models.TextChoices):
        WEEKLY = "weekly", "Weekly"
        MONTHLY = "monthly", "Monthly"
        QUARTERLY = "quarterly", "Quarterly"
        HALF_YEARLY = "half_yearly", "Half-yearly"
        ANNUAL = "annual", "Annual"

    class MetricType(models.TextChoices):
        SALES_AMOUNT = "sales_amount", "Sales amount"
        COMMISSION = "commission", "Commission"
        SALES_COUNT = "sales_count", "Sales count"
        POLICIES_SOLD = "policies_sold", "Policies sold"
        CLIENT_COUNT = "client_count", "Client count"
        NEW_CLIENTS = "new_clients", "New clients"

    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="goals",
        verbose_name="agent",
    )
    title = models.CharField("title", max_length=200)
    goal_type = models.CharField(
        "goal type",
        max_length=20,
        choices=GoalType.choices,
        default=GoalType.MONTHLY,
        db_index=True,
    )
    metric_type = models.CharField(
        "metric",
        max_length=20,
        choices=MetricType.choices,
        db_index=True,
    )
    target_value = models.DecimalField("target", max_digits=12, decimal_places=2)
    current_value = models.DecimalField(
        "current value",
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    counts_after = models.DateTimeField(
        "counts after",
        null=True,
        blank=True,
        help_text="Sales recorded at or before this moment are not counted as progress.",
    )
    adjustment = models.DecimalField(
        "manual adjustment",
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    start_date = models.DateField("start date")
    end_date = models.DateField("end date")
    is_active = models.BooleanField("active", default=True, db_index=True)
    notes = models.TextField("notes", blank=True, default="")
    last_computed_at = models.DateTimeField("last computed", null=True, blank=True)

    class Meta:
        verbose_name = "goal"
        verbose_name_plural = "goals"
        ordering = ["-end_date", "-created_at"]
        indexes = [
            models.Index(fields=["agent", "is_active"], name="goal_agent_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(target_value__gt=0),
                name="goal_target_positive",
            ),
            models.CheckConstraint(
                condition=Q(start_date__lt=F("end_date")),
                name="goal_window_ordered",
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.get_metric_type_display()})"

    @property
    def progress_percent(self) -> Decimal:
        if not self.target_value:
            return Decimal("0.00")
        pct = (Decimal(self.current_value) / Decimal(self.target_value)) * 100
        return pct.quantize(Decimal("0.01"))

    @property
    def is_completed(self) -> bool:
        return self.current_value >= self.target_value

"""Models for the sales app."""
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from core.models import TimeStampedModel


class SaleQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status=Sale.Status.ACTIVE)

    def for_agent(self, agent_id):
        return self.filter(agent_id=agent_id)

    def in_window(self, start_date, end_date):
        """Sales whose ``sale_date`` falls within [start_date, end_date], inclusive."""
        return self.filter(sale_date__gte=start_date, sale_date__lte=end_date)


class Sale(TimeStampedModel):
    """A policy sold by an agent to a client."""

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        CANCELLED = "cancelled", "Cancelled"
        EXPIRED = "expired", "Expired"

    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sales",
        verbose_name="agent",
    )
    client = models.ForeignKey(
        "clients.Client",
        on_delete=models.PROTECT,
        related_name="sales",
        verbose_name="client",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="sales",
        verbose_name="product",
    )
    product_name = models.CharField("product name", max_length=200, blank=True, default="")
    policy_number = models.CharField("policy number", max_length=100, blank=True, default="", db_index=True)

    # ------------------------------------------------------------------
    # Amounts
    # ------------------------------------------------------------------
    premium_amount = models.DecimalField(
        "premium",
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    commission_rate = models.DecimalField(
        "commission rate (%)",
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00")), MaxValueValidator(Decimal("100.00"))],
    )
    commission_amount = models.DecimalField(
        "commission",
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    sale_date = models.DateField("sale date", default=timezone.localdate, db_index=True)
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    notes = models.TextField("notes", blank=True, default="")

    objects = SaleQuerySet.as_manager()

    class Meta:
        verbose_name = "sale"
        verbose_name_plural = "sales"
        ordering = ["-sale_date", "-created_at"]
        indexes = [
            models.Index(fields=["agent", "sale_date"], name="sale_agent_date_idx"),
            models.Index(fields=["status", "sale_date"], name="sale_status_date_idx"),
        ]

    def __str__(self):
        return f"{self.product_name or self.product_id} - {self.premium_amount}"

"""Models for the products app."""
from django.db import models

from core.models import TimeStampedModel


class Product(TimeStampedModel):
    """An insurance product that sales are written against."""

    name = models.CharField("name", max_length=200, unique=True)
    description = models.TextField("description", blank=True, default="")
    category = models.CharField("category", max_length=100, blank=True, default="", db_index=True)
    is_active = models.BooleanField("active", default=True, db_index=True)

    class Meta:
        verbose_name = "product"
        verbose_name_plural = "products"
        ordering = ["name"]

    def __str__(self):
        return self.name

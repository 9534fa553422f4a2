"""Admin configuration for the sales app."""
from django.contrib import admin

from sales.models import Sale


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    """Admin for the Sale model."""

    list_display = (
        "policy_number",
        "agent",
        "client",
        "product_name",
        "premium_amount",
        "commission_amount",
        "status",
        "sale_date",
    )
    list_filter = ("status", "sale_date", "product")
    search_fields = (
        "policy_number",
        "product_name",
        "agent__first_name",
        "agent__last_name",
        "agent__email",
        "client__first_name",
        "client__last_name",
    )
    date_hierarchy = "sale_date"
    readonly_fields = ("created_at", "updated_at")

"""Team insight computations: leaderboard, headline stats, top agents."""
from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal

from django.db.models import Count, DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from accounts.capabilities import READ, has_any_scope
from accounts.models import User

logger = logging.getLogger(__name__)

PERIODS = ("week", "month", "quarter", "year")

_MONEY = DecimalField(max_digits=14, decimal_places=2)


def period_start(period: str, today: date | None = None) -> date:
    """First day of the current week/month/quarter/year."""
    today = today or timezone.localdate()
    if period == "week":
        return today - timedelta(days=today.weekday())
    if period == "month":
        return today.replace(day=1)
    if period == "quarter":
        return date(today.year, 3 * ((today.month - 1) // 3) + 1, 1)
    if period == "year":
        return date(today.year, 1, 1)
    raise ValueError(f"Unknown period: {period}")


def _ranked_agents(users, *, since: date):
    sales_filter = Q(
        sales__status="active",
        sales__sale_date__gte=since,
        sales__sale_date__lte=timezone.localdate(),
    )
    return (
        users.annotate(
            sale_count=Count("sales", filter=sales_filter),
            revenue=Coalesce(
                Sum("sales__premium_amount", filter=sales_filter),
                Value(Decimal("0.00")),
                output_field=_MONEY,
            ),
            commission=Coalesce(
                Sum("sales__commission_amount", filter=sales_filter),
                Value(Decimal("0.00")),
                output_field=_MONEY,
            ),
        )
    )


def leaderboard(user, *, period: str = "month", limit: int = 10) -> list[dict]:
    """Agents ranked by revenue for the current *period*.

    Agents only see their own entry.
    """
    since = period_start(period)
    users = User.objects.active().agents()
    if not has_any_scope(user, READ, "sales"):
        users = users.filter(pk=user.pk)

    qs = _ranked_agents(users, since=since).order_by("-revenue", "-sale_count", "last_name")[:limit]
    entries = []
    for rank, agent in enumerate(qs, start=1):
        entries.append({
            "rank": rank,
            "agent_id": str(agent.pk),
            "agent_name": agent.get_full_name(),
            "sale_count": agent.sale_count,
            "revenue": agent.revenue,
            "commission": agent.commission,
        })
    return entries


def top_agents(*, limit: int = 5) -> list[dict]:
    """Top agents this month by number of active sales."""
    since = period_start("month")
    qs = (
        _ranked_agents(User.objects.active().agents(), since=since)
        .order_by("-sale_count", "-revenue", "last_name")[:limit]
    )
    return [
        {
            "agent_id": str(agent.pk),
            "agent_name": agent.get_full_name(),
            "email": agent.email,
            "sale_count": agent.sale_count,
            "revenue": agent.revenue,
        }
        for agent in qs
    ]


def team_stats(user) -> dict:
    """Headline figures; agents get their own numbers only."""
    from clients.models import Client
    from goals.models import Goal
    from sales.models import Sale

    since = period_start("month")
    sales = Sale.objects.active()
    clients = Client.objects.all()
    goals = Goal.objects.filter(is_active=True)
    if not has_any_scope(user, READ, "sales"):
        sales = sales.for_agent(user.pk)
        clients = clients.filter(agent_id=user.pk)
        goals = goals.filter(agent_id=user.pk)

    month = sales.filter(sale_date__gte=since, sale_date__lte=timezone.localdate()).aggregate(
        count=Count("id"),
        revenue=Coalesce(Sum("premium_amount"), Value(Decimal("0.00")), output_field=_MONEY),
    )
    members = User.objects.not_deleted()
    sees_team = has_any_scope(user, READ, "users")
    return {
        "total_members": members.count() if sees_team else 1,
        "active_agents": members.agents().filter(is_active=True).count() if sees_team else 1,
        "total_clients": clients.count(),
        "total_sales": sales.count(),
        "sales_this_month": month["count"],
        "revenue_this_month": month["revenue"],
        "active_goals": goals.count(),
    }

"""Service functions for the reports app.

These functions build report payloads from Sale/Client/Goal rows so the
views stay thin. Every function takes the requesting user and applies the
role scoping itself: agents only ever see their own figures.
"""
import logging
from decimal import Decimal

from django.db.models import Avg, Count, DecimalField, F, Sum, Value
from django.db.models.functions import (
    Coalesce,
    TruncMonth,
    TruncQuarter,
    TruncWeek,
    TruncYear,
)

from accounts.capabilities import READ, can, has_any_scope
from core.exceptions import AccessDenied

logger = logging.getLogger("bulwark")

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

GROUP_BY_CHOICES = ("day", "week", "month", "quarter", "year", "agent", "product")

_DATE_TRUNCS = {
    "week": TruncWeek,
    "month": TruncMonth,
    "quarter": TruncQuarter,
    "year": TruncYear,
}

_MONEY = DecimalField(max_digits=14, decimal_places=2)


def _money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT)


def _sale_aggregates():
    return {
        "total_sales": Count("id"),
        "total_revenue": Coalesce(Sum("premium_amount"), Value(ZERO), output_field=_MONEY),
        "total_commission": Coalesce(Sum("commission_amount"), Value(ZERO), output_field=_MONEY),
        "average_premium": Avg("premium_amount"),
    }


def _row(bucket_key, values, label=None) -> dict:
    row = {
        "bucket_key": bucket_key,
        "total_sales": values.get("total_sales") or 0,
        "total_revenue": _money(values.get("total_revenue")),
        "total_commission": _money(values.get("total_commission")),
        "average_premium": _money(values.get("average_premium")),
    }
    if label is not None:
        row["label"] = label
    return row


def scoped_sales(user, *, start_date=None, end_date=None, agent_id=None, product_id=None, status=None):
    """Sales visible to *user* after applying the report filters."""
    from sales.models import Sale

    qs = Sale.objects.all()
    if not has_any_scope(user, READ, "reports"):
        agent_id = user.pk
    if agent_id:
        qs = qs.filter(agent_id=agent_id)
    if product_id:
        qs = qs.filter(product_id=product_id)
    if status:
        qs = qs.filter(status=status)
    if start_date:
        qs = qs.filter(sale_date__gte=start_date)
    if end_date:
        qs = qs.filter(sale_date__lte=end_date)
    return qs


# ---------------------------------------------------------------------------
# Sales report
# ---------------------------------------------------------------------------

def get_sales_report(user, *, group_by="month", **filters) -> dict:
    """Group the visible sales into buckets.

    Returns ``{"group_by", "data", "summary"}``; an empty selection gives an
    empty ``data`` list and a zeroed summary.
    """
    if group_by not in GROUP_BY_CHOICES:
        raise ValueError(f"Unsupported group_by: {group_by}")

    qs = scoped_sales(user, **filters)

    if group_by == "day":
        rows = [
            _row(r["sale_date"].isoformat(), r)
            for r in qs.values("sale_date").annotate(**_sale_aggregates()).order_by("sale_date")
        ]
    elif group_by in _DATE_TRUNCS:
        trunc = _DATE_TRUNCS[group_by]
        rows = [
            _row(r["bucket"].isoformat(), r)
            for r in (
                qs.annotate(bucket=trunc("sale_date"))
                .values("bucket")
                .annotate(**_sale_aggregates())
                .order_by("bucket")
            )
        ]
    elif group_by == "agent":
        rows = [
            _row(
                str(r["agent_id"]),
                r,
                label=f"{r['agent__first_name']} {r['agent__last_name']}".strip(),
            )
            for r in (
                qs.values("agent_id", "agent__first_name", "agent__last_name")
                .annotate(**_sale_aggregates())
                .order_by("-total_revenue")
            )
        ]
    else:
        rows = [
            _row(str(r["product_id"]), r, label=r["product_name"])
            for r in (
                qs.values("product_id", "product_name")
                .annotate(**_sale_aggregates())
                .order_by("-total_revenue")
            )
        ]

    summary = _row(None, qs.aggregate(**_sale_aggregates()))
    summary.pop("bucket_key")
    return {"group_by": group_by, "data": rows, "summary": summary}


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def get_dashboard(user, *, target=None) -> dict:
    """Headline figures for *target* (defaults to the requesting user)."""
    from clients.models import Client
    from goals.models import Goal
    from sales.models import Sale

    target = target or user
    if not can(user, READ, "reports", owner_id=target.pk):
        raise AccessDenied()

    sales = Sale.objects.active().for_agent(target.pk).aggregate(
        total_sales=Count("id"),
        total_revenue=Coalesce(Sum("premium_amount"), Value(ZERO), output_field=_MONEY),
        total_commission=Coalesce(Sum("commission_amount"), Value(ZERO), output_field=_MONEY),
    )
    goals = Goal.objects.filter(agent_id=target.pk)
    active_goals = goals.filter(is_active=True)
    return {
        "user_id": str(target.pk),
        "sales": {
            "total_sales": sales["total_sales"],
            "total_revenue": _money(sales["total_revenue"]),
            "total_commission": _money(sales["total_commission"]),
        },
        "clients": {
            "total_clients": Client.objects.filter(agent_id=target.pk).count(),
        },
        "goals": {
            "total_goals": goals.count(),
            "active_goals": active_goals.count(),
            "completed_goals": active_goals.filter(current_value__gte=F("target_value")).count(),
        },
    }


# ---------------------------------------------------------------------------
# Per-agent performance
# ---------------------------------------------------------------------------

def _agent_rows(users, sales_qs) -> list:
    """One row per user; sales and clients are aggregated separately."""
    from clients.models import Client

    sales_by_agent = {
        r["agent_id"]: r
        for r in sales_qs.values("agent_id").annotate(**_sale_aggregates()).order_by()
    }
    clients_by_agent = dict(
        Client.objects.filter(agent__in=users)
        .values("agent_id")
        .annotate(total=Count("id"))
        .values_list("agent_id", "total")
        .order_by()
    )

    rows = []
    for member in users:
        sales = sales_by_agent.get(member.pk, {})
        clients = clients_by_agent.get(member.pk, 0)
        total_sales = sales.get("total_sales") or 0
        rows.append({
            "agent_id": str(member.pk),
            "agent_name": member.get_full_name(),
            "email": member.email,
            "role": member.role,
            "department": member.department,
            "total_sales": total_sales,
            "total_revenue": _money(sales.get("total_revenue")),
            "total_commission": _money(sales.get("total_commission")),
            "average_premium": _money(sales.get("average_premium")),
            "total_clients": clients,
            "conversion_rate": round(total_sales / clients * 100, 2) if clients else 0,
        })
    rows.sort(key=lambda r: r["total_revenue"], reverse=True)
    return rows


def _agent_summary(rows, sales_qs) -> dict:
    summary = _row(None, sales_qs.aggregate(**_sale_aggregates()))
    summary.pop("bucket_key")
    summary["total_agents"] = len(rows)
    summary["total_clients"] = sum(r["total_clients"] for r in rows)
    return summary


def get_performance_report(user, *, start_date=None, end_date=None, agent_id=None) -> dict:
    from accounts.models import User

    users = User.objects.active()
    if not has_any_scope(user, READ, "reports"):
        users = users.filter(pk=user.pk)
    elif agent_id:
        users = users.filter(pk=agent_id)
    users = list(users.order_by("last_name", "first_name"))

    sales_qs = scoped_sales(user, start_date=start_date, end_date=end_date).filter(agent__in=users)
    rows = _agent_rows(users, sales_qs)
    return {"performance": rows, "summary": _agent_summary(rows, sales_qs)}


def get_team_report(user, *, start_date=None, end_date=None) -> dict:
    """Per-agent figures for the whole agency. Managers only."""
    from accounts.models import User

    if not has_any_scope(user, READ, "teams"):
        raise AccessDenied("Manager role required.")

    agents = list(User.objects.active().agents().order_by("last_name", "first_name"))
    sales_qs = scoped_sales(user, start_date=start_date, end_date=end_date).filter(agent__in=agents)
    rows = _agent_rows(agents, sales_qs)
    return {"members": rows, "summary": _agent_summary(rows, sales_qs)}


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------

def get_goals_report(user, *, start_date=None, end_date=None, goal_type=None) -> dict:
    """Progress of active goals, freshest first by progress."""
    from goals.engine import GoalProgressEngine
    from goals.models import Goal

    qs = Goal.objects.filter(is_active=True).select_related("agent")
    if not has_any_scope(user, READ, "goals"):
        qs = qs.filter(agent_id=user.pk)
    if start_date:
        qs = qs.filter(start_date__gte=start_date)
    if end_date:
        qs = qs.filter(end_date__lte=end_date)
    if goal_type:
        qs = qs.filter(goal_type=goal_type)

    engine = GoalProgressEngine()
    rows = []
    for goal in qs:
        engine.current_value(goal)
        rows.append({
            "id": goal.pk,
            "title": goal.title,
            "goal_type": goal.goal_type,
            "metric_type": goal.metric_type,
            "target_value": goal.target_value,
            "current_value": goal.current_value,
            "start_date": goal.start_date,
            "end_date": goal.end_date,
            "progress": float(goal.progress_percent),
            "agent": {
                "id": str(goal.agent_id),
                "name": goal.agent.get_full_name(),
                "email": goal.agent.email,
            },
        })
    rows.sort(key=lambda r: r["progress"], reverse=True)

    total = len(rows)
    return {
        "goals": rows,
        "summary": {
            "total_goals": total,
            "completed_goals": sum(1 for r in rows if r["progress"] >= 100),
            "average_progress": round(sum(r["progress"] for r in rows) / total, 2) if total else 0,
        },
    }

from datetime import date
from decimal import Decimal

import pytest

from goals.models import Goal
from sales.models import Sale

REPORTS = "/api/v1/reports"


@pytest.mark.django_db
def test_dashboard_counts_active_sales_only(agent_client, make_sale, client_record):
    make_sale("100.00", date(2024, 1, 3), commission="10.00")
    make_sale("900.00", date(2024, 1, 4), status=Sale.Status.CANCELLED)

    response = agent_client.get(f"{REPORTS}/dashboard/")

    data = response.data["data"]
    assert response.status_code == 200
    assert data["sales"]["total_sales"] == 1
    assert data["sales"]["total_revenue"] == Decimal("100.00")
    assert data["clients"]["total_clients"] == 1


@pytest.mark.django_db
def test_agent_cannot_open_another_dashboard(agent_client, other_agent):
    response = agent_client.get(f"{REPORTS}/dashboard/", {"userId": str(other_agent.pk)})
    assert response.status_code == 403
    assert response.data["code"] == "ACCESS_DENIED"


@pytest.mark.django_db
def test_manager_dashboard_for_unknown_user(manager_client):
    response = manager_client.get(
        f"{REPORTS}/dashboard/", {"userId": "00000000-0000-0000-0000-000000000000"}
    )
    assert response.status_code == 404
    assert response.data["code"] == "USER_NOT_FOUND"


@pytest.mark.django_db
def test_performance_report_for_agent_has_one_row(agent_client, make_sale, client_record):
    make_sale("250.00", date(2024, 1, 3))
    make_sale("250.00", date(2024, 1, 5))

    response = agent_client.get(f"{REPORTS}/performance/")

    rows = response.data["report"]["performance"]
    assert len(rows) == 1
    assert rows[0]["total_sales"] == 2
    assert rows[0]["total_clients"] == 1
    assert rows[0]["conversion_rate"] == 200.0


@pytest.mark.django_db
def test_team_report_is_manager_only(agent_client, manager_client, agent_user, other_agent):
    denied = agent_client.get(f"{REPORTS}/team/")
    allowed = manager_client.get(f"{REPORTS}/team/")

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.data["data"]["summary"]["total_agents"] == 2


@pytest.mark.django_db
def test_goals_report_summarises_progress(agent_client, agent_user, make_sale):
    Goal.objects.create(
        agent=agent_user, title="Premium", metric_type="sales_amount",
        target_value=Decimal("200"), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
    )
    Goal.objects.create(
        agent=agent_user, title="Commission", metric_type="commission",
        target_value=Decimal("50"), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
    )
    make_sale("200.00", date(2024, 1, 10))

    response = agent_client.get(f"{REPORTS}/goals/")

    summary = response.data["report"]["summary"]
    assert summary["total_goals"] == 2
    assert summary["completed_goals"] == 1
    assert summary["average_progress"] == 50.0

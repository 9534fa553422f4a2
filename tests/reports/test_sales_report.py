from datetime import date
from decimal import Decimal

import pytest

from reports.services import get_sales_report
from sales.models import Sale

SALES_REPORT_URL = "/api/v1/reports/sales/"


@pytest.mark.django_db
def test_empty_selection_gives_zeroed_summary(manager_user):
    report = get_sales_report(manager_user, group_by="month")

    assert report["data"] == []
    assert report["summary"] == {
        "total_sales": 0,
        "total_revenue": Decimal("0.00"),
        "total_commission": Decimal("0.00"),
        "average_premium": Decimal("0.00"),
    }


@pytest.mark.django_db
def test_monthly_buckets(manager_user, make_sale):
    make_sale("100.00", date(2024, 1, 3), commission="10.00")
    make_sale("300.00", date(2024, 1, 20), commission="30.00")
    make_sale("500.00", date(2024, 2, 1))

    report = get_sales_report(manager_user, group_by="month")

    assert [row["bucket_key"] for row in report["data"]] == ["2024-01-01", "2024-02-01"]
    january = report["data"][0]
    assert january["total_sales"] == 2
    assert january["total_revenue"] == Decimal("400.00")
    assert january["total_commission"] == Decimal("40.00")
    assert january["average_premium"] == Decimal("200.00")
    assert report["summary"]["total_sales"] == 3


@pytest.mark.django_db
def test_status_filter_narrows_rows(manager_user, make_sale):
    make_sale("100.00", date(2024, 1, 3))
    make_sale("999.00", date(2024, 1, 4), status=Sale.Status.CANCELLED)

    everything = get_sales_report(manager_user, group_by="day")
    active = get_sales_report(manager_user, group_by="day", status=Sale.Status.ACTIVE)

    assert everything["summary"]["total_sales"] == 2
    assert active["summary"]["total_revenue"] == Decimal("100.00")


@pytest.mark.django_db
def test_group_by_agent_labels_rows(manager_user, other_agent, make_sale):
    make_sale("100.00", date(2024, 1, 3))
    make_sale("700.00", date(2024, 1, 3), agent=other_agent)

    report = get_sales_report(manager_user, group_by="agent")

    assert [row["label"] for row in report["data"]] == ["Olive Other", "Alex Agent"]


def test_unsupported_group_by_is_rejected():
    with pytest.raises(ValueError):
        get_sales_report(object(), group_by="hour")


@pytest.mark.django_db
def test_agent_is_forced_to_own_figures(agent_client, other_agent, make_sale):
    make_sale("100.00", date(2024, 1, 3))
    make_sale("700.00", date(2024, 1, 3), agent=other_agent)

    response = agent_client.get(
        SALES_REPORT_URL, {"groupBy": "product", "agentId": str(other_agent.pk)}
    )

    assert response.status_code == 200
    assert response.data["report"]["summary"]["total_revenue"] == Decimal("100.00")
    assert response.data["report"]["data"][0]["label"] == "Term Life 20"


@pytest.mark.django_db
def test_end_before_start_is_a_validation_error(manager_client):
    response = manager_client.get(SALES_REPORT_URL, {"startDate": "2024-02-01", "endDate": "2024-01-01"})
    assert response.status_code == 400
    assert response.data["code"] == "VALIDATION_ERROR"


@pytest.mark.django_db
def test_unknown_group_by_is_a_validation_error(manager_client):
    response = manager_client.get(SALES_REPORT_URL, {"groupBy": "hour"})
    assert response.status_code == 400
    assert response.data["code"] == "VALIDATION_ERROR"

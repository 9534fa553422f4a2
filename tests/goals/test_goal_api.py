from datetime import date
from decimal import Decimal

import pytest

from goals.engine import GoalProgressEngine
from goals.models import Goal

GOALS_URL = "/api/v1/goals/"


def _payload(**overrides):
    payload = {
        "title": "January premium",
        "goalType": "monthly",
        "metricType": "sales_amount",
        "targetValue": "5000.00",
        "startDate": "2024-01-01",
        "endDate": "2024-01-31",
        "notes": "",
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
def test_create_goal_seeds_from_existing_sales(agent_client, make_sale):
    make_sale("1000.00", date(2024, 1, 5))
    make_sale("2000.00", date(2024, 1, 20))

    response = agent_client.post(GOALS_URL, _payload(), format="json")

    assert response.status_code == 201
    assert Decimal(response.data["data"]["current_value"]) == Decimal("3000.00")


@pytest.mark.django_db
def test_create_sales_count_goal_starts_at_zero(agent_client, make_sale):
    make_sale("1000.00", date(2024, 1, 5))

    response = agent_client.post(
        GOALS_URL, _payload(metricType="sales_count", targetValue="5"), format="json"
    )

    assert response.status_code == 201
    assert Decimal(response.data["data"]["current_value"]) == Decimal("0.00")


@pytest.mark.django_db
@pytest.mark.parametrize(
    "overrides, code",
    [
        ({"targetValue": "0"}, "INVALID_TARGET_VALUE"),
        ({"startDate": "2024-02-01", "endDate": "2024-01-01"}, "INVALID_DATE_RANGE"),
        ({"metricType": "bogus"}, "VALIDATION_ERROR"),
    ],
)
def test_create_goal_validation_codes(agent_client, overrides, code):
    response = agent_client.post(GOALS_URL, _payload(**overrides), format="json")
    assert response.status_code == 400
    assert response.data["code"] == code
    assert Goal.objects.count() == 0


@pytest.mark.django_db
def test_list_returns_own_goals_recomputed(agent_client, agent_user, other_agent, make_sale):
    engine = GoalProgressEngine()
    mine = engine.seed(Goal(
        agent=agent_user, title="Mine", metric_type="sales_amount",
        target_value=Decimal("100"), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
    ))
    mine.save()
    theirs = engine.seed(Goal(
        agent=other_agent, title="Theirs", metric_type="sales_amount",
        target_value=Decimal("100"), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
    ))
    theirs.save()
    make_sale("80.00", date(2024, 1, 2))

    response = agent_client.get(GOALS_URL, {"metricType": "sales_amount", "limit": 10})

    assert response.status_code == 200
    assert [g["id"] for g in response.data["data"]] == [mine.pk]
    assert Decimal(response.data["data"][0]["current_value"]) == Decimal("80.00")
    assert response.data["pagination"]["total"] == 1
    assert response.data["pagination"]["limit"] == 10


@pytest.mark.django_db
def test_reads_pick_up_sales_written_since_the_last_read(agent_client, agent_user, make_sale):
    goal = GoalProgressEngine().seed(Goal(
        agent=agent_user, title="January", metric_type="sales_amount",
        target_value=Decimal("5000"), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
    ))
    goal.save()

    first = agent_client.get(GOALS_URL)
    assert first.data["data"][0]["current_value"] == "0.00"

    make_sale("1000.00", date(2024, 1, 5))
    make_sale("2000.00", date(2024, 1, 6))

    listed = agent_client.get(GOALS_URL)
    detail = agent_client.get(f"{GOALS_URL}{goal.pk}/")
    summary = agent_client.get(f"{GOALS_URL}progress/")

    assert listed.data["data"][0]["current_value"] == "3000.00"
    assert detail.data["data"]["current_value"] == "3000.00"
    assert summary.data["data"]["goals"][0]["current_value"] == "3000.00"
    assert summary.data["data"]["summary"]["in_progress"] == 1


@pytest.mark.django_db
def test_agent_cannot_read_another_agents_goal(agent_client, other_agent):
    goal = Goal.objects.create(
        agent=other_agent, title="Theirs", metric_type="sales_amount",
        target_value=Decimal("100"), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
    )

    response = agent_client.get(f"{GOALS_URL}{goal.pk}/")

    assert response.status_code == 403
    assert response.data["code"] == "ACCESS_DENIED"


@pytest.mark.django_db
def test_manager_can_read_any_goal(manager_client, agent_user):
    goal = Goal.objects.create(
        agent=agent_user, title="Agent goal", metric_type="commission",
        target_value=Decimal("100"), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
    )
    response = manager_client.get(f"{GOALS_URL}{goal.pk}/")
    assert response.status_code == 200
    assert response.data["data"]["title"] == "Agent goal"


@pytest.mark.django_db
def test_missing_goal_returns_goal_not_found(agent_client):
    response = agent_client.get(f"{GOALS_URL}999999/")
    assert response.status_code == 404
    assert response.data["code"] == "GOAL_NOT_FOUND"


@pytest.mark.django_db
def test_manual_progress_update(agent_client, agent_user):
    goal = Goal.objects.create(
        agent=agent_user, title="Calls", metric_type="sales_amount",
        target_value=Decimal("100"), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
    )

    response = agent_client.put(f"{GOALS_URL}{goal.pk}/progress/", {"currentValue": "40"}, format="json")

    assert response.status_code == 200
    assert Decimal(response.data["data"]["current_value"]) == Decimal("40.00")
    goal.refresh_from_db()
    assert goal.adjustment == Decimal("40.00")


@pytest.mark.django_db
def test_manual_progress_rejects_negative_value(agent_client, agent_user):
    goal = Goal.objects.create(
        agent=agent_user, title="Calls", metric_type="sales_amount",
        target_value=Decimal("100"), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
    )
    response = agent_client.put(f"{GOALS_URL}{goal.pk}/progress/", {"currentValue": "-1"}, format="json")
    assert response.status_code == 400
    assert response.data["code"] == "VALIDATION_ERROR"


@pytest.mark.django_db
def test_sync_all_is_manager_only(agent_client, manager_client, agent_user, make_sale):
    Goal.objects.create(
        agent=agent_user, title="Premium", metric_type="sales_amount",
        target_value=Decimal("100"), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
    )
    make_sale("70.00", date(2024, 1, 9))

    forbidden = agent_client.post(f"{GOALS_URL}sync-all/")
    assert forbidden.status_code == 403

    response = manager_client.post(f"{GOALS_URL}sync-all/")
    assert response.status_code == 200
    assert response.data["data"] == {"total_goals": 1, "synced_goals": 1, "errors": 0}
    assert Goal.objects.get().current_value == Decimal("70.00")


@pytest.mark.django_db
def test_recalculate_progress_reports_old_and_new_values(agent_client, agent_user, make_sale):
    goal = Goal.objects.create(
        agent=agent_user, title="Premium", metric_type="sales_amount",
        target_value=Decimal("100"), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
    )
    make_sale("25.00", date(2024, 1, 9))

    response = agent_client.post(f"{GOALS_URL}recalculate-progress/")

    assert response.status_code == 200
    result = response.data["data"]["results"][0]
    assert result["goal_id"] == goal.pk
    assert Decimal(result["old_value"]) == Decimal("0.00")
    assert Decimal(result["new_value"]) == Decimal("25.00")


@pytest.mark.django_db
def test_progress_summary_counts(agent_client, agent_user, make_sale):
    for title, target in (("Done", "50"), ("Half", "100"), ("Untouched", "100")):
        Goal.objects.create(
            agent=agent_user, title=title, metric_type="sales_amount" if title != "Untouched" else "commission",
            target_value=Decimal(target), start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
        )
    make_sale("50.00", date(2024, 1, 9))

    response = agent_client.get(f"{GOALS_URL}progress/")

    summary = response.data["data"]["summary"]
    assert response.status_code == 200
    assert summary["total"] == 3
    assert summary["completed"] == 1
    assert summary["in_progress"] == 1
    assert summary["not_started"] == 1

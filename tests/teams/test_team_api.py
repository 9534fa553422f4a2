from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from teams.models import Team, TeamMember
from teams.services import period_start

TEAMS_URL = "/api/v1/teams/"


def test_period_start_boundaries():
    today = date(2024, 5, 16)  # a Thursday
    assert period_start("week", today).isoformat() == "2024-05-13"
    assert period_start("month", today).isoformat() == "2024-05-01"
    assert period_start("quarter", today).isoformat() == "2024-04-01"
    assert period_start("year", today).isoformat() == "2024-01-01"
    with pytest.raises(ValueError):
        period_start("decade", today)


@pytest.mark.django_db
def test_agents_cannot_manage_teams(agent_client):
    response = agent_client.post(TEAMS_URL, {"name": "North"}, format="json")
    assert response.status_code == 403
    assert response.data["code"] == "INSUFFICIENT_PERMISSIONS"


@pytest.mark.django_db
def test_manager_builds_a_team(manager_client, manager_user, agent_user):
    created = manager_client.post(
        TEAMS_URL, {"name": "North", "manager": str(manager_user.pk)}, format="json"
    )
    assert created.status_code == 201
    team_id = created.data["id"]

    added = manager_client.post(
        f"{TEAMS_URL}{team_id}/members/", {"userId": str(agent_user.pk), "role": "lead"}, format="json"
    )
    duplicate = manager_client.post(
        f"{TEAMS_URL}{team_id}/members/", {"userId": str(agent_user.pk)}, format="json"
    )

    assert added.status_code == 201
    assert duplicate.status_code == 400
    assert duplicate.data["code"] == "ALREADY_MEMBER"
    assert TeamMember.objects.get(team_id=team_id).role == "lead"


@pytest.mark.django_db
def test_remove_member(manager_client, agent_user):
    team = Team.objects.create(name="South")
    TeamMember.objects.create(team=team, user=agent_user)

    removed = manager_client.delete(f"{TEAMS_URL}{team.pk}/members/{agent_user.pk}/")
    missing = manager_client.delete(f"{TEAMS_URL}{team.pk}/members/{agent_user.pk}/")

    assert removed.status_code == 204
    assert missing.status_code == 404
    assert missing.data["code"] == "MEMBER_NOT_FOUND"


@pytest.mark.django_db
def test_missing_team_is_team_not_found(manager_client):
    response = manager_client.get(f"{TEAMS_URL}9999/")
    assert response.status_code == 404
    assert response.data["code"] == "TEAM_NOT_FOUND"


@pytest.mark.django_db
def test_leaderboard_ranks_by_revenue(manager_client, other_agent, make_sale):
    today = timezone.localdate()
    make_sale("100.00", today)
    make_sale("900.00", today, agent=other_agent)

    response = manager_client.get("/api/v1/team/leaderboard/", {"period": "month"})

    board = response.data["leaderboard"]
    assert response.status_code == 200
    assert [entry["agent_name"] for entry in board] == ["Olive Other", "Alex Agent"]
    assert [entry["rank"] for entry in board] == [1, 2]


@pytest.mark.django_db
def test_agent_leaderboard_shows_only_self(agent_client, other_agent, make_sale):
    today = timezone.localdate()
    make_sale("900.00", today, agent=other_agent)

    response = agent_client.get("/api/v1/team/leaderboard/")

    assert [entry["agent_name"] for entry in response.data["leaderboard"]] == ["Alex Agent"]


@pytest.mark.django_db
def test_top_agents_is_manager_only(agent_client, manager_client, make_sale):
    make_sale("100.00", timezone.localdate())

    assert agent_client.get("/api/v1/team/top-agents/").status_code == 403
    response = manager_client.get("/api/v1/team/top-agents/")
    assert response.data["agents"][0]["sale_count"] == 1


@pytest.mark.django_db
def test_stats_for_agent_are_personal(agent_client, make_sale, client_record):
    make_sale("100.00", timezone.localdate())
    response = agent_client.get("/api/v1/team/stats/")
    stats = response.data["stats"]
    assert stats["total_members"] == 1
    assert stats["total_sales"] == 1
    assert stats["total_clients"] == 1


@pytest.mark.django_db
def test_future_dated_sales_are_not_counted_for_the_period(manager_client, make_sale):
    today = timezone.localdate()
    make_sale("100.00", today)
    make_sale("5000.00", today + timedelta(days=1))

    board = manager_client.get("/api/v1/team/leaderboard/", {"period": "year"}).data["leaderboard"]
    stats = manager_client.get("/api/v1/team/stats/").data["stats"]

    alex = next(entry for entry in board if entry["agent_name"] == "Alex Agent")
    assert alex["sale_count"] == 1
    assert Decimal(str(alex["revenue"])) == Decimal("100.00")
    assert stats["sales_this_month"] == 1
    assert Decimal(str(stats["revenue_this_month"])) == Decimal("100.00")

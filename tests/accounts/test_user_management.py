import pytest

from accounts.models import User

USERS_URL = "/api/v1/users/"


@pytest.mark.django_db
def test_agent_cannot_manage_users(agent_client):
    response = agent_client.get(USERS_URL)
    assert response.status_code == 403
    assert response.data["code"] == "INSUFFICIENT_PERMISSIONS"


@pytest.mark.django_db
def test_manager_creates_agent(manager_client, manager_user):
    response = manager_client.post(
        USERS_URL,
        {
            "email": "new.agent@test.com",
            "password": "Str0ng-Passw0rd!",
            "firstName": "Nina",
            "lastName": "New",
            "role": "agent",
        },
        format="json",
    )

    assert response.status_code == 201
    created = User.objects.get(email="new.agent@test.com")
    assert created.created_by_id == manager_user.pk
    assert created.check_password("Str0ng-Passw0rd!")
    assert "password" not in response.data["user"]


@pytest.mark.django_db
def test_sole_manager_cannot_delete_self(manager_client, manager_user):
    response = manager_client.delete(f"{USERS_URL}{manager_user.pk}/")

    assert response.status_code == 400
    assert response.data["code"] == "LAST_MANAGER"
    manager_user.refresh_from_db()
    assert manager_user.deleted_at is None


@pytest.mark.django_db
def test_manager_cannot_delete_self_when_others_exist(manager_client, manager_user):
    User.objects.create_user(
        email="second.manager@test.com", password="testpass123", role=User.Role.MANAGER
    )
    response = manager_client.delete(f"{USERS_URL}{manager_user.pk}/")
    assert response.status_code == 400
    assert response.data["code"] == "CANNOT_DELETE_SELF"


@pytest.mark.django_db
def test_sole_manager_cannot_be_demoted(manager_client, manager_user):
    response = manager_client.patch(f"{USERS_URL}{manager_user.pk}/", {"role": "agent"}, format="json")
    assert response.status_code == 400
    assert response.data["code"] == "LAST_MANAGER"


@pytest.mark.django_db
def test_soft_delete_then_reactivate(manager_client, agent_user):
    response = manager_client.delete(f"{USERS_URL}{agent_user.pk}/")
    assert response.status_code == 200

    agent_user.refresh_from_db()
    assert agent_user.deleted_at is not None
    assert agent_user.is_active is False
    assert User.objects.filter(pk=agent_user.pk).exists()

    listing = manager_client.get(USERS_URL)
    assert str(agent_user.pk) not in {row["id"] for row in listing.data["results"]}

    response = manager_client.post(f"{USERS_URL}{agent_user.pk}/reactivate/")
    assert response.status_code == 200
    agent_user.refresh_from_db()
    assert agent_user.deleted_at is None
    assert agent_user.is_active is True


@pytest.mark.django_db
def test_reactivate_active_user_is_rejected(manager_client, agent_user):
    response = manager_client.post(f"{USERS_URL}{agent_user.pk}/reactivate/")
    assert response.status_code == 400
    assert response.data["code"] == "USER_NOT_DELETED"


@pytest.mark.django_db
def test_unknown_user_is_user_not_found(manager_client):
    response = manager_client.get(f"{USERS_URL}00000000-0000-0000-0000-000000000000/")
    assert response.status_code == 404
    assert response.data["code"] == "USER_NOT_FOUND"


@pytest.mark.django_db
def test_agents_listing_is_open_to_agents(agent_client, agent_user, other_agent, manager_user):
    response = agent_client.get(f"{USERS_URL}agents/")
    assert response.status_code == 200
    emails = {row["email"] for row in response.data["agents"]}
    assert emails == {"agent@test.com", "other.agent@test.com"}

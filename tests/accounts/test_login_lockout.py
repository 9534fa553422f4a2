import pytest
from django.db import connections

from accounts.models import User

LOGIN_URL = "/api/v1/auth/login/"


@pytest.mark.django_db
def test_login_returns_tokens_and_sets_cookies(api_client, agent_user):
    response = api_client.post(
        LOGIN_URL, {"email": "agent@test.com", "password": "testpass123"}, format="json"
    )

    assert response.status_code == 200
    assert response.data["access_token"]
    assert response.data["refresh_token"]
    assert response.data["user"]["email"] == "agent@test.com"
    assert "access_token" in response.cookies
    assert response.cookies["access_token"]["httponly"]


@pytest.mark.django_db
def test_unknown_email_is_invalid_credentials(api_client):
    response = api_client.post(
        LOGIN_URL, {"email": "nobody@test.com", "password": "whatever123"}, format="json"
    )
    assert response.status_code == 401
    assert response.data["code"] == "INVALID_CREDENTIALS"


@pytest.mark.django_db
def test_lockout_after_five_failures_blocks_correct_password(api_client, agent_user):
    for _ in range(5):
        response = api_client.post(
            LOGIN_URL, {"email": "agent@test.com", "password": "wrong-password"}, format="json"
        )
        assert response.status_code == 401
        assert response.data["code"] == "INVALID_CREDENTIALS"

    agent_user.refresh_from_db()
    assert agent_user.failed_login_attempts == 5
    assert agent_user.account_locked_until is not None

    response = api_client.post(
        LOGIN_URL, {"email": "agent@test.com", "password": "testpass123"}, format="json"
    )
    assert response.status_code == 423
    assert response.data["code"] == "ACCOUNT_LOCKED"


@pytest.fixture
def atomic_requests(monkeypatch):
    """Wrap every view in a transaction, as the production settings do."""
    monkeypatch.setitem(connections.settings["default"], "ATOMIC_REQUESTS", True)
    monkeypatch.setitem(connections["default"].settings_dict, "ATOMIC_REQUESTS", True)


@pytest.mark.django_db(transaction=True)
def test_failed_attempts_persist_when_requests_are_atomic(api_client, agent_user, atomic_requests):
    for _ in range(5):
        response = api_client.post(
            LOGIN_URL, {"email": "agent@test.com", "password": "wrong-password"}, format="json"
        )
        assert response.status_code == 401

    agent_user.refresh_from_db()
    assert agent_user.failed_login_attempts == 5

    response = api_client.post(
        LOGIN_URL, {"email": "agent@test.com", "password": "testpass123"}, format="json"
    )
    assert response.status_code == 423
    assert response.data["code"] == "ACCOUNT_LOCKED"


@pytest.mark.django_db
def test_successful_login_resets_failure_counter(api_client, agent_user):
    api_client.post(LOGIN_URL, {"email": "agent@test.com", "password": "nope-nope"}, format="json")
    api_client.post(LOGIN_URL, {"email": "agent@test.com", "password": "testpass123"}, format="json")

    agent_user.refresh_from_db()
    assert agent_user.failed_login_attempts == 0
    assert agent_user.last_login is not None


@pytest.mark.django_db
def test_deactivated_account_cannot_log_in(api_client, agent_user):
    User.objects.filter(pk=agent_user.pk).update(is_active=False)

    response = api_client.post(
        LOGIN_URL, {"email": "agent@test.com", "password": "testpass123"}, format="json"
    )
    assert response.status_code == 401
    assert response.data["code"] == "ACCOUNT_DEACTIVATED"


@pytest.mark.django_db
def test_manager_unlock_clears_lock(manager_client, agent_user, api_client):
    for _ in range(5):
        api_client.post(LOGIN_URL, {"email": "agent@test.com", "password": "bad-bad-bad"}, format="json")

    response = manager_client.post(f"/api/v1/users/{agent_user.pk}/unlock/")
    assert response.status_code == 200
    assert response.data["user"]["is_locked"] is False

    response = api_client.post(
        LOGIN_URL, {"email": "agent@test.com", "password": "testpass123"}, format="json"
    )
    assert response.status_code == 200


@pytest.mark.django_db
def test_me_requires_authentication(api_client):
    response = api_client.get("/api/v1/auth/me/")
    assert response.status_code == 401
    assert response.data["code"] == "AUTH_REQUIRED"


@pytest.mark.django_db
def test_change_password_rejects_wrong_current(agent_client):
    response = agent_client.post(
        "/api/v1/auth/change-password/",
        {"currentPassword": "not-it", "newPassword": "An0ther-Secret!"},
        format="json",
    )
    assert response.status_code == 400
    assert response.data["code"] == "INVALID_PASSWORD"

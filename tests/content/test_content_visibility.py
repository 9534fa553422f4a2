import pytest

from content.models import Content, ContentCategory

CONTENT_URL = "/api/v1/content/content/"


@pytest.fixture
def library(agent_user, manager_user, other_agent):
    return {
        "agent_private": Content.objects.create(title="My notes", author=agent_user, is_public=False),
        "agent_public": Content.objects.create(title="Shared FAQ", author=agent_user, is_public=True),
        "other_private": Content.objects.create(title="Other draft", author=other_agent, is_public=False),
        "manager_public": Content.objects.create(
            title="Policy update", author=manager_user, is_public=True,
            content_type=Content.ContentType.POLICY_UPDATE,
        ),
    }


def _titles(response):
    return {row["title"] for row in response.data["content"]}


@pytest.mark.django_db
def test_agent_sees_public_and_own(agent_client, library):
    response = agent_client.get(CONTENT_URL)
    assert response.status_code == 200
    assert _titles(response) == {"My notes", "Shared FAQ", "Policy update"}
    assert response.data["pagination"]["total"] == 3


@pytest.mark.django_db
def test_manager_never_sees_others_private_content(manager_client, library):
    response = manager_client.get(CONTENT_URL)
    assert _titles(response) == {"Shared FAQ", "Policy update"}


@pytest.mark.django_db
def test_private_item_detail_is_not_found_for_others(manager_client, library):
    response = manager_client.get(f"{CONTENT_URL}{library['other_private'].pk}/")
    assert response.status_code == 404
    assert response.data["code"] == "CONTENT_NOT_FOUND"


@pytest.mark.django_db
def test_type_and_visibility_filters(agent_client, library):
    by_type = agent_client.get(CONTENT_URL, {"type": "policy_update"})
    private_only = agent_client.get(CONTENT_URL, {"visibility": "private"})

    assert _titles(by_type) == {"Policy update"}
    assert _titles(private_only) == {"My notes"}


@pytest.mark.django_db
def test_search_matches_title_and_body(agent_client, agent_user):
    Content.objects.create(title="Underwriting", body="Medical exam thresholds", author=agent_user)
    Content.objects.create(title="Other", author=agent_user)

    response = agent_client.get(CONTENT_URL, {"search": "exam"})

    assert _titles(response) == {"Underwriting"}


@pytest.mark.django_db
def test_retrieve_counts_views(agent_client, library):
    item = library["manager_public"]
    agent_client.get(f"{CONTENT_URL}{item.pk}/")
    response = agent_client.get(f"{CONTENT_URL}{item.pk}/")

    assert response.data["content"]["view_count"] == 2


@pytest.mark.django_db
def test_download_counts_downloads(agent_client, agent_user):
    item = Content.objects.create(
        title="Brochure", author=agent_user, is_public=True,
        content_url="https://files.example.com/brochure.pdf",
    )
    response = agent_client.get(f"{CONTENT_URL}{item.pk}/download/")

    assert response.status_code == 200
    assert response.data == {"content_url": "https://files.example.com/brochure.pdf", "download_count": 1}


@pytest.mark.django_db
def test_create_generates_unique_slug(agent_client, agent_user):
    first = agent_client.post(CONTENT_URL, {"title": "Renewal checklist"}, format="json")
    second = agent_client.post(CONTENT_URL, {"title": "Renewal checklist"}, format="json")

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.data["slug"] != second.data["slug"]
    assert Content.objects.filter(author=agent_user).count() == 2


@pytest.mark.django_db
def test_agent_cannot_edit_another_authors_public_item(agent_client, library):
    item = library["manager_public"]
    response = agent_client.patch(f"{CONTENT_URL}{item.pk}/", {"title": "Hijacked"}, format="json")
    assert response.status_code == 403
    assert response.data["code"] == "ACCESS_DENIED"


@pytest.mark.django_db
def test_only_managers_write_categories(agent_client, manager_client):
    denied = agent_client.post("/api/v1/content/categories/", {"name": "Claims"}, format="json")
    created = manager_client.post("/api/v1/content/categories/", {"name": "Claims"}, format="json")
    listed = agent_client.get("/api/v1/content/categories/")

    assert denied.status_code == 403
    assert created.status_code == 201
    assert [row["name"] for row in listed.data] == ["Claims"]
    assert ContentCategory.objects.count() == 1

from datetime import date
from decimal import Decimal

import pytest

from clients.models import Client
from sales.models import Sale
from sales.services import compute_commission

SALES_URL = "/api/v1/sales/"


def test_compute_commission_rounds_half_up():
    assert compute_commission(Decimal("1234.50"), Decimal("7.5")) == Decimal("92.59")
    assert compute_commission(None, Decimal("10")) == Decimal("0.00")


@pytest.mark.django_db
def test_create_sale_derives_commission(agent_client, agent_user, client_record, product):
    response = agent_client.post(
        SALES_URL,
        {
            "clientId": client_record.pk,
            "productId": product.pk,
            "premiumAmount": "1200.00",
            "commissionRate": "10",
            "saleDate": "2024-01-15",
        },
        format="json",
    )

    assert response.status_code == 201
    sale = Sale.objects.get()
    assert sale.agent == agent_user
    assert sale.status == Sale.Status.ACTIVE
    assert sale.product_name == "Term Life 20"
    assert sale.commission_amount == Decimal("120.00")
    assert response.data["sale"]["id"] == sale.pk


@pytest.mark.django_db
def test_create_sale_unknown_client(agent_client, product):
    response = agent_client.post(
        SALES_URL,
        {"clientId": 999999, "productId": product.pk, "premiumAmount": "100.00"},
        format="json",
    )
    assert response.status_code == 404
    assert response.data["code"] == "CLIENT_NOT_FOUND"


@pytest.mark.django_db
def test_create_sale_unknown_product(agent_client, client_record):
    response = agent_client.post(
        SALES_URL,
        {"clientId": client_record.pk, "productId": 999999, "premiumAmount": "100.00"},
        format="json",
    )
    assert response.status_code == 404
    assert response.data["code"] == "PRODUCT_NOT_FOUND"


@pytest.mark.django_db
def test_agent_cannot_sell_to_another_agents_client(agent_client, other_agent, product):
    foreign = Client.objects.create(agent=other_agent, first_name="Fay", last_name="Foreign")

    response = agent_client.post(
        SALES_URL,
        {"clientId": foreign.pk, "productId": product.pk, "premiumAmount": "100.00"},
        format="json",
    )

    assert response.status_code == 403
    assert response.data["code"] == "ACCESS_DENIED"
    assert not Sale.objects.exists()


@pytest.mark.django_db
def test_negative_premium_is_rejected(agent_client, client_record, product):
    response = agent_client.post(
        SALES_URL,
        {"clientId": client_record.pk, "productId": product.pk, "premiumAmount": "-5.00"},
        format="json",
    )
    assert response.status_code == 400
    assert response.data["code"] == "VALIDATION_ERROR"
    assert "premium_amount" in response.data["details"]


@pytest.mark.django_db
def test_agent_lists_only_own_sales(agent_client, other_agent, make_sale):
    mine = make_sale("100.00", date(2024, 1, 3))
    make_sale("900.00", date(2024, 1, 3), agent=other_agent)

    response = agent_client.get(SALES_URL)

    assert response.status_code == 200
    assert [row["id"] for row in response.data["results"]] == [mine.pk]


@pytest.mark.django_db
def test_manager_filters_sales_by_agent_and_dates(manager_client, other_agent, make_sale):
    make_sale("100.00", date(2024, 1, 3))
    wanted = make_sale("900.00", date(2024, 2, 3), agent=other_agent)
    make_sale("50.00", date(2024, 3, 3), agent=other_agent)

    response = manager_client.get(
        SALES_URL,
        {"agentId": str(other_agent.pk), "startDate": "2024-02-01", "endDate": "2024-02-29"},
    )

    assert [row["id"] for row in response.data["results"]] == [wanted.pk]


@pytest.mark.django_db
def test_update_recomputes_commission(agent_client, make_sale):
    sale = make_sale("1000.00", date(2024, 1, 3))

    response = agent_client.patch(
        f"{SALES_URL}{sale.pk}/", {"premiumAmount": "2000.00", "commissionRate": "5"}, format="json"
    )

    assert response.status_code == 200
    sale.refresh_from_db()
    assert sale.commission_amount == Decimal("100.00")


@pytest.mark.django_db
def test_other_agent_cannot_touch_sale(make_sale, other_agent):
    from rest_framework.test import APIClient

    sale = make_sale("1000.00", date(2024, 1, 3))
    client = APIClient()
    client.force_authenticate(user=other_agent)

    response = client.delete(f"{SALES_URL}{sale.pk}/")

    assert response.status_code == 403
    assert response.data["code"] == "ACCESS_DENIED"
    assert Sale.objects.filter(pk=sale.pk).exists()


@pytest.mark.django_db
def test_missing_sale_is_sale_not_found(agent_client):
    response = agent_client.get(f"{SALES_URL}424242/")
    assert response.status_code == 404
    assert response.data["code"] == "SALE_NOT_FOUND"

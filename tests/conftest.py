from datetime import date
from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from accounts.models import User
from clients.models import Client
from products.models import Product
from sales.models import Sale


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def manager_user(db):
    return User.objects.create_user(
        email="manager@test.com",
        password="testpass123",
        first_name="Mona",
        last_name="Manager",
        role=User.Role.MANAGER,
    )


@pytest.fixture
def agent_user(db):
    return User.objects.create_user(
        email="agent@test.com",
        password="testpass123",
        first_name="Alex",
        last_name="Agent",
        role=User.Role.AGENT,
    )


@pytest.fixture
def other_agent(db):
    return User.objects.create_user(
        email="other.agent@test.com",
        password="testpass123",
        first_name="Olive",
        last_name="Other",
        role=User.Role.AGENT,
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def manager_client(manager_user):
    client = APIClient()
    client.force_authenticate(user=manager_user)
    return client


@pytest.fixture
def agent_client(agent_user):
    client = APIClient()
    client.force_authenticate(user=agent_user)
    return client


@pytest.fixture
def product(db):
    return Product.objects.create(name="Term Life 20", category="life")


@pytest.fixture
def client_record(agent_user):
    return Client.objects.create(
        agent=agent_user,
        first_name="Carla",
        last_name="Client",
        email="carla@example.com",
        status=Client.Status.CLIENT,
    )


@pytest.fixture
def make_sale(agent_user, client_record, product):
    """Factory: ``make_sale(premium, sale_date, status=..., agent=...)``."""

    def _make(premium, sale_date, *, status=Sale.Status.ACTIVE, agent=None, commission="0.00", client=None):
        return Sale.objects.create(
            agent=agent or agent_user,
            client=client or client_record,
            product=product,
            product_name=product.name,
            premium_amount=Decimal(premium),
            commission_amount=Decimal(commission),
            sale_date=sale_date,
            status=status,
        )

    return _make


@pytest.fixture
def january():
    return date(2024, 1, 1), date(2024, 1, 31)

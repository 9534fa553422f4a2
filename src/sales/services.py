"""Business-logic / service functions for the sales app."""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction

from accounts.capabilities import CREATE, can, has_any_scope
from clients.models import Client
from core.exceptions import AccessDenied, ResourceNotFound
from products.models import Product
from sales.models import Sale

logger = logging.getLogger("bulwark")

CENT = Decimal("0.01")


def compute_commission(premium_amount, commission_rate) -> Decimal:
    """Commission for a premium at a percentage rate, rounded to the cent."""
    premium = Decimal(premium_amount or 0)
    rate = Decimal(commission_rate or 0)
    return (premium * rate / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)


def _resolve_client(client_id, acting_user) -> Client:
    client = Client.objects.filter(pk=client_id).first()
    if client is None:
        raise ResourceNotFound("Client not found.", code="CLIENT_NOT_FOUND")
    if not can(acting_user, CREATE, "sales", owner_id=client.agent_id):
        raise AccessDenied("You can only record sales for your own clients.")
    return client


def _resolve_product(product_id) -> Product:
    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        raise ResourceNotFound("Product not found.", code="PRODUCT_NOT_FOUND")
    return product


def _resolve_agent(agent_id, acting_user):
    """Managers may record a sale on behalf of another agent."""
    if agent_id is None or str(agent_id) == str(acting_user.pk):
        return acting_user
    if not has_any_scope(acting_user, CREATE, "sales"):
        raise AccessDenied("Only managers can record sales for another agent.")
    from accounts.models import User

    agent = User.objects.active().filter(pk=agent_id).first()
    if agent is None:
        raise ResourceNotFound("Agent not found.", code="USER_NOT_FOUND")
    return agent


# ---------------------------------------------------------------------------
# create / update
# ---------------------------------------------------------------------------

@transaction.atomic
def create_sale(*, acting_user, data: dict) -> Sale:
    """Record a new sale.

    ``data`` is the validated snake_case payload. Status always starts as
    active; ``product_name`` defaults to the product's name and the
    commission is derived from the rate when no amount is given.
    """
    client = _resolve_client(data["client_id"], acting_user)
    product = _resolve_product(data["product_id"])
    agent = _resolve_agent(data.get("agent_id"), acting_user)

    premium = data["premium_amount"]
    rate = data.get("commission_rate") or Decimal("0.00")
    commission = data.get("commission_amount")
    if commission is None:
        commission = compute_commission(premium, rate)

    fields = {
        "agent": agent,
        "client": client,
        "product": product,
        "product_name": data.get("product_name") or product.name,
        "policy_number": data.get("policy_number", ""),
        "premium_amount": premium,
        "commission_rate": rate,
        "commission_amount": commission,
        "status": Sale.Status.ACTIVE,
        "notes": data.get("notes", ""),
    }
    if data.get("sale_date"):
        fields["sale_date"] = data["sale_date"]
    sale = Sale.objects.create(**fields)

    logger.info(
        "Sale %s recorded for agent %s (premium=%s)",
        sale.pk, agent.pk, sale.premium_amount,
    )
    return sale


@transaction.atomic
def update_sale(sale: Sale, *, acting_user, data: dict) -> Sale:
    """Apply a partial update to *sale*."""
    update_fields = []

    if "client_id" in data:
        sale.client = _resolve_client(data["client_id"], acting_user)
        update_fields.append("client")
    if "product_id" in data:
        sale.product = _resolve_product(data["product_id"])
        update_fields.append("product")
        if not data.get("product_name"):
            sale.product_name = sale.product.name
            update_fields.append("product_name")

    for field in (
        "product_name",
        "policy_number",
        "premium_amount",
        "commission_rate",
        "commission_amount",
        "sale_date",
        "status",
        "notes",
    ):
        if field in data:
            setattr(sale, field, data[field])
            update_fields.append(field)

    rate_or_premium_changed = "premium_amount" in data or "commission_rate" in data
    if rate_or_premium_changed and "commission_amount" not in data:
        sale.commission_amount = compute_commission(sale.premium_amount, sale.commission_rate)
        update_fields.append("commission_amount")

    if update_fields:
        update_fields.append("updated_at")
        sale.save(update_fields=sorted(set(update_fields)))
    return sale

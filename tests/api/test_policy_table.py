from types import SimpleNamespace

import pytest

from accounts.capabilities import (
    ANY,
    CREATE,
    DELETE,
    EXPORT,
    MANAGE,
    OWN,
    READ,
    UPDATE,
    can,
    has_any_scope,
    scope_for,
)
from api.v1.permissions import PolicyPermission
from core.exceptions import AccessDenied


def _user(role, pk="u-1", **extra):
    attrs = {"pk": pk, "role": role, "is_authenticated": True, "is_active": True, "deleted_at": None}
    attrs.update(extra)
    return SimpleNamespace(**attrs)


class DummyView:
    def __init__(self, action, *, resource="clients", owner_field="agent_id", kwargs=None):
        self.action = action
        self.policy_resource = resource
        self.policy_owner_field = owner_field
        self.kwargs = kwargs or {}
        self.request = SimpleNamespace(method="GET")


class DummyRequest:
    def __init__(self, user, method="GET"):
        self.user = user
        self.method = method


def test_scope_lookup():
    assert scope_for("manager", READ, "clients") == ANY
    assert scope_for("agent", READ, "clients") == OWN
    assert scope_for("agent", READ, "users") is None
    assert scope_for("agent", MANAGE, "goals") is None
    assert scope_for("manager", MANAGE, "goals") == ANY
    assert scope_for("manager", MANAGE, "products") == ANY
    assert scope_for("agent", MANAGE, "products") is None


def test_ownership_wins_for_own_records():
    agent = _user("agent", pk="a-1")
    assert can(agent, UPDATE, "clients", owner_id="a-1")
    assert not can(agent, UPDATE, "clients", owner_id="someone-else")
    assert can(_user("manager"), DELETE, "clients", owner_id="someone-else")


def test_role_level_questions():
    agent = _user("agent")
    assert can(agent, CREATE, "sales")
    assert can(agent, EXPORT, "clients")
    assert not can(agent, READ, "teams")
    assert not has_any_scope(agent, READ, "sales")
    assert has_any_scope(_user("manager"), READ, "sales")


@pytest.mark.parametrize(
    "user",
    [
        None,
        SimpleNamespace(is_authenticated=False),
        _user("manager", is_active=False),
        _user("manager", deleted_at="2024-01-01"),
        _user("auditor"),
    ],
)
def test_unusable_users_can_do_nothing(user):
    assert not can(user, READ, "products")


def test_policy_table_is_frozen():
    from accounts.capabilities import POLICY

    with pytest.raises(TypeError):
        POLICY[("agent", "users", READ)] = ANY


def test_permission_defers_detail_routes_to_object_check():
    permission = PolicyPermission()
    view = DummyView("retrieve", kwargs={"pk": "7"})
    assert permission.has_permission(DummyRequest(_user("agent")), view)


def test_permission_blocks_role_without_scope():
    permission = PolicyPermission()
    view = DummyView("list", resource="teams", owner_field=None)
    assert not permission.has_permission(DummyRequest(_user("agent")), view)
    assert permission.has_permission(DummyRequest(_user("manager")), view)


def test_object_permission_raises_access_denied_for_foreign_record():
    permission = PolicyPermission()
    view = DummyView("update")
    record = SimpleNamespace(agent_id="someone-else")

    with pytest.raises(AccessDenied):
        permission.has_object_permission(DummyRequest(_user("agent", pk="a-1"), "PUT"), view, record)
    assert permission.has_object_permission(DummyRequest(_user("manager"), "PUT"), view, record)


def test_custom_action_mapping():
    permission = PolicyPermission()
    view = DummyView("sync_all", resource="goals")
    view.policy_actions = {"sync_all": MANAGE}

    assert not permission.has_permission(DummyRequest(_user("agent")), view)
    assert permission.has_permission(DummyRequest(_user("manager")), view)

"""Role policy table.

The table is declared once as ``role -> resource -> action -> scope`` and
frozen into a lookup at import time. ``OWN`` means the role may perform the
action on records it owns; ``ANY`` means on every record.

Ownership always wins: a user may act on a record whose owner is
themselves whatever the table says.
"""

from __future__ import annotations

from types import MappingProxyType

OWN = "own"
ANY = "any"

CREATE = "create"
READ = "read"
UPDATE = "update"
DELETE = "delete"
EXPORT = "export"
MANAGE = "manage"

ACTIONS = (CREATE, READ, UPDATE, DELETE, EXPORT, MANAGE)

RESOURCES = (
    "users",
    "clients",
    "products",
    "sales",
    "goals",
    "reminders",
    "content",
    "reports",
    "teams",
)

_CRUD_ANY = {CREATE: ANY, READ: ANY, UPDATE: ANY, DELETE: ANY}
_CRUD_OWN = {CREATE: OWN, READ: OWN, UPDATE: OWN, DELETE: OWN}

ROLE_POLICY = {
    "manager": {
        "users": dict(_CRUD_ANY),
        "clients": {**_CRUD_ANY, EXPORT: ANY},
        "products": {READ: ANY, MANAGE: ANY},
        "sales": dict(_CRUD_ANY),
        "goals": {**_CRUD_ANY, MANAGE: ANY},
        "reminders": dict(_CRUD_ANY),
        "content": dict(_CRUD_ANY),
        "reports": {READ: ANY, EXPORT: ANY},
        "teams": {**_CRUD_ANY, MANAGE: ANY},
    },
    "agent": {
        "clients": {**_CRUD_OWN, EXPORT: OWN},
        "products": {READ: ANY},
        "sales": dict(_CRUD_OWN),
        "goals": dict(_CRUD_OWN),
        "reminders": dict(_CRUD_OWN),
        # Public content from other authors is readable; visibility
        # filtering narrows it further.
        "content": {**_CRUD_OWN, READ: ANY},
        "reports": {READ: OWN},
    },
}


def _build_policy(table):
    frozen = {}
    for role, resources in table.items():
        for resource, actions in resources.items():
            if resource not in RESOURCES:
                raise ValueError(f"Unknown resource in policy table: {resource}")
            for action, scope in actions.items():
                if action not in ACTIONS or scope not in (OWN, ANY):
                    raise ValueError(f"Invalid policy entry: {role}/{resource}/{action}={scope}")
                frozen[(role, resource, action)] = scope
    return MappingProxyType(frozen)


POLICY = _build_policy(ROLE_POLICY)


def scope_for(role: str, action: str, resource: str) -> str | None:
    return POLICY.get((role, resource, action))


def can(user, action: str, resource: str, owner_id=None) -> bool:
    """Return whether *user* may perform *action* on *resource*.

    Without *owner_id* the question is role-level ("may this role ever do
    this?"). With it, the answer accounts for who owns the record.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    if not getattr(user, "is_active", False) or getattr(user, "deleted_at", None) is not None:
        return False

    if owner_id is not None and str(owner_id) == str(user.pk):
        return True

    scope = scope_for(getattr(user, "role", None), action, resource)
    if owner_id is None:
        return scope is not None
    return scope == ANY


def has_any_scope(user, action: str, resource: str) -> bool:
    """True when the role may act on every record, not only its own."""
    return scope_for(getattr(user, "role", None), action, resource) == ANY

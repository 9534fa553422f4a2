"""DRF permissions backed by the role policy table."""
from rest_framework.permissions import BasePermission

from accounts.capabilities import CREATE, DELETE, READ, UPDATE, can, has_any_scope
from core.exceptions import AccessDenied

DEFAULT_ACTION_MAP = {
    "list": READ,
    "retrieve": READ,
    "create": CREATE,
    "update": UPDATE,
    "partial_update": UPDATE,
    "destroy": DELETE,
}


def policy_action_for(view):
    """Resolve the policy action for the current view action."""
    extra = getattr(view, "policy_actions", {}) or {}
    action = getattr(view, "action", None)
    if action in extra:
        return extra[action]
    if action in DEFAULT_ACTION_MAP:
        return DEFAULT_ACTION_MAP[action]
    return READ if view.request.method in ("GET", "HEAD", "OPTIONS") else UPDATE


class IsManager(BasePermission):
    """Allow only users with the manager role."""

    message = "Manager role required."
    code = "INSUFFICIENT_PERMISSIONS"

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "is_manager", False))


class PolicyPermission(BasePermission):
    """Check ``view.policy_resource`` against the role policy table.

    Views declare:
    - ``policy_resource``: the table resource name
    - ``policy_owner_field``: attribute holding the owner id on objects
      (``None`` disables the ownership rule for the resource)
    - ``policy_actions``: optional ``{view_action: policy_action}`` overrides
    """

    message = "You do not have permission to perform this action."
    code = "INSUFFICIENT_PERMISSIONS"

    def has_permission(self, request, view):
        resource = getattr(view, "policy_resource", None)
        if resource is None:
            return False
        action = policy_action_for(view)

        # Object routes defer to the ownership check below.
        lookup = getattr(view, "lookup_url_kwarg", None) or getattr(view, "lookup_field", "pk")
        if getattr(view, "policy_owner_field", None) and view.kwargs.get(lookup):
            return bool(request.user and request.user.is_authenticated)

        return can(request.user, action, resource)

    def has_object_permission(self, request, view, obj):
        resource = view.policy_resource
        action = policy_action_for(view)
        owner_field = getattr(view, "policy_owner_field", None)
        owner_id = getattr(obj, owner_field, None) if owner_field else None

        if owner_id is None:
            allowed = has_any_scope(request.user, action, resource) if owner_field else can(
                request.user, action, resource
            )
        else:
            allowed = can(request.user, action, resource, owner_id=owner_id)
        if not allowed:
            raise AccessDenied()
        return True

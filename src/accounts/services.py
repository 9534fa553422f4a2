"""Account lifecycle services: login lockout, soft delete, reactivation."""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework import status

from accounts.models import User
from core.exceptions import (
    AccountDeactivated,
    AccountLocked,
    InvalidCredentials,
    ResourceNotFound,
    ServiceError,
)

logger = logging.getLogger("bulwark")


def _max_failed_attempts() -> int:
    return getattr(settings, "LOGIN_MAX_FAILED_ATTEMPTS", 5)


def _lockout_window() -> timedelta:
    return timedelta(minutes=getattr(settings, "LOGIN_LOCKOUT_MINUTES", 15))


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

def authenticate_with_lockout(email: str, password: str) -> User:
    """Check credentials and maintain the failed-login counter.

    Order matters: a locked account is rejected before the password is
    looked at, so even the right password fails until the lock expires.
    """
    email = (email or "").strip()
    user = User.objects.filter(email__iexact=email).first()
    if user is None:
        raise InvalidCredentials()

    now = timezone.now()
    if user.is_locked(now):
        logger.warning("Login refused for locked account %s", user.pk)
        raise AccountLocked()

    if not user.is_active or user.is_deleted:
        raise AccountDeactivated()

    if not user.check_password(password):
        register_failed_login(user, now=now)
        raise InvalidCredentials()

    User.objects.filter(pk=user.pk).update(
        failed_login_attempts=0,
        account_locked_until=None,
        last_login=now,
    )
    user.failed_login_attempts = 0
    user.account_locked_until = None
    user.last_login = now
    return user


def register_failed_login(user: User, *, now=None) -> None:
    """Increment the failure counter; lock the account at the threshold."""
    now = now or timezone.now()
    with transaction.atomic():
        User.objects.filter(pk=user.pk).update(
            failed_login_attempts=F("failed_login_attempts") + 1,
        )
        user.refresh_from_db(fields=["failed_login_attempts"])
        if user.failed_login_attempts >= _max_failed_attempts():
            user.account_locked_until = now + _lockout_window()
            user.save(update_fields=["account_locked_until"])
            logger.warning(
                "Account %s locked until %s after %d failed logins",
                user.pk,
                user.account_locked_until.isoformat(),
                user.failed_login_attempts,
            )


def unlock_account(user: User) -> User:
    user.failed_login_attempts = 0
    user.account_locked_until = None
    user.save(update_fields=["failed_login_attempts", "account_locked_until", "updated_at"])
    return user


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def ensure_not_last_manager(user: User, message: str = "Cannot remove the last active manager.") -> None:
    """Raise ``LAST_MANAGER`` when *user* is the only active manager left.

    Must run inside a transaction: the other managers are row-locked.
    """
    if not (user.is_manager and user.is_active and not user.is_deleted):
        return
    other_managers = (
        User.objects.active()
        .managers()
        .exclude(pk=user.pk)
        .select_for_update()
    )
    if not other_managers.exists():
        raise ServiceError(message, code="LAST_MANAGER")


def soft_delete_user(user: User, *, acting_user: User) -> User:
    """Deactivate *user* and stamp ``deleted_at``.

    The last active manager can never be removed.
    """
    if user.is_deleted:
        raise ResourceNotFound("User not found.", code="USER_NOT_FOUND")
    with transaction.atomic():
        ensure_not_last_manager(user, "Cannot delete the last active manager.")
        if user.pk == acting_user.pk:
            raise ServiceError("You cannot delete your own account.", code="CANNOT_DELETE_SELF")

        user.is_active = False
        user.deleted_at = timezone.now()
        user.save(update_fields=["is_active", "deleted_at", "updated_at"])

    logger.info("User %s soft-deleted by %s", user.pk, acting_user.pk)
    return user


def reactivate_user(user: User) -> User:
    if not user.is_deleted:
        raise ServiceError(
            "User is not deleted.",
            code="USER_NOT_DELETED",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    user.deleted_at = None
    user.is_active = True
    user.failed_login_attempts = 0
    user.account_locked_until = None
    user.save(
        update_fields=[
            "deleted_at",
            "is_active",
            "failed_login_attempts",
            "account_locked_until",
            "updated_at",
        ]
    )
    logger.info("User %s reactivated", user.pk)
    return user


def reset_password(user: User, new_password: str) -> User:
    """Manager-initiated password reset; also clears any lockout."""
    user.set_password(new_password)
    user.failed_login_attempts = 0
    user.account_locked_until = None
    user.save(update_fields=["password", "failed_login_attempts", "account_locked_until", "updated_at"])
    logger.info("Password reset for user %s", user.pk)
    return user

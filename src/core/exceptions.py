"""API error taxonomy and the DRF exception handler.

Every failure leaves the API as ``{"error": <message>, "code": <CODE>}``;
validation failures add ``details``. Codes are stable and meant for clients
to branch on, messages are for humans.
"""
import logging

from django.conf import settings
from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response

logger = logging.getLogger("bulwark")


class ServiceError(exceptions.APIException):
    """Domain failure with a stable machine-readable code."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed."
    default_code = "VALIDATION_ERROR"

    def __init__(self, detail=None, code=None, status_code=None):
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail=detail, code=code)


class InvalidCredentials(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid email or password."
    default_code = "INVALID_CREDENTIALS"


class AccountLocked(ServiceError):
    status_code = status.HTTP_423_LOCKED
    default_detail = "Account is temporarily locked after repeated failed logins."
    default_code = "ACCOUNT_LOCKED"


class AccountDeactivated(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Account has been deactivated."
    default_code = "ACCOUNT_DEACTIVATED"


class AccessDenied(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied."
    default_code = "ACCESS_DENIED"


class ResourceNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found."
    default_code = "NOT_FOUND"


# DRF / simplejwt default codes -> public codes.
FRAMEWORK_CODE_MAP = {
    "invalid": "VALIDATION_ERROR",
    "parse_error": "VALIDATION_ERROR",
    "not_authenticated": "AUTH_REQUIRED",
    "authentication_failed": "TOKEN_INVALID",
    "token_not_valid": "TOKEN_INVALID",
    "bad_authorization_header": "TOKEN_INVALID",
    "no_active_account": "INVALID_CREDENTIALS",
    "user_not_found": "USER_NOT_FOUND",
    "user_inactive": "USER_DEACTIVATED",
    "permission_denied": "INSUFFICIENT_PERMISSIONS",
    "not_found": "NOT_FOUND",
    "method_not_allowed": "METHOD_NOT_ALLOWED",
    "not_acceptable": "NOT_ACCEPTABLE",
    "unsupported_media_type": "UNSUPPORTED_MEDIA_TYPE",
    "throttled": "RATE_LIMITED",
}


def _resolve_code(exc, view) -> str:
    if isinstance(exc, (Http404, exceptions.NotFound)) and not isinstance(exc, ServiceError):
        return getattr(view, "not_found_code", "NOT_FOUND")
    if isinstance(exc, exceptions.ValidationError):
        return "VALIDATION_ERROR"

    codes = exc.get_codes() if isinstance(exc, exceptions.APIException) else None
    if isinstance(codes, dict):
        # simplejwt wraps its errors as {"detail": ..., "code": ...}
        codes = codes.get("code") or codes.get("detail")
    if isinstance(codes, list):
        codes = codes[0] if codes else None
    if not isinstance(codes, str):
        return "INTERNAL_ERROR"
    return FRAMEWORK_CODE_MAP.get(codes, codes)


def _resolve_message(exc, data) -> str:
    if isinstance(exc, exceptions.ValidationError):
        return "Validation failed"
    if isinstance(data, dict) and "detail" in data:
        return str(data["detail"])
    if isinstance(exc, Http404):
        return "Not found."
    return str(getattr(exc, "detail", exc))


def api_exception_handler(exc, context):
    """Render any exception raised inside a DRF view with a stable code."""
    # rest_framework.views loads the authentication classes, which import this module.
    from rest_framework.views import exception_handler as drf_exception_handler
    from rest_framework.views import set_rollback

    view = context.get("view")
    response = drf_exception_handler(exc, context)

    if response is None:
        code = "DB_ERROR" if isinstance(exc, DatabaseError) else "INTERNAL_ERROR"
        logger.exception(
            "Unhandled API error in %s: %s",
            view.__class__.__name__ if view is not None else "?",
            exc,
        )
        set_rollback()
        payload = {"error": "Internal server error", "code": code}
        if getattr(settings, "API_EXPOSE_ERROR_DETAILS", False):
            payload["details"] = str(exc)
        return Response(payload, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    payload = {
        "error": _resolve_message(exc, response.data),
        "code": _resolve_code(exc, view),
    }
    if isinstance(exc, exceptions.ValidationError):
        payload["details"] = response.data
    response.data = payload
    return response

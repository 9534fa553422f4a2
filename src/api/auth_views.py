"""Authentication API views with HttpOnly JWT cookies."""

import logging
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.middleware import csrf
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import ensure_csrf_cookie
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from api.v1.serializers import LoginSerializer, MeSerializer

logger = logging.getLogger("bulwark")


class SafeScopedRateThrottle(ScopedRateThrottle):
    """Scoped throttle that falls back to a strict default if scope config is missing."""

    def get_rate(self):
        try:
            return super().get_rate()
        except ImproperlyConfigured:
            logger.warning("Throttle scope '%s' not configured, applying strict default 5/min.", self.scope)
            return "5/min"


def _cookie_names():
    return (
        getattr(settings, "JWT_AUTH_COOKIE", "access_token"),
        getattr(settings, "JWT_AUTH_REFRESH_COOKIE", "refresh_token"),
    )


def _cookie_options():
    return {
        "path": getattr(settings, "JWT_AUTH_COOKIE_PATH", "/"),
        "domain": getattr(settings, "JWT_AUTH_COOKIE_DOMAIN", None),
    }


def _max_age(delta: timedelta) -> int:
    return int(delta.total_seconds())


def _set_auth_cookies(response: Response, *, access: str, refresh: str | None) -> None:
    access_cookie, refresh_cookie = _cookie_names()
    options = {
        **_cookie_options(),
        "httponly": True,
        "secure": getattr(settings, "JWT_AUTH_COOKIE_SECURE", not settings.DEBUG),
        "samesite": getattr(settings, "JWT_AUTH_COOKIE_SAMESITE", "Lax"),
    }
    response.set_cookie(
        access_cookie,
        access,
        max_age=_max_age(settings.SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"]),
        **options,
    )
    if refresh:
        response.set_cookie(
            refresh_cookie,
            refresh,
            max_age=_max_age(settings.SIMPLE_JWT["REFRESH_TOKEN_LIFETIME"]),
            **options,
        )


def _clear_auth_cookies(response: Response) -> None:
    for name in _cookie_names():
        response.delete_cookie(name, **_cookie_options())


class LoginAPIView(APIView):
    """Email/password login.

    Returns ``{access_token, refresh_token, user}`` and sets HttpOnly
    cookies. Failed attempts count toward the account lockout, so this
    view must not run inside a request transaction.
    """

    authentication_classes = []
    permission_classes = [permissions.AllowAny]
    throttle_classes = [SafeScopedRateThrottle]
    throttle_scope = "auth_burst"

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        validated = serializer.validated_data
        user = validated["user"]

        logger.info("User %s logged in", user.pk)
        response = Response(
            {
                "message": "Login successful",
                "access_token": validated["access_token"],
                "refresh_token": validated["refresh_token"],
                "user": MeSerializer(user).data,
            },
            status=status.HTTP_200_OK,
        )
        _set_auth_cookies(response, access=validated["access_token"], refresh=validated["refresh_token"])
        return response


class CookieTokenRefreshView(TokenRefreshView):
    """Refresh the access token from the body or the HttpOnly refresh cookie."""

    authentication_classes = []
    throttle_classes = [SafeScopedRateThrottle]
    throttle_scope = "auth_sustained"
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        _, refresh_cookie = _cookie_names()
        payload = {"refresh": request.data.get("refresh") or request.data.get("refresh_token")}
        if not payload["refresh"]:
            payload["refresh"] = request.COOKIES.get(refresh_cookie)

        serializer = self.get_serializer(data=payload)
        serializer.is_valid(raise_exception=True)
        access = serializer.validated_data["access"]
        refresh = serializer.validated_data.get("refresh", payload["refresh"])

        response = Response(
            {"access_token": access, "refresh_token": refresh},
            status=status.HTTP_200_OK,
        )
        _set_auth_cookies(response, access=access, refresh=refresh)
        return response


class LogoutAPIView(APIView):
    """Blacklist the refresh token (if any) and clear auth cookies."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        _, refresh_cookie = _cookie_names()
        raw = request.data.get("refresh") or request.data.get("refresh_token") or request.COOKIES.get(refresh_cookie)
        if raw:
            try:
                RefreshToken(raw).blacklist()
            except TokenError as exc:
                logger.info("Logout with unusable refresh token: %s", exc)
        response = Response({"message": "Logout successful"}, status=status.HTTP_200_OK)
        _clear_auth_cookies(response)
        return response


@method_decorator(ensure_csrf_cookie, name="dispatch")
class CSRFTokenAPIView(APIView):
    """Return a CSRF token and ensure CSRF cookie is set."""

    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response({"csrf_token": csrf.get_token(request)}, status=status.HTTP_200_OK)

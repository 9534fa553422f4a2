"""Custom authentication backends for API."""

from django.conf import settings
from django.middleware.csrf import CsrfViewMiddleware
from rest_framework import exceptions
from rest_framework.request import Request
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

from core.exceptions import AccountLocked


class CookieJWTAuthentication(JWTAuthentication):
    """JWT auth that supports ``Authorization`` header and HttpOnly cookies.

    - Header token is checked first and raises on an invalid token.
    - Cookie token is a fallback; CSRF is enforced on that path.
    - Locked accounts are refused on every request, not only at login.

    An expired/invalid cookie yields ``None`` (unauthenticated) so that
    ``AllowAny`` endpoints like refresh keep working with a stale cookie.
    """

    def _enforce_csrf(self, request: Request) -> None:
        django_request = request._request
        csrf_check = CsrfViewMiddleware(lambda req: None)
        csrf_check.process_request(django_request)
        reason = csrf_check.process_view(django_request, None, (), {})
        if reason:
            raise exceptions.PermissionDenied(f"CSRF Failed: {reason}")

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if getattr(user, "deleted_at", None) is not None:
            raise exceptions.AuthenticationFailed("User is inactive", code="user_inactive")
        if user.is_locked():
            raise AccountLocked()
        return user

    def authenticate(self, request: Request):
        header = self.get_header(request)
        if header is not None:
            raw_token = self.get_raw_token(header)
            if raw_token is not None:
                validated_token = self.get_validated_token(raw_token)
                return self.get_user(validated_token), validated_token

        cookie_name = getattr(settings, "JWT_AUTH_COOKIE", "access_token")
        raw_cookie_token = request.COOKIES.get(cookie_name)
        if not raw_cookie_token:
            return None

        try:
            validated_token = self.get_validated_token(raw_cookie_token)
        except (InvalidToken, TokenError):
            return None

        self._enforce_csrf(request)
        return self.get_user(validated_token), validated_token

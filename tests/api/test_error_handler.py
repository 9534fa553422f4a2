import pytest
from django.db import OperationalError
from django.http import Http404
from rest_framework import exceptions

from core.exceptions import AccountLocked, ServiceError, api_exception_handler


class GoalLikeView:
    not_found_code = "GOAL_NOT_FOUND"


def _handle(exc, view=None):
    return api_exception_handler(exc, {"view": view or GoalLikeView(), "request": None})


def test_service_error_keeps_its_code_and_status():
    response = _handle(ServiceError("Nope.", code="LAST_MANAGER"))
    assert response.status_code == 400
    assert response.data == {"error": "Nope.", "code": "LAST_MANAGER"}


def test_locked_account_is_423():
    response = _handle(AccountLocked())
    assert response.status_code == 423
    assert response.data["code"] == "ACCOUNT_LOCKED"


def test_not_found_uses_view_specific_code():
    response = _handle(Http404())
    assert response.status_code == 404
    assert response.data["code"] == "GOAL_NOT_FOUND"


def test_validation_errors_carry_details():
    response = _handle(exceptions.ValidationError({"title": ["This field is required."]}))
    assert response.status_code == 400
    assert response.data["code"] == "VALIDATION_ERROR"
    assert response.data["details"] == {"title": ["This field is required."]}


def test_framework_codes_are_mapped():
    assert _handle(exceptions.NotAuthenticated()).data["code"] == "AUTH_REQUIRED"
    assert _handle(exceptions.Throttled()).data["code"] == "RATE_LIMITED"


@pytest.mark.django_db
def test_unhandled_database_error_is_db_error(settings):
    settings.API_EXPOSE_ERROR_DETAILS = False
    response = _handle(OperationalError("disk full"))
    assert response.status_code == 500
    assert response.data == {"error": "Internal server error", "code": "DB_ERROR"}


@pytest.mark.django_db
def test_details_exposed_only_when_enabled(settings):
    settings.API_EXPOSE_ERROR_DETAILS = True
    response = _handle(RuntimeError("boom"))
    assert response.data["code"] == "INTERNAL_ERROR"
    assert response.data["details"] == "boom"

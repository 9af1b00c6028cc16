from http import HTTPStatus
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from user_management.data_context import StoreError
from user_management.main import create_app
from user_management.results import InvalidArgumentError
from user_management.services.user_service import UserService


def test_store_failure_returns_500(app, client, monkeypatch):
    """A commit failure inside the service surfaces as a clean 500 page.

    Scenario:
        We monkeypatch `UserService.add_user` to raise StoreError. The
        unhandled-error handler must render a 500 response instead of
        crashing, and our patched method must be called.
    """
    mock = MagicMock(side_effect=StoreError("Database commit failed in test"))
    monkeypatch.setattr(UserService, "add_user", mock)

    payload = {
        "forename": "Should",
        "surname": "Fail",
        "email": "fail@example.com",
        "date_of_birth": "1990-01-01",
    }

    # Starlette re-raises server errors in tests unless told otherwise.
    with TestClient(app, raise_server_exceptions=False) as raw_client:
        response = raw_client.post(
            "/users/add", data=payload, headers={"accept": "application/json"}
        )

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.json()["detail"] == "Internal server error"
    assert mock.called


def test_create_app_builds_independent_apps():
    first = create_app()
    second = create_app()

    assert first is not second
    paths = {route.path for route in first.routes}
    assert {"/", "/users", "/users/add", "/logs", "/logs/{log_id}"} <= paths
    assert InvalidArgumentError in first.exception_handlers

from datetime import datetime, timedelta
from http import HTTPStatus

from user_management import models


def _add_logs(db_session, count):
    base = datetime(2024, 1, 1)
    for i in range(1, count + 1):
        db_session.add(
            models.Log(
                user_id=i,
                owner="Admin",
                action="Edit",
                change=f"change number {i}",
                timestamp=base + timedelta(minutes=i),
            )
        )
    db_session.commit()


def test_logs_first_page_shows_newest(client, db_session):
    _add_logs(db_session, 25)

    response = client.get("/logs", params={"page": 1, "page_size": 10})

    assert response.status_code == HTTPStatus.OK
    assert "change number 25" in response.text
    assert "change number 16" in response.text
    assert "change number 15<" not in response.text
    assert "Page 1 of 3" in response.text


def test_logs_second_page(client, db_session):
    _add_logs(db_session, 25)

    response = client.get("/logs", params={"page": 2, "page_size": 10})

    assert "change number 15<" in response.text
    assert "change number 25" not in response.text
    assert "Page 2 of 3" in response.text


def test_logs_invalid_page_returns_400(client):
    response = client.get("/logs", params={"page": 0})
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "Page must be greater than zero" in response.text


def test_view_log(client, seeded):
    response = client.get("/logs/1")
    assert response.status_code == HTTPStatus.OK
    assert "N/A" in response.text


def test_view_missing_log_returns_404(client):
    response = client.get("/logs/999")
    assert response.status_code == HTTPStatus.NOT_FOUND
    assert "Log entry not found." in response.text


def test_user_logs_only_lists_that_user(client, db_session):
    _add_logs(db_session, 3)

    response = client.get("/logs/user/2")

    assert response.status_code == HTTPStatus.OK
    assert "change number 2<" in response.text
    assert "change number 1<" not in response.text
    assert "change number 3<" not in response.text


def test_action_logs_lists_seeded_adds(client, seeded):
    response = client.get("/logs/action/Add")

    assert response.status_code == HTTPStatus.OK
    assert response.text.count("<td>Add</td>") == 11


def test_blank_action_returns_400(client):
    response = client.get("/logs/action/%20")
    assert response.status_code == HTTPStatus.BAD_REQUEST

"""
HTTP tests for the school edit endpoints.

Authentication and the database session are replaced through FastAPI
dependency overrides; service calls that would reach the database are
patched.
"""

import logging
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from schoolscope.core.auth import get_optional_user
from schoolscope.core.database import get_db
from schoolscope.main import app
from schoolscope.modules.school_edits import admin_router, service
from schoolscope.modules.school_edits.models import EditStatus
from schoolscope.modules.school_edits.service import (
    EditAlreadyProcessedError,
    EditNotFoundError,
    SchoolNotFoundError,
)

EDITS_URL = "/api/v1/admin/schools/edits"
EDIT_ID = "3f1b7c1e-8a53-4c58-9f0e-2d7b7a3c9e11"
SCHOOL_ID = "8d0e4b8c-2f55-4a1e-b1f3-6a2a9c4d7e10"


@pytest.fixture
def client(mock_db):
    async def _get_db():
        yield mock_db

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def as_user():
    def _set(user):
        app.dependency_overrides[get_optional_user] = lambda: user

    return _set


# ============================================
# GET /admin/schools/edits
# ============================================


def test_list_edits_as_admin(client, as_user, admin_user, edit_factory):
    as_user(admin_user)
    edit = edit_factory(id=EDIT_ID)
    items = [
        {
            "edit": edit,
            "user": {"name": "Pat Parent", "email": "parent@example.com"},
            "school": None,
        }
    ]

    with patch.object(service, "list_edits", AsyncMock(return_value=items)) as mock_list:
        response = client.get(EDITS_URL, params={"status": "PENDING"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["edits"][0]["id"] == EDIT_ID
    assert body["edits"][0]["field"] == "phone"
    assert body["edits"][0]["user"]["email"] == "parent@example.com"
    assert body["edits"][0]["school"] is None
    assert mock_list.call_args.kwargs["status"] == "PENDING"


@pytest.mark.parametrize("user_fixture", ["regular_user", None])
def test_list_edits_forbidden_for_non_admins(client, as_user, request, user_fixture):
    as_user(request.getfixturevalue(user_fixture) if user_fixture else None)

    response = client.get(EDITS_URL)

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "ADMIN_ACCESS_REQUIRED"


def test_list_edits_bad_status_filter(client, as_user, admin_user):
    as_user(admin_user)

    response = client.get(EDITS_URL, params={"status": "ARCHIVED"})

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "INVALID_STATUS"


# ============================================
# PUT /admin/schools/edits/{edit_id}
# ============================================


def test_decide_edit_approve(client, as_user, admin_user, edit_factory):
    as_user(admin_user)
    edit = edit_factory(id=EDIT_ID, status=EditStatus.APPROVED, reviewed_by=admin_user.id)

    with patch.object(service, "decide_edit", AsyncMock(return_value=edit)) as mock_decide:
        response = client.put(f"{EDITS_URL}/{EDIT_ID}", json={"status": "APPROVED"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["edit"]["status"] == "APPROVED"
    assert "approved" in body["message"].lower()
    args = mock_decide.call_args.args
    assert str(args[1]) == EDIT_ID
    assert args[2] == "APPROVED"
    assert args[3] is admin_user


def test_decide_edit_logged_once_by_service(client, as_user, admin_user, edit_factory, caplog):
    as_user(admin_user)
    edit = edit_factory(id=EDIT_ID, status=EditStatus.REJECTED, reviewed_by=admin_user.id)

    with (
        caplog.at_level(logging.INFO),
        patch.object(service, "decide_edit", AsyncMock(return_value=edit)),
    ):
        response = client.put(f"{EDITS_URL}/{EDIT_ID}", json={"status": "REJECTED"})

    assert response.status_code == 200
    assert not [r for r in caplog.records if r.name == admin_router.__name__]


def test_decide_edit_forbidden_for_regular_user(client, as_user, regular_user):
    as_user(regular_user)

    with patch.object(service, "decide_edit", AsyncMock()) as mock_decide:
        response = client.put(f"{EDITS_URL}/{EDIT_ID}", json={"status": "APPROVED"})

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "ADMIN_ACCESS_REQUIRED"
    mock_decide.assert_not_called()


def test_decide_edit_invalid_status(client, as_user, admin_user, mock_db):
    as_user(admin_user)

    response = client.put(f"{EDITS_URL}/{EDIT_ID}", json={"status": "MAYBE"})

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "INVALID_STATUS"
    mock_db.execute.assert_not_called()


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (EditNotFoundError(EDIT_ID), 404, "EDIT_NOT_FOUND"),
        (EditAlreadyProcessedError(EditStatus.REJECTED), 400, "EDIT_ALREADY_PROCESSED"),
        (SchoolNotFoundError(SCHOOL_ID), 404, "SCHOOL_NOT_FOUND"),
    ],
)
def test_decide_edit_service_errors(client, as_user, admin_user, error, status_code, code):
    as_user(admin_user)

    with patch.object(service, "decide_edit", AsyncMock(side_effect=error)):
        response = client.put(f"{EDITS_URL}/{EDIT_ID}", json={"status": "APPROVED"})

    assert response.status_code == status_code
    assert response.json()["detail"]["error"] == code


def test_decide_edit_unexpected_error_is_500(client, as_user, admin_user):
    as_user(admin_user)

    with patch.object(service, "decide_edit", AsyncMock(side_effect=RuntimeError("boom"))):
        response = client.put(f"{EDITS_URL}/{EDIT_ID}", json={"status": "APPROVED"})

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "INTERNAL_ERROR"
    assert "boom" not in response.text


def test_decide_edit_rate_limited(client, as_user, admin_user, edit_factory):
    as_user(admin_user)
    edit = edit_factory(id=EDIT_ID, status=EditStatus.REJECTED)

    with (
        patch.object(admin_router, "RATE_LIMIT_DECIDE", (1, 60)),
        patch.object(service, "decide_edit", AsyncMock(return_value=edit)),
    ):
        first = client.put(f"{EDITS_URL}/{EDIT_ID}", json={"status": "REJECTED"})
        second = client.put(f"{EDITS_URL}/{EDIT_ID}", json={"status": "REJECTED"})

    assert first.status_code == 200
    assert second.status_code == 429
    assert second.json()["detail"]["error"] == "RATE_LIMIT_EXCEEDED"
    assert second.headers["Retry-After"] == "60"


def test_decide_edit_malformed_id_is_not_found(client, as_user, admin_user, mock_db):
    as_user(admin_user)

    response = client.put(f"{EDITS_URL}/not-a-uuid", json={"status": "APPROVED"})

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "EDIT_NOT_FOUND"
    mock_db.get.assert_not_called()


@pytest.mark.parametrize("body", [{}, {"status": None}, {"status": 5}, {"status": ["APPROVED"]}])
def test_decide_edit_missing_or_non_string_status(client, as_user, admin_user, mock_db, body):
    as_user(admin_user)

    response = client.put(f"{EDITS_URL}/{EDIT_ID}", json=body)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "INVALID_STATUS"
    mock_db.get.assert_not_called()


@pytest.mark.parametrize("body", [None, {}, {"status": None}, {"status": 5}])
def test_decide_edit_non_admin_checked_before_body(client, as_user, regular_user, body):
    as_user(regular_user)

    response = client.put(f"{EDITS_URL}/{EDIT_ID}", json=body)

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "ADMIN_ACCESS_REQUIRED"


# ============================================
# /schools/{school_id}/edits
# ============================================


def test_propose_edit_created(client, as_user, regular_user, edit_factory):
    as_user(regular_user)
    edit = edit_factory(school_id=SCHOOL_ID)

    with patch.object(service, "propose_edit", AsyncMock(return_value=edit)) as mock_propose:
        response = client.post(
            f"/api/v1/schools/{SCHOOL_ID}/edits",
            json={"field": "phone", "new_value": "0299999999", "reason": "New number"},
        )

    assert response.status_code == 201
    body = response.json()
    assert body["edit"]["status"] == "PENDING"
    assert body["edit"]["school_id"] == SCHOOL_ID
    kwargs = mock_propose.call_args.kwargs
    assert kwargs["actor"] is regular_user
    assert kwargs["field"] == "phone"


def test_propose_edit_requires_sign_in(client, as_user):
    as_user(None)

    response = client.post(
        f"/api/v1/schools/{SCHOOL_ID}/edits",
        json={"field": "phone", "new_value": "0299999999"},
    )

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "AUTHENTICATION_REQUIRED"


def test_propose_edit_invalid_field(client, as_user, regular_user, mock_db):
    as_user(regular_user)

    response = client.post(
        f"/api/v1/schools/{SCHOOL_ID}/edits",
        json={"field": "is_admin", "new_value": "true"},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "INVALID_FIELD"
    mock_db.execute.assert_not_called()


def test_propose_edit_malformed_school_id_is_not_found(client, as_user, regular_user, mock_db):
    as_user(regular_user)

    response = client.post(
        "/api/v1/schools/not-a-uuid/edits",
        json={"field": "phone", "new_value": "0299999999"},
    )

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "SCHOOL_NOT_FOUND"
    mock_db.get.assert_not_called()


def test_list_pending_edits_malformed_school_id_is_empty(client):
    response = client.get("/api/v1/schools/not-a-uuid/edits")

    assert response.status_code == 200
    assert response.json()["edits"] == []


def test_list_pending_edits_for_school(client, edit_factory):
    edit = edit_factory(school_id=SCHOOL_ID)

    with patch.object(
        service,
        "list_pending_for_school",
        AsyncMock(return_value=[{"edit": edit, "proposed_by": "Pat Parent"}]),
    ):
        response = client.get(f"/api/v1/schools/{SCHOOL_ID}/edits")

    assert response.status_code == 200
    assert response.json()["edits"][0]["proposed_by"] == "Pat Parent"


# ============================================
# Misc
# ============================================


@pytest.mark.parametrize(("user_fixture", "expected"), [("admin_user", True), (None, False)])
def test_admin_check(client, as_user, request, user_fixture, expected):
    as_user(request.getfixturevalue(user_fixture) if user_fixture else None)

    response = client.get("/api/v1/admin/check")

    assert response.status_code == 200
    assert response.json() == {"is_admin": expected}


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/ready").json() == {"status": "ready"}

from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from studio_attendance.core.security import generate_reset_token
from studio_attendance.crud import session as crud_session
from studio_attendance.crud import user as crud_user
from studio_attendance.db.models.http_session import HttpSession
from tests.conftest import PASSWORD, login


def test_register_creates_pending_account(app, seeded):
    client = TestClient(app)
    response = client.post("/api/auth/register", json={
        "username": "kasia", "password": "taniec1", "firstName": "Kasia", "lastName": "Lis",
    })

    assert response.status_code == 201
    assert response.json()["user"]["status"] == "pending"

    login_response = client.post("/api/auth/login", json={"username": "kasia", "password": "taniec1"})
    assert login_response.status_code == 403
    assert login_response.json()["code"] == "ACCOUNT_PENDING"


def test_register_duplicate_username(app, seeded):
    client = TestClient(app)
    response = client.post("/api/auth/register", json={
        "username": "marta", "password": "taniec1", "firstName": "Marta", "lastName": "Inna",
    })
    assert response.status_code == 400
    assert response.json()["code"] == "USERNAME_EXISTS"


def test_register_duplicate_email(app, seeded):
    client = TestClient(app)
    response = client.post("/api/auth/register", json={
        "username": "marta2", "password": "taniec1", "firstName": "Marta", "lastName": "Inna",
        "email": "marta@studio.test",
    })
    assert response.status_code == 400
    assert response.json()["code"] == "EMAIL_EXISTS"


def test_register_validation_error_shape(app, seeded):
    response = TestClient(app).post("/api/auth/register", json={"username": "x"})
    body = response.json()
    assert response.status_code == 400
    assert body["message"] == "Invalid request body"
    assert any(e["field"] == "password" for e in body["errors"])


def test_login_me_logout(app, seeded):
    client = login(app, "marta")

    me = client.get("/api/auth/me").json()
    assert me["username"] == "marta"
    assert me["groupIds"] == ["TTI"]
    assert me["isAdmin"] is False
    assert me["permissions"]["can_view_reports"] is True

    assert client.post("/api/auth/logout").status_code == 200
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["code"] == "NOT_AUTHENTICATED"


def test_wrong_password(app, seeded):
    response = TestClient(app).post("/api/auth/login", json={"username": "marta", "password": "nope123"})
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_tampered_cookie_is_rejected(app, seeded):
    client = TestClient(app)
    client.cookies.set("sid", "not-a-token")
    assert client.get("/api/groups").json()["code"] == "NOT_AUTHENTICATED"


def test_deactivated_account_loses_its_session(app, seeded, db):
    client = login(app, "marta")
    crud_user.update_user(db, seeded["instructor"], status="inactive")

    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["code"] == "ACCOUNT_DEACTIVATED"


def test_change_password(app, seeded):
    client = login(app, "marta")

    bad = client.post("/api/auth/change-password", json={"currentPassword": "wrong", "newPassword": "nowe123"})
    assert bad.status_code == 400
    assert bad.json()["code"] == "INVALID_PASSWORD"

    ok = client.post("/api/auth/change-password", json={"currentPassword": PASSWORD, "newPassword": "nowe123"})
    assert ok.status_code == 200
    login(app, "marta", "nowe123")


def test_forgot_password_answers_the_same_for_unknown_email(app, seeded):
    client = TestClient(app)
    known = client.post("/api/auth/forgot-password", json={"email": "marta@studio.test"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@studio.test"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


def test_reset_password_with_token(app, seeded, db):
    token = generate_reset_token()
    crud_user.set_reset_token(db, seeded["instructor"], token, datetime.utcnow() + timedelta(hours=1))
    client = TestClient(app)

    response = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "nowe123"})
    assert response.status_code == 200
    login(app, "marta", "nowe123")

    reused = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "inne123"})
    assert reused.json()["code"] == "INVALID_TOKEN"


def test_expired_reset_token(app, seeded, db):
    token = generate_reset_token()
    crud_user.set_reset_token(db, seeded["instructor"], token, datetime.utcnow() - timedelta(minutes=1))

    response = TestClient(app).post("/api/auth/reset-password", json={"token": token, "newPassword": "nowe123"})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_TOKEN"


def test_login_purges_expired_sessions(app, db, seeded):
    crud_session.create_session(db, "stale", seeded["owner"].id, datetime.utcnow() - timedelta(days=1))
    crud_session.create_session(db, "fresh", seeded["owner"].id, datetime.utcnow() + timedelta(days=1))

    login(app, "marta")

    db.expire_all()
    sids = {row.sid for row in db.query(HttpSession).all()}
    assert "stale" not in sids
    assert "fresh" in sids
    assert len(sids) == 2

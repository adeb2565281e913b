"""Tests for authentication endpoints and the auth dependency"""
from fastapi.testclient import TestClient

from roleboard.config import settings
from roleboard.services import accounts, audit
from roleboard.utils.jwt_utils import create_access_token


def test_login(client: TestClient, main_admin, storage):
    response = client.post(
        "/api/auth/login",
        json={"email": settings.SEED_ADMIN_EMAIL.upper(), "password": settings.SEED_ADMIN_PASSWORD},
    )
    assert response.status_code == 200

    data = response.json()
    assert data["token"]
    assert data["expires_in"] == settings.JWT_EXPIRE_SECONDS
    assert data["user"]["account_id"] == main_admin.account_id
    assert data["user"]["last_login"] is not None
    assert "password_hash" not in data["user"]

    logins = audit.get_audit_logs_by_action(storage, "login")
    assert len(logins) == 1
    assert logins[0].user_id == main_admin.account_id
    assert logins[0].target == "auth"
    assert logins[0].details == {"email": settings.SEED_ADMIN_EMAIL}


def test_login_wrong_password(client: TestClient, main_admin, storage):
    response = client.post(
        "/api/auth/login",
        json={"email": settings.SEED_ADMIN_EMAIL, "password": "Wrong-password1"},
    )
    assert response.status_code == 401
    assert response.json()["error"] == "invalid_credentials"
    assert audit.count_audit_logs(storage, action="login") == 0
    assert accounts.find_by_id(storage, main_admin.account_id).last_login is None


def test_login_unknown_email(client: TestClient):
    response = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "Password1!"})
    assert response.status_code == 401


def test_login_requires_fields(client: TestClient):
    response = client.post("/api/auth/login", json={"email": "admin@example.com"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert any(d.startswith("password:") for d in body["details"])


def test_login_inactive_account(client: TestClient, storage, regular_user):
    accounts.update_account(storage, regular_user.account_id, {"is_active": False})
    response = client.post("/api/auth/login", json={"email": regular_user.email, "password": "UserPass1!"})
    assert response.status_code == 401
    assert response.json()["error"] == "account_inactive"


def test_profile(client: TestClient, admin_headers: dict, main_admin):
    response = client.get("/api/auth/profile", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["user"]["email"] == main_admin.email

    response = client.get("/api/auth/verify", headers=admin_headers)
    assert response.status_code == 200


def test_missing_token(client: TestClient):
    response = client.get("/api/auth/profile")
    assert response.status_code == 401
    assert response.json()["error"] == "token_missing"
    assert response.headers["www-authenticate"] == "Bearer"


def test_malformed_token(client: TestClient):
    response = client.get("/api/auth/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"] == "token_invalid"


def test_expired_token(client: TestClient, main_admin):
    token = create_access_token(main_admin.account_id, main_admin.email, main_admin.role, expires_in=-60)
    response = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["error"] == "token_expired"


def test_token_for_deleted_account(client: TestClient, storage, regular_user, user_headers: dict):
    accounts.delete_account(storage, regular_user.account_id)
    response = client.get("/api/auth/profile", headers=user_headers)
    assert response.status_code == 401
    assert response.json()["error"] == "account_not_found"


def test_token_for_deactivated_account(client: TestClient, storage, regular_user, user_headers: dict):
    accounts.update_account(storage, regular_user.account_id, {"is_active": False})
    response = client.get("/api/auth/profile", headers=user_headers)
    assert response.status_code == 401
    assert response.json()["error"] == "account_inactive"


def test_logout_revokes_token(client: TestClient, admin_headers: dict, storage, main_admin):
    response = client.post("/api/auth/logout", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"

    response = client.get("/api/auth/profile", headers=admin_headers)
    assert response.status_code == 401
    assert response.json()["error"] == "token_revoked"

    logouts = audit.get_audit_logs_by_action(storage, "logout")
    assert [e.user_id for e in logouts] == [main_admin.account_id]


def test_update_profile(client: TestClient, user_headers: dict, regular_user):
    response = client.put("/api/auth/profile", json={"name": "Uma Renamed"}, headers=user_headers)
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Uma Renamed"
    assert response.json()["user"]["email"] == regular_user.email


def test_update_profile_rejects_email(client: TestClient, user_headers: dict):
    response = client.put(
        "/api/auth/profile",
        json={"name": "Uma", "email": "new@example.com"},
        headers=user_headers,
    )
    assert response.status_code == 400


def test_update_profile_rejects_blank_name(client: TestClient, user_headers: dict, regular_user, storage):
    response = client.put("/api/auth/profile", json={"name": "   "}, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert accounts.find_by_id(storage, regular_user.account_id).name == "Uma User"


def test_change_password(client: TestClient, user_headers: dict, regular_user, login):
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": "UserPass1!", "new_password": "Changed-Pass2"},
        headers=user_headers,
    )
    assert response.status_code == 200
    assert login(regular_user.email, "Changed-Pass2")

    response = client.post(
        "/api/auth/change-password",
        json={"current_password": "UserPass1!", "new_password": "Another-Pass3"},
        headers=user_headers,
    )
    assert response.status_code == 400

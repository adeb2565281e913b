"""Tests for user and sub-admin management endpoints"""
from fastapi.testclient import TestClient

from roleboard.permissions import EDIT_USER, SUB_ADMIN, USER, VIEW_ALL_USERS, VIEW_ANALYTICS
from roleboard.services import accounts, audit, notifications


def _new_user(email: str = "new.user@example.com") -> dict:
    return {"email": email, "name": "New User", "password": "NewUser1!"}


def _new_sub_admin(email: str = "new.sub@example.com", permissions=None) -> dict:
    return {
        "email": email,
        "name": "New Sub",
        "password": "NewSub1!",
        "permissions": permissions if permissions is not None else [VIEW_ALL_USERS, EDIT_USER],
    }


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def test_list_users(client: TestClient, admin_headers: dict, regular_user, sub_admin):
    response = client.get("/api/users", headers=admin_headers)
    assert response.status_code == 200
    emails = {u["email"] for u in response.json()["users"]}
    assert regular_user.email in emails and sub_admin.email in emails

    response = client.get("/api/users", params={"role": USER}, headers=admin_headers)
    assert [u["email"] for u in response.json()["users"]] == [regular_user.email]


def test_list_users_requires_permission(client: TestClient, user_headers: dict):
    response = client.get("/api/users", headers=user_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


def test_list_users_requires_token(client: TestClient):
    assert client.get("/api/users").status_code == 401


def test_sub_admin_creates_user(client: TestClient, sub_admin_headers: dict, sub_admin, main_admin, storage):
    response = client.post("/api/users", json=_new_user(), headers=sub_admin_headers)
    assert response.status_code == 201

    user = response.json()["user"]
    assert user["role"] == USER
    assert user["created_by"] == sub_admin.account_id

    entries = audit.get_audit_logs_by_action(storage, "create_user")
    assert len(entries) == 1
    assert entries[0].target_id == user["account_id"]

    # Sub-admin create_user notifies the main-admin role
    inbox = notifications.get_notifications_for_user(storage, main_admin.account_id, "main-admin")
    created = [n for n in inbox if n.action == "create_user"]
    assert len(created) == 1
    assert created[0].message == "Sub-admin Sam Sub has created a new user: New User"


def test_create_user_duplicate_email(client: TestClient, admin_headers: dict, regular_user, storage):
    before = accounts.count_accounts(storage)
    response = client.post("/api/users", json=_new_user(regular_user.email.upper()), headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "conflict"
    assert accounts.count_accounts(storage) == before


def test_create_user_weak_password(client: TestClient, admin_headers: dict):
    payload = _new_user()
    payload["password"] = "password"
    response = client.post("/api/users", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Password validation failed"
    assert len(response.json()["details"]) >= 3


def test_create_user_rejects_other_roles(client: TestClient, admin_headers: dict):
    payload = _new_user()
    payload["role"] = "main-admin"
    response = client.post("/api/users", json=payload, headers=admin_headers)
    assert response.status_code == 400


def test_create_user_invalid_email(client: TestClient, admin_headers: dict):
    response = client.post("/api/users", json=_new_user("not-an-email"), headers=admin_headers)
    assert response.status_code == 400
    assert any(d.startswith("email:") for d in response.json()["details"])


def test_update_user(client: TestClient, sub_admin_headers: dict, regular_user):
    response = client.put(
        f"/api/users/{regular_user.account_id}",
        json={"name": "Uma Updated", "is_active": False},
        headers=sub_admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Uma Updated"
    assert response.json()["user"]["is_active"] is False


def test_update_user_wrong_role_is_not_found(client: TestClient, admin_headers: dict, sub_admin):
    response = client.put(f"/api/users/{sub_admin.account_id}", json={"name": "x"}, headers=admin_headers)
    assert response.status_code == 404


def test_update_user_rejects_blank_name(client: TestClient, admin_headers: dict, regular_user, storage):
    response = client.put(f"/api/users/{regular_user.account_id}", json={"name": "   "}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["details"] == ["name: Value error, name must not be blank"]
    assert accounts.find_by_id(storage, regular_user.account_id).name == "Uma User"


def test_update_user_trims_name(client: TestClient, admin_headers: dict, regular_user):
    response = client.put(f"/api/users/{regular_user.account_id}", json={"name": "  Uma T  "}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Uma T"


def test_delete_user(client: TestClient, admin_headers: dict, regular_user, storage):
    response = client.delete(f"/api/users/{regular_user.account_id}", headers=admin_headers)
    assert response.status_code == 200
    assert accounts.find_by_id(storage, regular_user.account_id) is None

    response = client.delete(f"/api/users/{regular_user.account_id}", headers=admin_headers)
    assert response.status_code == 404


def test_sub_admin_cannot_delete_users(client: TestClient, sub_admin_headers: dict, regular_user):
    response = client.delete(f"/api/users/{regular_user.account_id}", headers=sub_admin_headers)
    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Sub-admins
# ---------------------------------------------------------------------------

def test_create_sub_admin(client: TestClient, admin_headers: dict, storage, regular_user):
    permissions = [VIEW_ALL_USERS, EDIT_USER, VIEW_ANALYTICS]
    response = client.post("/api/sub-admins", json=_new_sub_admin(permissions=permissions), headers=admin_headers)
    assert response.status_code == 201

    created = response.json()["sub_admin"]
    assert created["role"] == SUB_ADMIN
    assert set(created["permissions"]) == set(permissions)

    # main-admin create_sub_admin notifies sub-admins and users
    inbox = notifications.get_notifications_for_user(storage, regular_user.account_id, USER)
    assert [n.title for n in inbox] == ["New Sub-Admin Created"]
    assert "Main Administrator" in inbox[0].message and "New Sub" in inbox[0].message


def test_create_sub_admin_invalid_permissions(client: TestClient, admin_headers: dict, storage):
    response = client.post(
        "/api/sub-admins",
        json=_new_sub_admin(permissions=[VIEW_ALL_USERS, "delete_sub_admin"]),
        headers=admin_headers,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid permissions for sub-admin role"
    assert body["details"] == ["delete_sub_admin"]
    assert accounts.list_sub_admins(storage) == []


def test_sub_admin_cannot_manage_sub_admins(client: TestClient, sub_admin_headers: dict, sub_admin):
    assert client.get("/api/sub-admins", headers=sub_admin_headers).status_code == 403
    assert client.post("/api/sub-admins", json=_new_sub_admin(), headers=sub_admin_headers).status_code == 403
    assert client.delete(f"/api/sub-admins/{sub_admin.account_id}", headers=sub_admin_headers).status_code == 403


def test_list_sub_admins(client: TestClient, admin_headers: dict, sub_admin, regular_user):
    response = client.get("/api/sub-admins", headers=admin_headers)
    assert response.status_code == 200
    assert [s["account_id"] for s in response.json()["sub_admins"]] == [sub_admin.account_id]


def test_update_sub_admin_permissions(client: TestClient, admin_headers: dict, sub_admin, login):
    response = client.put(
        f"/api/sub-admins/{sub_admin.account_id}",
        json={"permissions": [VIEW_ANALYTICS]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["sub_admin"]["permissions"] == [VIEW_ANALYTICS]

    # The change applies to the sub-admin's next request
    headers = login(sub_admin.email, "SubAdmin1!")
    assert client.get("/api/users", headers=headers).status_code == 403


def test_update_sub_admin_invalid_permissions(client: TestClient, admin_headers: dict, sub_admin):
    response = client.put(
        f"/api/sub-admins/{sub_admin.account_id}",
        json={"permissions": ["delete_user"]},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["details"] == ["delete_user"]


def test_update_sub_admin_rejects_email(client: TestClient, admin_headers: dict, sub_admin):
    response = client.put(
        f"/api/sub-admins/{sub_admin.account_id}",
        json={"email": "changed@example.com"},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_update_sub_admin_rejects_blank_name(client: TestClient, admin_headers: dict, sub_admin, storage):
    response = client.put(f"/api/sub-admins/{sub_admin.account_id}", json={"name": "   "}, headers=admin_headers)
    assert response.status_code == 400
    assert accounts.find_by_id(storage, sub_admin.account_id).name == "Sam Sub"


def test_delete_sub_admin_wrong_role_is_not_found(client: TestClient, admin_headers: dict, regular_user):
    response = client.delete(f"/api/sub-admins/{regular_user.account_id}", headers=admin_headers)
    assert response.status_code == 404


def test_delete_sub_admin(client: TestClient, admin_headers: dict, sub_admin, storage):
    response = client.delete(f"/api/sub-admins/{sub_admin.account_id}", headers=admin_headers)
    assert response.status_code == 200
    assert accounts.list_sub_admins(storage) == []

    entries = audit.get_audit_logs_by_action(storage, "delete_sub_admin")
    assert entries[0].details == {"email": sub_admin.email, "name": sub_admin.name}

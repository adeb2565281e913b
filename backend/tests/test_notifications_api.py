"""Tests for notification endpoints"""
from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from roleboard.permissions import MAIN_ADMIN, USER
from roleboard.services import notifications


def _broadcast(client: TestClient, headers: dict, **kwargs):
    payload = {"title": "Maintenance", "message": "Tonight at 22:00", "priority": "high"}
    payload.update(kwargs)
    return client.post("/api/notifications", json=payload, headers=headers)


def test_broadcast(client: TestClient, admin_headers: dict, user_headers: dict, sub_admin_headers: dict):
    response = _broadcast(client, admin_headers)
    assert response.status_code == 201
    assert response.json()["notifications"] == 3

    for headers in (admin_headers, user_headers, sub_admin_headers):
        inbox = client.get("/api/notifications", headers=headers).json()
        assert "Maintenance" in [n["title"] for n in inbox["notifications"]]


def test_broadcast_is_main_admin_only(client: TestClient, sub_admin_headers: dict, user_headers: dict):
    assert _broadcast(client, sub_admin_headers).status_code == 403
    assert _broadcast(client, user_headers).status_code == 403


def test_broadcast_validates_type_and_priority(client: TestClient, admin_headers: dict):
    assert _broadcast(client, admin_headers, type="shout").status_code == 400
    assert _broadcast(client, admin_headers, priority="whenever").status_code == 400
    assert _broadcast(client, admin_headers, title="").status_code == 400


def test_broadcast_with_expiry(client: TestClient, admin_headers: dict, user_headers: dict):
    expires_at = (datetime.utcnow() + timedelta(hours=1)).isoformat() + "Z"
    assert _broadcast(client, admin_headers, expires_at=expires_at).status_code == 201

    inbox = client.get("/api/notifications", headers=user_headers).json()
    assert inbox["notifications"][0]["expires_at"] is not None


def test_broadcast_rejects_past_expiry(client: TestClient, admin_headers: dict, user_headers: dict):
    response = _broadcast(client, admin_headers, expires_at="2000-01-01T00:00:00Z")
    assert response.status_code == 400
    assert response.json()["details"] == ["expires_at: Value error, expires_at must be in the future"]

    inbox = client.get("/api/notifications", headers=user_headers).json()
    assert inbox["notifications"] == []


def test_inbox_and_unread_count(client: TestClient, admin_headers: dict, user_headers: dict):
    _broadcast(client, admin_headers, title="One")
    _broadcast(client, admin_headers, title="Two")

    inbox = client.get("/api/notifications", headers=user_headers).json()
    assert [n["title"] for n in inbox["notifications"]] == ["Two", "One"]
    assert inbox["unread_count"] == 2
    assert client.get("/api/notifications/unread-count", headers=user_headers).json() == {"unread_count": 2}


def test_mark_read(client: TestClient, admin_headers: dict, user_headers: dict):
    _broadcast(client, admin_headers)
    notification_id = client.get("/api/notifications", headers=user_headers).json()["notifications"][0]["notification_id"]

    response = client.put(f"/api/notifications/{notification_id}/read", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["unread_count"] == 0

    # Second call is a no-op, not an error
    response = client.put(f"/api/notifications/{notification_id}/read", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["unread_count"] == 0


def test_mark_read_unknown_or_invisible(client: TestClient, admin_headers: dict, user_headers: dict, storage):
    assert client.put("/api/notifications/missing/read", headers=user_headers).status_code == 404

    admin_only = notifications.create_notification(
        storage,
        from_user_id="system",
        from_user_name="System",
        from_user_role=MAIN_ADMIN,
        target_role=MAIN_ADMIN,
        title="Admins only",
        message="secret",
    )
    response = client.put(f"/api/notifications/{admin_only.notification_id}/read", headers=user_headers)
    assert response.status_code == 404


def test_mark_all_read(client: TestClient, admin_headers: dict, user_headers: dict):
    for title in ("a", "b", "c"):
        _broadcast(client, admin_headers, title=title)

    response = client.put("/api/notifications/mark-all-read", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["marked_count"] == 3
    assert response.json()["unread_count"] == 0

    response = client.put("/api/notifications/mark-all-read", headers=user_headers)
    assert response.json()["marked_count"] == 0


def test_delete_notification(client: TestClient, admin_headers: dict, user_headers: dict):
    _broadcast(client, admin_headers)
    notification_id = client.get("/api/notifications", headers=user_headers).json()["notifications"][0]["notification_id"]

    assert client.delete(f"/api/notifications/{notification_id}", headers=user_headers).status_code == 200
    assert client.get("/api/notifications", headers=user_headers).json()["notifications"] == []
    assert client.delete(f"/api/notifications/{notification_id}", headers=user_headers).status_code == 404


def test_trigger_security_alert(client: TestClient, sub_admin_headers: dict, admin_headers: dict):
    response = client.post(
        "/api/notifications/trigger",
        json={"action": "security_alert", "details": "Repeated failed logins"},
        headers=sub_admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["notifications"] == 1

    inbox = client.get("/api/notifications", headers=admin_headers).json()["notifications"]
    alert = next(n for n in inbox if n["action"] == "security_alert")
    assert alert["priority"] == "urgent"
    assert alert["type"] == "error"
    assert alert["message"] == "Sub-admin Sam Sub reported: Repeated failed logins"


def test_trigger_without_rule_creates_nothing(client: TestClient, admin_headers: dict):
    response = client.post("/api/notifications/trigger", json={"action": "bulk_action"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["notifications"] == 0


def test_trigger_not_available_to_users(client: TestClient, user_headers: dict, storage, regular_user):
    response = client.post("/api/notifications/trigger", json={"action": "security_alert"}, headers=user_headers)
    assert response.status_code == 403
    assert notifications.get_notifications_for_user(storage, regular_user.account_id, USER) == []

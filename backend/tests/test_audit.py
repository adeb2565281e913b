"""Tests for the audit log (run against both storage modes)"""
from datetime import datetime, timedelta

from roleboard.models.audit_log import AuditLog
from roleboard.permissions import MAIN_ADMIN, SUB_ADMIN
from roleboard.services import audit
from roleboard.storage import MEMORY, Storage


def _log(storage: Storage, action: str, user_id: str = "acc_admin", role: str = MAIN_ADMIN, **kwargs):
    return audit.create_audit_log(
        storage,
        user_id=user_id,
        user_name="Actor",
        user_role=role,
        action=action,
        **kwargs,
    )


def _age_entry(storage: Storage, log_id: str, hours: int) -> None:
    """Move an entry's timestamp into the past"""
    old = datetime.utcnow() - timedelta(hours=hours)
    if storage.mode == MEMORY:
        for entry in storage.memory.audit_logs:
            if entry.log_id == log_id:
                entry.timestamp = old
        return
    with storage.connection.session() as db:
        db.query(AuditLog).filter(AuditLog.log_id == log_id).update({AuditLog.timestamp: old})


def test_create_audit_log(any_storage: Storage):
    entry = _log(
        any_storage,
        "create_user",
        target="user",
        target_id="acc_new",
        details={"email": "new@example.com"},
        ip_address="10.0.0.1",
    )
    assert entry.log_id
    assert entry.action == "create_user"
    assert entry.details == {"email": "new@example.com"}
    assert entry.ip_address == "10.0.0.1"
    assert entry.timestamp is not None


def test_logs_are_newest_first(any_storage: Storage):
    for action in ("first", "second", "third"):
        _log(any_storage, action)

    logs = audit.get_audit_logs(any_storage)
    assert [e.action for e in logs] == ["third", "second", "first"]


def test_pagination(any_storage: Storage):
    for i in range(5):
        _log(any_storage, f"action_{i}")

    page = audit.get_audit_logs(any_storage, limit=2, offset=1)
    assert [e.action for e in page] == ["action_3", "action_2"]
    assert audit.count_audit_logs(any_storage) == 5


def test_filter_by_user_and_action(any_storage: Storage):
    _log(any_storage, "login", user_id="acc_a")
    _log(any_storage, "login", user_id="acc_b", role=SUB_ADMIN)
    _log(any_storage, "logout", user_id="acc_a")

    by_user = audit.get_audit_logs_by_user(any_storage, "acc_a")
    assert [e.action for e in by_user] == ["logout", "login"]

    by_action = audit.get_audit_logs_by_action(any_storage, "login")
    assert {e.user_id for e in by_action} == {"acc_a", "acc_b"}

    combined = audit.query_audit_logs(any_storage, user_id="acc_b", action="login")
    assert len(combined) == 1
    assert audit.count_audit_logs(any_storage, user_id="acc_a", action="login") == 1


def test_recent_window(any_storage: Storage):
    old = _log(any_storage, "old_action")
    _log(any_storage, "fresh_action")
    _age_entry(any_storage, old.log_id, hours=30)

    recent = audit.get_recent_audit_logs(any_storage, hours=24)
    assert [e.action for e in recent] == ["fresh_action"]
    assert len(audit.get_recent_audit_logs(any_storage, hours=48)) == 2


def test_recent_window_limit(any_storage: Storage):
    for i in range(5):
        _log(any_storage, f"action_{i}")

    recent = audit.get_recent_audit_logs(any_storage, hours=24, limit=2)
    assert [e.action for e in recent] == ["action_4", "action_3"]

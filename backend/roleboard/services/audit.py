"""Audit log: append-only record of privileged actions"""
from datetime import datetime, timedelta
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from roleboard.models.audit_log import AuditLog, generate_uuid_string
from roleboard.schemas.audit_log import AuditLogEntry
from roleboard.storage import MemoryStore, Storage


def create_audit_log(
    storage: Storage,
    user_id: str,
    user_name: str,
    user_role: str,
    action: str,
    target: Optional[str] = None,
    target_id: Optional[str] = None,
    details: Optional[Any] = None,
    ip_address: Optional[str] = None,
) -> AuditLogEntry:
    """Append one entry. ``details`` must be JSON-serializable."""

    def _persistent(db: Session) -> AuditLogEntry:
        entry = AuditLog(
            user_id=user_id,
            user_name=user_name,
            user_role=user_role,
            action=action,
            target=target,
            target_id=target_id,
            details=details,
            ip_address=ip_address,
        )
        db.add(entry)
        db.flush()
        return AuditLogEntry.model_validate(entry)

    def _memory(mem: MemoryStore) -> AuditLogEntry:
        entry = AuditLogEntry(
            log_id=generate_uuid_string(),
            user_id=user_id,
            user_name=user_name,
            user_role=user_role,
            action=action,
            target=target,
            target_id=target_id,
            details=details,
            timestamp=datetime.utcnow(),
            ip_address=ip_address,
        )
        with mem.lock:
            mem.audit_logs.append(entry)
        return entry.model_copy(deep=True)

    return storage.with_database(_persistent, _memory)


def query_audit_logs(
    storage: Storage,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    since: Optional[datetime] = None,
    limit: Optional[int] = 100,
    offset: int = 0,
) -> List[AuditLogEntry]:
    """Filtered entries, newest first (ties broken by insertion order)."""

    def _persistent(db: Session) -> List[AuditLogEntry]:
        query = db.query(AuditLog)
        if user_id:
            query = query.filter(AuditLog.user_id == user_id)
        if action:
            query = query.filter(AuditLog.action == action)
        if since is not None:
            query = query.filter(AuditLog.timestamp >= since)
        query = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [AuditLogEntry.model_validate(row) for row in query.all()]

    def _memory(mem: MemoryStore) -> List[AuditLogEntry]:
        with mem.lock:
            entries = [
                e for e in reversed(mem.audit_logs)
                if (not user_id or e.user_id == user_id)
                and (not action or e.action == action)
                and (since is None or e.timestamp >= since)
            ]
        entries = sorted(entries, key=lambda e: e.timestamp, reverse=True)
        end = offset + limit if limit is not None else None
        return [e.model_copy(deep=True) for e in entries[offset:end]]

    return storage.with_database(_persistent, _memory)


def get_audit_logs(storage: Storage, limit: int = 100, offset: int = 0) -> List[AuditLogEntry]:
    return query_audit_logs(storage, limit=limit, offset=offset)


def get_audit_logs_by_user(storage: Storage, user_id: str, limit: int = 50) -> List[AuditLogEntry]:
    return query_audit_logs(storage, user_id=user_id, limit=limit)


def get_audit_logs_by_action(storage: Storage, action: str, limit: int = 50) -> List[AuditLogEntry]:
    return query_audit_logs(storage, action=action, limit=limit)


def get_recent_audit_logs(storage: Storage, hours: int = 24, limit: Optional[int] = None) -> List[AuditLogEntry]:
    since = datetime.utcnow() - timedelta(hours=hours)
    return query_audit_logs(storage, since=since, limit=limit)


def count_audit_logs(
    storage: Storage,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    since: Optional[datetime] = None,
) -> int:
    def _persistent(db: Session) -> int:
        query = db.query(AuditLog)
        if user_id:
            query = query.filter(AuditLog.user_id == user_id)
        if action:
            query = query.filter(AuditLog.action == action)
        if since is not None:
            query = query.filter(AuditLog.timestamp >= since)
        return query.count()

    def _memory(mem: MemoryStore) -> int:
        with mem.lock:
            return sum(
                1 for e in mem.audit_logs
                if (not user_id or e.user_id == user_id)
                and (not action or e.action == action)
                and (since is None or e.timestamp >= since)
            )

    return storage.with_database(_persistent, _memory)

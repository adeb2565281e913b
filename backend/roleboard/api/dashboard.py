"""Dashboard analytics and audit log browsing"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from roleboard.api.deps import AuthContext, get_storage, require_permission
from roleboard.permissions import SUB_ADMIN, USER, VIEW_ANALYTICS, VIEW_AUDIT_LOGS
from roleboard.schemas.audit_log import AuditLogPage
from roleboard.schemas.dashboard import DashboardStats
from roleboard.services import accounts, audit
from roleboard.storage import Storage

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

RECENT_ACTIONS_LIMIT = 10


@router.get("/stats", response_model=DashboardStats)
def get_stats(
    storage: Storage = Depends(get_storage),
    _: AuthContext = Depends(require_permission(VIEW_ANALYTICS)),
):
    """
    Summary counters for the dashboard.

    ``today_logins`` counts ``login`` entries since midnight UTC;
    ``recent_actions`` are the newest entries from the last 24 hours.
    """
    midnight = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    recent = audit.get_recent_audit_logs(storage, hours=24, limit=RECENT_ACTIONS_LIMIT)

    return DashboardStats(
        total_users=accounts.count_accounts(storage, role=USER),
        total_sub_admins=accounts.count_accounts(storage, role=SUB_ADMIN),
        active_users=accounts.count_accounts(storage, active_only=True),
        today_logins=audit.count_audit_logs(storage, action="login", since=midnight),
        recent_actions=recent,
    )


@router.get("/audit-logs", response_model=AuditLogPage)
def get_audit_logs(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user_id: Optional[str] = Query(None, description="Only entries by this account"),
    action: Optional[str] = Query(None, description="Only entries with this action"),
    storage: Storage = Depends(get_storage),
    _: AuthContext = Depends(require_permission(VIEW_AUDIT_LOGS)),
):
    """Audit entries, newest first. ``total`` counts every entry matching the filters."""
    logs = audit.query_audit_logs(storage, user_id=user_id, action=action, limit=limit, offset=offset)
    total = audit.count_audit_logs(storage, user_id=user_id, action=action)
    return AuditLogPage(logs=logs, total=total, limit=limit, offset=offset)

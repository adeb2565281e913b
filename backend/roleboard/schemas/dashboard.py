"""Dashboard schemas"""
from typing import List

from pydantic import BaseModel

from roleboard.schemas.audit_log import AuditLogEntry


class DashboardStats(BaseModel):
    total_users: int          # accounts with role "user"
    total_sub_admins: int
    active_users: int         # active accounts of any role
    today_logins: int         # login entries since 00:00 UTC
    recent_actions: List[AuditLogEntry]

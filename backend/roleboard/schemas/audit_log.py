"""Audit log schemas"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel


class AuditLogEntry(BaseModel):
    """Schema for an audit log entry"""

    log_id: str
    user_id: str
    user_name: str
    user_role: str
    action: str
    target: Optional[str] = None
    target_id: Optional[str] = None
    details: Optional[Any] = None
    timestamp: datetime
    ip_address: Optional[str] = None

    class Config:
        from_attributes = True


class AuditLogPage(BaseModel):
    logs: List[AuditLogEntry]
    total: int
    limit: int
    offset: int

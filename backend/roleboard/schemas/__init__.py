"""Pydantic schemas for request/response validation"""
from roleboard.schemas.account import (
    AccountInDB,
    AccountResponse,
    PasswordChange,
    ProfileUpdate,
    SubAdminCreate,
    SubAdminEnvelope,
    SubAdminList,
    SubAdminUpdate,
    UserCreate,
    UserList,
    UserUpdate,
)
from roleboard.schemas.audit_log import AuditLogEntry, AuditLogPage
from roleboard.schemas.auth import LoginRequest, LoginResponse, MessageResponse, ProfileResponse
from roleboard.schemas.dashboard import DashboardStats
from roleboard.schemas.notification import (
    BroadcastCreate,
    BroadcastResponse,
    NotificationList,
    NotificationRecord,
    NotificationTrigger,
    ReadStateResponse,
    TriggerResponse,
)

__all__ = [
    "AccountInDB",
    "AccountResponse",
    "PasswordChange",
    "ProfileUpdate",
    "SubAdminCreate",
    "SubAdminEnvelope",
    "SubAdminList",
    "SubAdminUpdate",
    "UserCreate",
    "UserList",
    "UserUpdate",
    "AuditLogEntry",
    "AuditLogPage",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "ProfileResponse",
    "DashboardStats",
    "BroadcastCreate",
    "BroadcastResponse",
    "NotificationList",
    "NotificationRecord",
    "NotificationTrigger",
    "ReadStateResponse",
    "TriggerResponse",
]

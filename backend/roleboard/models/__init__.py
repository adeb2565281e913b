"""Database models"""
from roleboard.models.account import Account
from roleboard.models.audit_log import AuditLog
from roleboard.models.notification import Notification
from roleboard.models.revoked_token import RevokedToken

__all__ = ["Account", "AuditLog", "Notification", "RevokedToken"]

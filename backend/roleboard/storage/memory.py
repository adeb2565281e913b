"""In-memory fallback store.

Process-lifetime only. Every collection is guarded by one re-entrant lock;
service-level memory operations take ``store.lock`` for the whole
read-modify-write so check-then-insert sequences are atomic.
"""
import threading
from datetime import datetime
from typing import Dict, List

from roleboard.schemas.account import AccountInDB
from roleboard.schemas.audit_log import AuditLogEntry
from roleboard.schemas.notification import NotificationRecord


class MemoryStore:
    """Transient collections used when the persistent store is unavailable."""

    def __init__(self, notification_cap: int = 100):
        self.lock = threading.RLock()
        self.notification_cap = notification_cap

        self.accounts: Dict[str, AccountInDB] = {}          # account_id -> account
        self.audit_logs: List[AuditLogEntry] = []           # insertion order
        self.notifications: List[NotificationRecord] = []   # newest first
        self.revoked_tokens: Dict[str, datetime] = {}       # jti -> expires_at

    def add_notification(self, notification: NotificationRecord) -> None:
        """Insert newest-first and evict the oldest beyond the cap."""
        with self.lock:
            self.notifications.insert(0, notification)
            if len(self.notifications) > self.notification_cap:
                del self.notifications[self.notification_cap:]

    def clear(self) -> None:
        with self.lock:
            self.accounts.clear()
            self.audit_logs.clear()
            self.notifications.clear()
            self.revoked_tokens.clear()

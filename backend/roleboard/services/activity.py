"""Side effects of privileged actions: audit entry plus rule-driven notifications.

Both writes are best-effort. The primary operation has already succeeded when
these run, so failures are logged and never reach the caller.
"""
from typing import Any, Optional

from roleboard.services import audit, notifications
from roleboard.services.notifications import TargetDetails
from roleboard.storage import Storage
from roleboard.utils.logger import logger


def record_activity(
    storage: Storage,
    actor_id: str,
    actor_name: str,
    actor_role: str,
    action: str,
    target: Optional[str] = None,
    target_id: Optional[str] = None,
    details: Optional[Any] = None,
    ip_address: Optional[str] = None,
    notify: Optional[TargetDetails] = None,
) -> None:
    """Write the audit entry for ``action`` and, if ``notify`` is given, fan it out."""
    try:
        audit.create_audit_log(
            storage,
            user_id=actor_id,
            user_name=actor_name,
            user_role=actor_role,
            action=action,
            target=target,
            target_id=target_id,
            details=details,
            ip_address=ip_address,
        )
    except Exception as exc:
        logger.error(
            f"Failed to write audit log: {exc}",
            extra={"account_id": actor_id, "action": action},
            exc_info=True,
        )

    if notify is None:
        return

    try:
        notifications.create_role_based_notification(
            storage, actor_id, actor_name, actor_role, action, notify
        )
    except Exception as exc:
        logger.error(
            f"Failed to create notifications: {exc}",
            extra={"account_id": actor_id, "action": action},
            exc_info=True,
        )

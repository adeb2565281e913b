"""Notification engine: rule-driven fan-out, broadcasts, read state and expiry.

Routing is data: ``NOTIFICATION_RULES`` maps ``(actor_role, action)`` to the
recipient roles, a priority and a template. Templates are pure functions of the
actor's name and the action's :class:`TargetDetails`.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple, Union

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session

from roleboard.errors import ValidationError
from roleboard.middleware.monitoring import record_notification_created
from roleboard.models.notification import Notification, generate_uuid_string
from roleboard.permissions import MAIN_ADMIN, ROLES, SUB_ADMIN, USER
from roleboard.schemas.notification import NotificationRecord
from roleboard.services import accounts
from roleboard.storage import MemoryStore, Storage
from roleboard.utils.logger import logger

NOTIFICATION_TYPES = ("info", "warning", "success", "error")
PRIORITIES = ("low", "medium", "high", "urgent")

BROADCAST_ACTION = "broadcast_message"


class TargetDetails(NamedTuple):
    """What an action was performed on"""

    name: Optional[str] = None
    id: Optional[str] = None
    count: Optional[int] = None
    details: Optional[str] = None


class NotificationContent(NamedTuple):
    title: str
    message: str
    type: str


@dataclass(frozen=True)
class NotificationRule:
    recipients: Tuple[str, ...]
    priority: str
    template: Callable[[str, TargetDetails], NotificationContent]


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

NOTIFICATION_RULES: Dict[Tuple[str, str], NotificationRule] = {
    (MAIN_ADMIN, "create_sub_admin"): NotificationRule(
        recipients=(SUB_ADMIN, USER),
        priority="high",
        template=lambda actor, t: NotificationContent(
            "New Sub-Admin Created",
            f"{actor} has created a new sub-admin: {t.name}",
            "info",
        ),
    ),
    (MAIN_ADMIN, "delete_sub_admin"): NotificationRule(
        recipients=(SUB_ADMIN, USER),
        priority="high",
        template=lambda actor, t: NotificationContent(
            "Sub-Admin Removed",
            f"{actor} has removed sub-admin: {t.name}",
            "warning",
        ),
    ),
    (MAIN_ADMIN, "system_maintenance"): NotificationRule(
        recipients=(SUB_ADMIN, USER),
        priority="urgent",
        template=lambda actor, t: NotificationContent(
            "System Maintenance Scheduled",
            f"{actor} has scheduled system maintenance",
            "warning",
        ),
    ),
    (MAIN_ADMIN, "policy_update"): NotificationRule(
        recipients=(SUB_ADMIN, USER),
        priority="medium",
        template=lambda actor, t: NotificationContent(
            "Policy Update",
            f"{actor} has updated system policies",
            "info",
        ),
    ),
    (SUB_ADMIN, "create_user"): NotificationRule(
        recipients=(MAIN_ADMIN,),
        priority="medium",
        template=lambda actor, t: NotificationContent(
            "New User Created",
            f"Sub-admin {actor} has created a new user: {t.name}",
            "info",
        ),
    ),
    (SUB_ADMIN, "delete_user"): NotificationRule(
        recipients=(MAIN_ADMIN,),
        priority="high",
        template=lambda actor, t: NotificationContent(
            "User Deleted",
            f"Sub-admin {actor} has deleted user: {t.name}",
            "warning",
        ),
    ),
    (SUB_ADMIN, "bulk_action"): NotificationRule(
        recipients=(MAIN_ADMIN,),
        priority="high",
        template=lambda actor, t: NotificationContent(
            "Bulk Action Performed",
            f"Sub-admin {actor} performed bulk action on {t.count or 0} users",
            "warning",
        ),
    ),
    (SUB_ADMIN, "security_alert"): NotificationRule(
        recipients=(MAIN_ADMIN,),
        priority="urgent",
        template=lambda actor, t: NotificationContent(
            "Security Alert",
            f"Sub-admin {actor} reported: {t.details or 'unspecified issue'}",
            "error",
        ),
    ),
}


def get_rule(role: str, action: str) -> Optional[NotificationRule]:
    return NOTIFICATION_RULES.get((role, action))


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def _visible_to(user_id: str, role: str):
    # target_role is JSON: either "role" or ["role", ...]; both serialize with the quoted name
    return or_(
        Notification.target_user_id == user_id,
        cast(Notification.target_role, String).like(f'%"{role}"%'),
    )


def _not_expired(now: datetime):
    return or_(Notification.expires_at.is_(None), Notification.expires_at > now)


def _to_record(row: Notification) -> NotificationRecord:
    return NotificationRecord.model_validate(row)


def _visible_memory(mem: MemoryStore, user_id: str, role: str, now: datetime) -> List[NotificationRecord]:
    return [
        n for n in mem.notifications
        if n.is_visible_to(user_id, role) and not n.is_expired(now)
    ]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def create_notification(
    storage: Storage,
    from_user_id: str,
    from_user_name: str,
    from_user_role: str,
    title: str,
    message: str,
    type: str = "info",
    priority: str = "medium",
    target_role: Optional[Union[str, List[str]]] = None,
    target_user_id: Optional[str] = None,
    action: Optional[str] = None,
    target_resource: Optional[str] = None,
    target_resource_id: Optional[str] = None,
    expires_at: Optional[datetime] = None,
) -> NotificationRecord:
    """Store one notification addressed to a role, a role list, or an account."""
    if target_role is None and target_user_id is None:
        raise ValidationError("A notification needs a target role or a target user")
    if type not in NOTIFICATION_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(NOTIFICATION_TYPES)}")
    if priority not in PRIORITIES:
        raise ValidationError(f"priority must be one of: {', '.join(PRIORITIES)}")

    fields = dict(
        target_role=target_role,
        target_user_id=target_user_id,
        from_user_id=from_user_id,
        from_user_name=from_user_name,
        from_user_role=from_user_role,
        type=type,
        title=title,
        message=message,
        action=action,
        target_resource=target_resource,
        target_resource_id=target_resource_id,
        priority=priority,
        expires_at=expires_at,
    )

    def _persistent(db: Session) -> NotificationRecord:
        row = Notification(read=False, **fields)
        db.add(row)
        db.flush()
        return _to_record(row)

    def _memory(mem: MemoryStore) -> NotificationRecord:
        record = NotificationRecord(
            notification_id=generate_uuid_string(),
            read=False,
            timestamp=datetime.utcnow(),
            **fields,
        )
        mem.add_notification(record)
        return record.model_copy(deep=True)

    notification = storage.with_database(_persistent, _memory)
    label = target_role if isinstance(target_role, str) else ("user" if target_role is None else "multiple")
    record_notification_created(action or "none", label)
    return notification


def create_role_based_notification(
    storage: Storage,
    actor_id: str,
    actor_name: str,
    actor_role: str,
    action: str,
    target: Optional[TargetDetails] = None,
) -> List[NotificationRecord]:
    """Fan an action out to the recipient roles of its rule.

    Unknown ``(role, action)`` pairs produce nothing. A failure for one
    recipient is logged and does not stop the others.
    """
    rule = get_rule(actor_role, action)
    if rule is None:
        return []

    target = target or TargetDetails()
    content = rule.template(actor_name, target)

    created: List[NotificationRecord] = []
    for recipient in rule.recipients:
        try:
            created.append(
                create_notification(
                    storage,
                    from_user_id=actor_id,
                    from_user_name=actor_name,
                    from_user_role=actor_role,
                    target_role=recipient,
                    type=content.type,
                    title=content.title,
                    message=content.message,
                    action=action,
                    target_resource="user" if target.name else None,
                    target_resource_id=target.id,
                    priority=rule.priority,
                )
            )
        except Exception as exc:
            logger.error(
                f"Failed to create notification for role {recipient}: {exc}",
                extra={"action": action, "role": recipient},
                exc_info=True,
            )

    logger.info(
        f"Role-based notification fan-out: {action}",
        extra={"account_id": actor_id, "action": action, "notification_count": len(created)},
    )
    return created


def trigger_notification(
    storage: Storage,
    actor_id: str,
    action: str,
    target: Optional[TargetDetails] = None,
) -> List[NotificationRecord]:
    """Resolve the actor and run the fan-out for ``action``."""
    actor = accounts.find_by_id(storage, actor_id)
    if not actor:
        logger.warning(f"Notification trigger for unknown account: {actor_id}", extra={"action": action})
        return []
    return create_role_based_notification(storage, actor.account_id, actor.name, actor.role, action, target)


def create_notification_for_all(
    storage: Storage,
    from_user_id: str,
    from_user_name: str,
    from_user_role: str,
    title: str,
    message: str,
    type: str = "info",
    priority: str = "medium",
    expires_at: Optional[datetime] = None,
) -> List[NotificationRecord]:
    """Broadcast: one notification per role."""
    return [
        create_notification(
            storage,
            from_user_id=from_user_id,
            from_user_name=from_user_name,
            from_user_role=from_user_role,
            target_role=role,
            type=type,
            title=title,
            message=message,
            action=BROADCAST_ACTION,
            priority=priority,
            expires_at=expires_at,
        )
        for role in ROLES
    ]


# ---------------------------------------------------------------------------
# Reads and read state
# ---------------------------------------------------------------------------

def get_notifications_for_user(
    storage: Storage,
    user_id: str,
    role: str,
    limit: int = 50,
) -> List[NotificationRecord]:
    """Visible, unexpired notifications, newest first."""
    now = datetime.utcnow()

    def _persistent(db: Session) -> List[NotificationRecord]:
        rows = (
            db.query(Notification)
            .filter(_visible_to(user_id, role), _not_expired(now))
            .order_by(Notification.timestamp.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )
        return [_to_record(row) for row in rows]

    def _memory(mem: MemoryStore) -> List[NotificationRecord]:
        with mem.lock:
            visible = _visible_memory(mem, user_id, role, now)
            visible = sorted(visible, key=lambda n: n.timestamp, reverse=True)
            return [n.model_copy(deep=True) for n in visible[:limit]]

    return storage.with_database(_persistent, _memory)


def get_unread_count(storage: Storage, user_id: str, role: str) -> int:
    now = datetime.utcnow()

    def _persistent(db: Session) -> int:
        return (
            db.query(Notification)
            .filter(_visible_to(user_id, role), _not_expired(now), Notification.read == False)  # noqa: E712
            .count()
        )

    def _memory(mem: MemoryStore) -> int:
        with mem.lock:
            return sum(1 for n in _visible_memory(mem, user_id, role, now) if not n.read)

    return storage.with_database(_persistent, _memory)


def mark_notification_as_read(storage: Storage, notification_id: str, user_id: str, role: str) -> bool:
    """Idempotent. Returns False when the notification is not visible to the caller."""
    now = datetime.utcnow()

    def _persistent(db: Session) -> bool:
        row = (
            db.query(Notification)
            .filter(Notification.notification_id == notification_id, _visible_to(user_id, role), _not_expired(now))
            .first()
        )
        if not row:
            return False
        row.read = True
        return True

    def _memory(mem: MemoryStore) -> bool:
        with mem.lock:
            for n in _visible_memory(mem, user_id, role, now):
                if n.notification_id == notification_id:
                    n.read = True
                    return True
        return False

    return storage.with_database(_persistent, _memory)


def mark_all_notifications_as_read(storage: Storage, user_id: str, role: str) -> int:
    """Mark every visible unread notification; returns how many changed."""
    now = datetime.utcnow()

    def _persistent(db: Session) -> int:
        return (
            db.query(Notification)
            .filter(_visible_to(user_id, role), _not_expired(now), Notification.read == False)  # noqa: E712
            .update({Notification.read: True}, synchronize_session=False)
        )

    def _memory(mem: MemoryStore) -> int:
        changed = 0
        with mem.lock:
            for n in _visible_memory(mem, user_id, role, now):
                if not n.read:
                    n.read = True
                    changed += 1
        return changed

    return storage.with_database(_persistent, _memory)


def delete_notification(storage: Storage, notification_id: str, user_id: str, role: str) -> bool:
    def _persistent(db: Session) -> bool:
        deleted = (
            db.query(Notification)
            .filter(Notification.notification_id == notification_id, _visible_to(user_id, role))
            .delete(synchronize_session=False)
        )
        return deleted > 0

    def _memory(mem: MemoryStore) -> bool:
        with mem.lock:
            for i, n in enumerate(mem.notifications):
                if n.notification_id == notification_id and n.is_visible_to(user_id, role):
                    del mem.notifications[i]
                    return True
        return False

    return storage.with_database(_persistent, _memory)


def purge_expired_notifications(storage: Storage, now: Optional[datetime] = None) -> int:
    """Delete notifications whose ``expires_at`` has passed; returns the number removed."""
    now = now or datetime.utcnow()

    def _persistent(db: Session) -> int:
        return (
            db.query(Notification)
            .filter(Notification.expires_at.isnot(None), Notification.expires_at <= now)
            .delete(synchronize_session=False)
        )

    def _memory(mem: MemoryStore) -> int:
        with mem.lock:
            before = len(mem.notifications)
            mem.notifications[:] = [n for n in mem.notifications if not n.is_expired(now)]
            return before - len(mem.notifications)

    removed = storage.with_database(_persistent, _memory)
    if removed:
        logger.info(f"Purged {removed} expired notifications", extra={"notification_count": removed})
    return removed

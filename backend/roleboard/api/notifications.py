"""Notification endpoints: inbox, read state, broadcast and rule triggers"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request

from roleboard.api.deps import AuthContext, client_ip, get_current_account, get_storage, require_permission, require_role
from roleboard.config import settings
from roleboard.errors import NotFoundError
from roleboard.permissions import MAIN_ADMIN, MANAGE_NOTIFICATIONS, SUB_ADMIN
from roleboard.schemas.auth import MessageResponse
from roleboard.schemas.notification import (
    BroadcastCreate,
    BroadcastResponse,
    NotificationList,
    NotificationTrigger,
    ReadStateResponse,
    TriggerResponse,
)
from roleboard.services import notifications
from roleboard.services.activity import record_activity
from roleboard.services.notifications import TargetDetails
from roleboard.storage import Storage
from roleboard.utils.logger import logger

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
def list_notifications(
    limit: int = Query(settings.NOTIFICATION_LIMIT, ge=1, le=500),
    ctx: AuthContext = Depends(get_current_account),
    storage: Storage = Depends(get_storage),
):
    """Notifications addressed to the caller or the caller's role, newest first."""
    return NotificationList(
        notifications=notifications.get_notifications_for_user(storage, ctx.account_id, ctx.role, limit=limit),
        unread_count=notifications.get_unread_count(storage, ctx.account_id, ctx.role),
    )


@router.get("/unread-count")
def unread_count(
    ctx: AuthContext = Depends(get_current_account),
    storage: Storage = Depends(get_storage),
) -> Dict[str, Any]:
    return {"unread_count": notifications.get_unread_count(storage, ctx.account_id, ctx.role)}


@router.post(
    "",
    response_model=BroadcastResponse,
    status_code=201,
    dependencies=[Depends(require_role(MAIN_ADMIN))],
)
def broadcast(
    request: Request,
    data: BroadcastCreate,
    ctx: AuthContext = Depends(require_permission(MANAGE_NOTIFICATIONS)),
    storage: Storage = Depends(get_storage),
):
    """
    Send a manually authored announcement to every role (main-admin only).

    Bypasses the rule table; stores one notification per role.
    """
    created = notifications.create_notification_for_all(
        storage,
        from_user_id=ctx.account_id,
        from_user_name=ctx.name,
        from_user_role=ctx.role,
        title=data.title,
        message=data.message,
        type=data.type,
        priority=data.priority,
        expires_at=data.expires_at,
    )

    record_activity(
        storage,
        actor_id=ctx.account_id,
        actor_name=ctx.name,
        actor_role=ctx.role,
        action=notifications.BROADCAST_ACTION,
        target="notification",
        details={"title": data.title, "priority": data.priority},
        ip_address=client_ip(request),
    )

    logger.info(
        f"Broadcast sent: {data.title}",
        extra={"account_id": ctx.account_id, "notification_count": len(created)},
    )
    return BroadcastResponse(
        message="Notification sent to all users",
        notifications=len(created),
        data=created,
    )


@router.post(
    "/trigger",
    response_model=TriggerResponse,
)
def trigger(
    data: NotificationTrigger,
    ctx: AuthContext = Depends(require_role(MAIN_ADMIN, SUB_ADMIN)),
    storage: Storage = Depends(get_storage),
):
    """
    Run a rule-driven action as the caller (e.g. ``security_alert``, ``bulk_action``).

    Actions without a rule for the caller's role produce no notifications.
    """
    created = notifications.trigger_notification(
        storage,
        ctx.account_id,
        data.action,
        TargetDetails(name=data.target_name, id=data.target_id, count=data.count, details=data.details),
    )
    return TriggerResponse(
        message=f"Notification triggered: {data.action}",
        notifications=len(created),
    )


@router.put("/mark-all-read", response_model=ReadStateResponse)
def mark_all_read(
    ctx: AuthContext = Depends(get_current_account),
    storage: Storage = Depends(get_storage),
):
    changed = notifications.mark_all_notifications_as_read(storage, ctx.account_id, ctx.role)
    return ReadStateResponse(
        message="All notifications marked as read",
        unread_count=notifications.get_unread_count(storage, ctx.account_id, ctx.role),
        marked_count=changed,
    )


@router.put("/{notification_id}/read", response_model=ReadStateResponse)
def mark_read(
    notification_id: str,
    ctx: AuthContext = Depends(get_current_account),
    storage: Storage = Depends(get_storage),
):
    """Mark one notification as read. Marking it again is not an error."""
    if not notifications.mark_notification_as_read(storage, notification_id, ctx.account_id, ctx.role):
        raise NotFoundError("Notification not found")
    return ReadStateResponse(
        message="Notification marked as read",
        unread_count=notifications.get_unread_count(storage, ctx.account_id, ctx.role),
    )


@router.delete("/{notification_id}", response_model=MessageResponse)
def delete(
    notification_id: str,
    ctx: AuthContext = Depends(get_current_account),
    storage: Storage = Depends(get_storage),
):
    if not notifications.delete_notification(storage, notification_id, ctx.account_id, ctx.role):
        raise NotFoundError("Notification not found")
    return MessageResponse(message="Notification deleted")

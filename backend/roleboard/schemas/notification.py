"""Notification schemas"""
from datetime import datetime, timezone
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

NotificationType = Literal["info", "warning", "success", "error"]
NotificationPriority = Literal["low", "medium", "high", "urgent"]


class NotificationRecord(BaseModel):
    """A stored notification"""

    notification_id: str
    target_role: Optional[Union[str, List[str]]] = None
    target_user_id: Optional[str] = None
    from_user_id: str
    from_user_name: str
    from_user_role: str
    type: str
    title: str
    message: str
    action: Optional[str] = None
    target_resource: Optional[str] = None
    target_resource_id: Optional[str] = None
    read: bool = False
    priority: str
    expires_at: Optional[datetime] = None
    timestamp: datetime

    class Config:
        from_attributes = True

    def is_visible_to(self, user_id: str, role: str) -> bool:
        if self.target_user_id is not None and self.target_user_id == user_id:
            return True
        if isinstance(self.target_role, list):
            return role in self.target_role
        return self.target_role == role

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class BroadcastCreate(BaseModel):
    """Manually authored announcement sent to every role"""

    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    type: NotificationType = "info"
    priority: NotificationPriority = "medium"
    expires_at: Optional[datetime] = Field(None, description="Remove the notification after this time")

    @field_validator("expires_at")
    @classmethod
    def check_expires_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return value
        # Stored timestamps are naive UTC
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        if value <= datetime.utcnow():
            raise ValueError("expires_at must be in the future")
        return value


class NotificationTrigger(BaseModel):
    """Run a rule-driven action (e.g. ``security_alert``) as the caller"""

    action: str = Field(..., min_length=1)
    target_name: Optional[str] = None
    target_id: Optional[str] = None
    count: Optional[int] = Field(None, ge=0)
    details: Optional[str] = None


class NotificationList(BaseModel):
    notifications: List[NotificationRecord]
    unread_count: int


class ReadStateResponse(BaseModel):
    message: str
    unread_count: int
    marked_count: Optional[int] = None


class BroadcastResponse(BaseModel):
    message: str
    notifications: int   # number of stored notifications (one per role)
    data: List[NotificationRecord]


class TriggerResponse(BaseModel):
    message: str
    notifications: int

"""Notification model"""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text

from roleboard.database import Base


def generate_uuid_string():
    """Generate UUID as string for SQLite compatibility"""
    return str(uuid.uuid4())


class Notification(Base):
    """Notification addressed to a role, a list of roles, or a single account.

    ``target_role`` holds either a role string or a list of role strings (JSON).
    ``expires_at`` rows are removed by the expiry sweeper.
    """

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    notification_id = Column(String(36), default=generate_uuid_string, unique=True, nullable=False, index=True)
    target_role = Column(JSON, nullable=True)
    target_user_id = Column(String(50), nullable=True, index=True)
    from_user_id = Column(String(50), nullable=False, index=True)
    from_user_name = Column(String(255), nullable=False)
    from_user_role = Column(String(20), nullable=False)
    type = Column(String(20), default="info", nullable=False)            # info|warning|success|error
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    action = Column(String(100), nullable=True, index=True)
    target_resource = Column(String(100), nullable=True)
    target_resource_id = Column(String(50), nullable=True)
    read = Column(Boolean, default=False, nullable=False, index=True)
    priority = Column(String(20), default="medium", nullable=False)      # low|medium|high|urgent
    expires_at = Column(DateTime, nullable=True, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

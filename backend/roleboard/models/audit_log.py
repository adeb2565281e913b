"""Audit log model"""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, JSON, String

from roleboard.database import Base


def generate_uuid_string():
    """Generate UUID as string for SQLite compatibility"""
    return str(uuid.uuid4())


class AuditLog(Base):
    """AuditLog model - append-only record of privileged actions.

    ``user_id`` is a weak reference: deleting the account leaves its entries intact.
    """

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    log_id = Column(String(36), default=generate_uuid_string, unique=True, nullable=False, index=True)
    user_id = Column(String(50), nullable=False, index=True)
    user_name = Column(String(255), nullable=False)
    user_role = Column(String(20), nullable=False)
    action = Column(String(100), nullable=False, index=True)
    target = Column(String(100), nullable=True)
    target_id = Column(String(50), nullable=True)
    details = Column(JSON, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    ip_address = Column(String(64), nullable=True)

"""Account model: main-admin, sub-admin and user accounts"""
import secrets
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String

from roleboard.database import Base


def generate_account_id() -> str:
    return f"acc_{secrets.token_urlsafe(12)}"


class Account(Base):
    """A dashboard account.

    ``email`` is always stored lower-cased; the unique index on it is what
    enforces case-insensitive uniqueness. ``permissions`` is embedded by value.
    """

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    account_id = Column(String(50), default=generate_account_id, unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, index=True)                # main-admin|sub-admin|user
    permissions = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)
    created_by = Column(String(50), nullable=True)                       # account_id of the creator

"""Account schemas"""
import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(value: str) -> str:
    """Trim and lower-case an email address; raise ValueError if malformed."""
    value = value.strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValueError("invalid email address")
    return value


class AccountResponse(BaseModel):
    """Account as presented externally (no password hash)."""

    account_id: str
    email: str
    name: str
    role: str
    permissions: List[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime
    last_login: Optional[datetime] = None
    created_by: Optional[str] = None

    class Config:
        from_attributes = True


class AccountInDB(AccountResponse):
    """Account including its password hash, for authentication only."""

    password_hash: str

    def public(self) -> AccountResponse:
        return AccountResponse(**self.model_dump(exclude={"password_hash"}))


class _DisplayName(BaseModel):
    """Trims ``name`` and rejects names that are only whitespace."""

    @field_validator("name", check_fields=False)
    @classmethod
    def check_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class _AccountCreate(_DisplayName):
    email: str = Field(..., description="Login email (case-insensitive, unique)")
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    password: str = Field(..., description="Plain-text password, checked against the password policy")

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return normalize_email(value)


class SubAdminCreate(_AccountCreate):
    permissions: List[str] = Field(..., description="Subset of the sub-admin permission catalog")


class UserCreate(_AccountCreate):
    role: Optional[Literal["user"]] = Field(None, description="Only 'user' may be created here")


class SubAdminUpdate(_DisplayName):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    permissions: Optional[List[str]] = None
    is_active: Optional[bool] = None

    class Config:
        extra = "forbid"


class UserUpdate(_DisplayName):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    is_active: Optional[bool] = None

    class Config:
        extra = "forbid"


class ProfileUpdate(_DisplayName):
    name: str = Field(..., min_length=1, max_length=255)

    class Config:
        extra = "forbid"


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


class UserList(BaseModel):
    users: List[AccountResponse]


class SubAdminList(BaseModel):
    sub_admins: List[AccountResponse]


class SubAdminEnvelope(BaseModel):
    sub_admin: AccountResponse

"""Authentication schemas"""
from pydantic import BaseModel, Field

from roleboard.schemas.account import AccountResponse


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    user: AccountResponse
    token: str
    token_type: str = "bearer"
    expires_in: int   # seconds until expiry


class ProfileResponse(BaseModel):
    user: AccountResponse


class MessageResponse(BaseModel):
    message: str

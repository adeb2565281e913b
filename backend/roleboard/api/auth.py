"""Authentication endpoints: login, logout, profile"""
from fastapi import APIRouter, Depends, Request

from roleboard.api.deps import AuthContext, client_ip, get_current_account, get_storage, require_permission
from roleboard.config import settings
from roleboard.errors import AuthenticationError, NotFoundError
from roleboard.middleware.monitoring import record_auth_failure
from roleboard.middleware.rate_limit import limiter
from roleboard.permissions import EDIT_PROFILE
from roleboard.schemas.account import PasswordChange, ProfileUpdate
from roleboard.schemas.auth import LoginRequest, LoginResponse, MessageResponse, ProfileResponse
from roleboard.services import accounts, tokens
from roleboard.services.activity import record_activity
from roleboard.storage import Storage
from roleboard.utils.jwt_utils import create_access_token
from roleboard.utils.logger import logger
from roleboard.utils.passwords import verify_password

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def login(
    request: Request,
    data: LoginRequest,
    storage: Storage = Depends(get_storage),
):
    """
    Exchange email + password for a bearer token.

    A failed attempt writes no audit entry. A successful one updates
    ``last_login`` and records a ``login`` entry.
    """
    account = accounts.find_by_email(storage, data.email)
    if not account or not verify_password(data.password, account.password_hash):
        record_auth_failure("invalid_credentials")
        raise AuthenticationError("Invalid credentials", error="invalid_credentials")

    if not account.is_active:
        record_auth_failure("account_inactive")
        raise AuthenticationError("Account is deactivated", error="account_inactive")

    accounts.update_last_login(storage, account.account_id)
    token = create_access_token(account.account_id, account.email, account.role)

    record_activity(
        storage,
        actor_id=account.account_id,
        actor_name=account.name,
        actor_role=account.role,
        action="login",
        target="auth",
        target_id=account.account_id,
        details={"email": account.email},
        ip_address=client_ip(request),
    )

    logger.info(
        f"Login: {account.account_id}",
        extra={"account_id": account.account_id, "role": account.role},
    )

    refreshed = accounts.find_by_id(storage, account.account_id) or account
    return LoginResponse(
        user=refreshed.public(),
        token=token,
        expires_in=settings.JWT_EXPIRE_SECONDS,
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    ctx: AuthContext = Depends(get_current_account),
    storage: Storage = Depends(get_storage),
):
    """Revoke the presented token and record a ``logout`` entry."""
    tokens.revoke_token(storage, ctx.token_jti, ctx.token_expires_at)

    record_activity(
        storage,
        actor_id=ctx.account_id,
        actor_name=ctx.name,
        actor_role=ctx.role,
        action="logout",
        target="auth",
        target_id=ctx.account_id,
        details={"email": ctx.email},
        ip_address=client_ip(request),
    )
    return MessageResponse(message="Logged out successfully")


def _profile(storage: Storage, ctx: AuthContext) -> ProfileResponse:
    account = accounts.find_by_id(storage, ctx.account_id)
    if not account:
        raise AuthenticationError("Account not found", error="account_not_found")
    return ProfileResponse(user=account.public())


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    ctx: AuthContext = Depends(get_current_account),
    storage: Storage = Depends(get_storage),
):
    """Return the caller's account."""
    return _profile(storage, ctx)


@router.get("/verify", response_model=ProfileResponse)
def verify_token(
    ctx: AuthContext = Depends(get_current_account),
    storage: Storage = Depends(get_storage),
):
    """Token check used by clients on startup; same payload as ``/profile``."""
    return _profile(storage, ctx)


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    request: Request,
    data: ProfileUpdate,
    ctx: AuthContext = Depends(require_permission(EDIT_PROFILE)),
    storage: Storage = Depends(get_storage),
):
    """Change the caller's display name."""
    account = accounts.update_account(storage, ctx.account_id, {"name": data.name})
    if not account:
        raise NotFoundError("Account not found")

    record_activity(
        storage,
        actor_id=ctx.account_id,
        actor_name=account.name,
        actor_role=ctx.role,
        action="update_profile",
        target="user",
        target_id=ctx.account_id,
        details={"name": account.name},
        ip_address=client_ip(request),
    )
    return ProfileResponse(user=account)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    request: Request,
    data: PasswordChange,
    ctx: AuthContext = Depends(require_permission(EDIT_PROFILE)),
    storage: Storage = Depends(get_storage),
):
    """Replace the caller's password. Existing tokens stay valid until they expire."""
    if not accounts.change_password(storage, ctx.account_id, data.current_password, data.new_password):
        raise NotFoundError("Account not found")

    record_activity(
        storage,
        actor_id=ctx.account_id,
        actor_name=ctx.name,
        actor_role=ctx.role,
        action="change_password",
        target="auth",
        target_id=ctx.account_id,
        ip_address=client_ip(request),
    )
    return MessageResponse(message="Password changed successfully")

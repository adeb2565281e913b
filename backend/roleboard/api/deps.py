"""API dependencies for authentication and authorization.

Every protected route resolves the caller through :func:`get_current_account`
(``Authorization: Bearer <JWT>``), then applies zero or more gates built by the
factories below. Gates are independent: a route that needs a role AND a
permission lists both.

Failures:
    401  token_missing | token_expired | token_invalid | token_revoked
         | account_not_found | account_inactive
    403  role or permission gate rejected the caller
"""
from datetime import datetime
from typing import Callable, Iterable, List, NamedTuple, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from roleboard.errors import AuthenticationError, AuthorizationError
from roleboard.middleware.monitoring import record_auth_failure, record_authorization_denial
from roleboard.permissions import has_all_permissions, has_any_permission, has_permission
from roleboard.services import accounts, tokens
from roleboard.storage import Storage
from roleboard.utils.jwt_utils import decode_access_token, token_expiry

_bearer_scheme = HTTPBearer(auto_error=False)


class AuthContext(NamedTuple):
    """Resolved caller identity, populated by :func:`get_current_account`."""
    account_id: str
    email: str
    name: str
    role: str
    permissions: List[str]
    token_jti: str
    token_expires_at: datetime


def get_storage(request: Request) -> Storage:
    """The process-wide storage built at startup."""
    return request.app.state.storage


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _fail(message: str, error: str) -> AuthenticationError:
    record_auth_failure(error)
    return AuthenticationError(message, error=error)


# ---------------------------------------------------------------------------
# get_current_account
# ---------------------------------------------------------------------------

def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    storage: Storage = Depends(get_storage),
) -> AuthContext:
    """Verify the bearer token and load the account it names.

    Permissions come from the stored account, not the token, so edits to a
    sub-admin take effect on the next request.
    """
    if not credentials or not credentials.credentials:
        raise _fail("Access token is required", "token_missing")

    try:
        payload = decode_access_token(credentials.credentials)
    except AuthenticationError as exc:
        record_auth_failure(exc.error)
        raise

    jti = payload["jti"]
    if tokens.is_token_revoked(storage, jti):
        raise _fail("Token has been revoked", "token_revoked")

    account = accounts.find_by_id(storage, payload["sub"])
    if not account:
        raise _fail("Account not found", "account_not_found")
    if not account.is_active:
        raise _fail("Account is deactivated", "account_inactive")

    return AuthContext(
        account_id=account.account_id,
        email=account.email,
        name=account.name,
        role=account.role,
        permissions=list(account.permissions),
        token_jti=jti,
        token_expires_at=token_expiry(payload),
    )


# ---------------------------------------------------------------------------
# Gate factories
# ---------------------------------------------------------------------------

def require_role(*roles: str) -> Callable:
    """Return a dependency that admits only callers whose role is in ``roles``.

    Usage::

        @router.post("/notifications")
        def broadcast(ctx: AuthContext = Depends(require_role("main-admin"))):
            ...
    """

    def _role_dep(ctx: AuthContext = Depends(get_current_account)) -> AuthContext:
        if ctx.role not in roles:
            record_authorization_denial(f"role:{'|'.join(roles)}")
            raise AuthorizationError(
                f"Role required: {' or '.join(roles)} (your role: '{ctx.role}')"
            )
        return ctx

    # Give FastAPI a unique name so it doesn't collapse distinct dependencies
    _role_dep.__name__ = "require_role_" + "_".join(r.replace("-", "_") for r in roles)
    return _role_dep


def require_permission(permission: str) -> Callable:
    def _permission_dep(ctx: AuthContext = Depends(get_current_account)) -> AuthContext:
        if not has_permission(ctx.permissions, permission):
            record_authorization_denial(permission)
            raise AuthorizationError(f"Permission required: {permission}")
        return ctx

    _permission_dep.__name__ = f"require_permission_{permission}"
    return _permission_dep


def require_any_permission(permissions: Iterable[str]) -> Callable:
    required = tuple(permissions)

    def _any_dep(ctx: AuthContext = Depends(get_current_account)) -> AuthContext:
        if not has_any_permission(ctx.permissions, required):
            record_authorization_denial("any:" + "|".join(required))
            raise AuthorizationError(f"One of these permissions is required: {', '.join(required)}")
        return ctx

    _any_dep.__name__ = "require_any_" + "_".join(required)
    return _any_dep


def require_all_permissions(permissions: Iterable[str]) -> Callable:
    required = tuple(permissions)

    def _all_dep(ctx: AuthContext = Depends(get_current_account)) -> AuthContext:
        if not has_all_permissions(ctx.permissions, required):
            record_authorization_denial("all:" + "|".join(required))
            missing = [p for p in required if p not in ctx.permissions]
            raise AuthorizationError("Missing required permissions", details=missing)
        return ctx

    _all_dep.__name__ = "require_all_" + "_".join(required)
    return _all_dep

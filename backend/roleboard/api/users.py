"""Ordinary user account management"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from roleboard.api.deps import AuthContext, client_ip, get_storage, require_permission
from roleboard.errors import NotFoundError
from roleboard.permissions import DELETE_USER, EDIT_USER, ROLES, USER, VIEW_ALL_USERS
from roleboard.schemas.account import AccountResponse, UserCreate, UserList, UserUpdate
from roleboard.schemas.auth import MessageResponse, ProfileResponse
from roleboard.services import accounts
from roleboard.services.activity import record_activity
from roleboard.services.notifications import TargetDetails
from roleboard.storage import Storage

router = APIRouter(prefix="/users", tags=["users"])


def _get_user(storage: Storage, account_id: str) -> AccountResponse:
    """Load an account that must have role ``user``; anything else is a 404."""
    account = accounts.find_by_id(storage, account_id)
    if not account or account.role != USER:
        raise NotFoundError("User not found")
    return account.public()


@router.get("", response_model=UserList)
def list_users(
    role: Optional[str] = Query(None, description=f"Filter by role ({', '.join(ROLES)})"),
    storage: Storage = Depends(get_storage),
    _: AuthContext = Depends(require_permission(VIEW_ALL_USERS)),
):
    """List accounts, newest first."""
    return UserList(users=accounts.list_accounts(storage, role=role))


@router.post("", response_model=ProfileResponse, status_code=201)
def create_user(
    request: Request,
    data: UserCreate,
    storage: Storage = Depends(get_storage),
    ctx: AuthContext = Depends(require_permission(EDIT_USER)),
):
    """Create an account with role ``user``."""
    user = accounts.create_account(
        storage,
        email=data.email,
        name=data.name,
        password=data.password,
        role=USER,
        created_by=ctx.account_id,
    )

    record_activity(
        storage,
        actor_id=ctx.account_id,
        actor_name=ctx.name,
        actor_role=ctx.role,
        action="create_user",
        target="user",
        target_id=user.account_id,
        details={"email": user.email, "name": user.name},
        ip_address=client_ip(request),
        notify=TargetDetails(name=user.name, id=user.account_id),
    )
    return ProfileResponse(user=user)


@router.put("/{account_id}", response_model=ProfileResponse)
def update_user(
    account_id: str,
    request: Request,
    data: UserUpdate,
    storage: Storage = Depends(get_storage),
    ctx: AuthContext = Depends(require_permission(EDIT_USER)),
):
    """Rename or (de)activate a user."""
    _get_user(storage, account_id)

    changes = data.model_dump(exclude_none=True)
    user = accounts.update_account(storage, account_id, changes)
    if not user:
        raise NotFoundError("User not found")

    record_activity(
        storage,
        actor_id=ctx.account_id,
        actor_name=ctx.name,
        actor_role=ctx.role,
        action="update_user",
        target="user",
        target_id=account_id,
        details=changes,
        ip_address=client_ip(request),
    )
    return ProfileResponse(user=user)


@router.delete("/{account_id}", response_model=MessageResponse)
def delete_user(
    account_id: str,
    request: Request,
    storage: Storage = Depends(get_storage),
    ctx: AuthContext = Depends(require_permission(DELETE_USER)),
):
    """Hard-delete a user. Their audit entries and notifications are kept."""
    user = _get_user(storage, account_id)
    if not accounts.delete_account(storage, account_id):
        raise NotFoundError("User not found")

    record_activity(
        storage,
        actor_id=ctx.account_id,
        actor_name=ctx.name,
        actor_role=ctx.role,
        action="delete_user",
        target="user",
        target_id=account_id,
        details={"email": user.email, "name": user.name},
        ip_address=client_ip(request),
        notify=TargetDetails(name=user.name, id=account_id),
    )
    return MessageResponse(message="User deleted successfully")

"""Sub-admin account management (main-admin territory)"""
from fastapi import APIRouter, Depends, Request

from roleboard.api.deps import AuthContext, client_ip, get_storage, require_any_permission, require_permission
from roleboard.errors import NotFoundError
from roleboard.permissions import CREATE_SUB_ADMIN, DELETE_SUB_ADMIN, EDIT_SUB_ADMIN, SUB_ADMIN
from roleboard.schemas.account import (
    AccountResponse,
    SubAdminCreate,
    SubAdminEnvelope,
    SubAdminList,
    SubAdminUpdate,
)
from roleboard.schemas.auth import MessageResponse
from roleboard.services import accounts
from roleboard.services.activity import record_activity
from roleboard.services.notifications import TargetDetails
from roleboard.storage import Storage

router = APIRouter(prefix="/sub-admins", tags=["sub-admins"])

_MANAGE_SUB_ADMINS = (CREATE_SUB_ADMIN, EDIT_SUB_ADMIN, DELETE_SUB_ADMIN)


def _get_sub_admin(storage: Storage, account_id: str) -> AccountResponse:
    account = accounts.find_by_id(storage, account_id)
    if not account or account.role != SUB_ADMIN:
        raise NotFoundError("Sub-admin not found")
    return account.public()


@router.get("", response_model=SubAdminList)
def list_sub_admins(
    storage: Storage = Depends(get_storage),
    _: AuthContext = Depends(require_any_permission(_MANAGE_SUB_ADMINS)),
):
    return SubAdminList(sub_admins=accounts.list_sub_admins(storage))


@router.post("", response_model=SubAdminEnvelope, status_code=201)
def create_sub_admin(
    request: Request,
    data: SubAdminCreate,
    storage: Storage = Depends(get_storage),
    ctx: AuthContext = Depends(require_permission(CREATE_SUB_ADMIN)),
):
    """
    Create a sub-admin with an explicit permission subset.

    Any permission outside the sub-admin catalog is rejected (400) and listed
    in ``details``.
    """
    sub_admin = accounts.create_account(
        storage,
        email=data.email,
        name=data.name,
        password=data.password,
        role=SUB_ADMIN,
        permissions=data.permissions,
        created_by=ctx.account_id,
    )

    record_activity(
        storage,
        actor_id=ctx.account_id,
        actor_name=ctx.name,
        actor_role=ctx.role,
        action="create_sub_admin",
        target="user",
        target_id=sub_admin.account_id,
        details={"email": sub_admin.email, "name": sub_admin.name, "permissions": sub_admin.permissions},
        ip_address=client_ip(request),
        notify=TargetDetails(name=sub_admin.name, id=sub_admin.account_id),
    )
    return SubAdminEnvelope(sub_admin=sub_admin)


@router.put("/{account_id}", response_model=SubAdminEnvelope)
def update_sub_admin(
    account_id: str,
    request: Request,
    data: SubAdminUpdate,
    storage: Storage = Depends(get_storage),
    ctx: AuthContext = Depends(require_permission(EDIT_SUB_ADMIN)),
):
    """Rename, (de)activate or re-scope a sub-admin."""
    _get_sub_admin(storage, account_id)

    changes = data.model_dump(exclude_none=True)
    sub_admin = accounts.update_account(storage, account_id, changes)
    if not sub_admin:
        raise NotFoundError("Sub-admin not found")

    record_activity(
        storage,
        actor_id=ctx.account_id,
        actor_name=ctx.name,
        actor_role=ctx.role,
        action="update_sub_admin",
        target="user",
        target_id=account_id,
        details=changes,
        ip_address=client_ip(request),
    )
    return SubAdminEnvelope(sub_admin=sub_admin)


@router.delete("/{account_id}", response_model=MessageResponse)
def delete_sub_admin(
    account_id: str,
    request: Request,
    storage: Storage = Depends(get_storage),
    ctx: AuthContext = Depends(require_permission(DELETE_SUB_ADMIN)),
):
    sub_admin = _get_sub_admin(storage, account_id)
    if not accounts.delete_account(storage, account_id):
        raise NotFoundError("Sub-admin not found")

    record_activity(
        storage,
        actor_id=ctx.account_id,
        actor_name=ctx.name,
        actor_role=ctx.role,
        action="delete_sub_admin",
        target="user",
        target_id=account_id,
        details={"email": sub_admin.email, "name": sub_admin.name},
        ip_address=client_ip(request),
        notify=TargetDetails(name=sub_admin.name, id=account_id),
    )
    return MessageResponse(message="Sub-admin deleted successfully")

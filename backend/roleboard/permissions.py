"""Role → permission model.

The permission catalog and the role table are fixed data. Changing a
sub-admin's access means storing a different subset of the sub-admin
catalog on the account, never inventing a permission.
"""
from typing import Dict, Iterable, List, Optional, Tuple

# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------

MAIN_ADMIN = "main-admin"
SUB_ADMIN = "sub-admin"
USER = "user"

ROLES: Tuple[str, ...] = (MAIN_ADMIN, SUB_ADMIN, USER)

# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------

CREATE_SUB_ADMIN = "create_sub_admin"
EDIT_SUB_ADMIN = "edit_sub_admin"
DELETE_SUB_ADMIN = "delete_sub_admin"
VIEW_ALL_USERS = "view_all_users"
EDIT_USER = "edit_user"
DELETE_USER = "delete_user"
VIEW_ANALYTICS = "view_analytics"
VIEW_AUDIT_LOGS = "view_audit_logs"
MANAGE_NOTIFICATIONS = "manage_notifications"
VIEW_DASHBOARD = "view_dashboard"
EDIT_PROFILE = "edit_profile"

PERMISSIONS: Tuple[str, ...] = (
    CREATE_SUB_ADMIN,
    EDIT_SUB_ADMIN,
    DELETE_SUB_ADMIN,
    VIEW_ALL_USERS,
    EDIT_USER,
    DELETE_USER,
    VIEW_ANALYTICS,
    VIEW_AUDIT_LOGS,
    MANAGE_NOTIFICATIONS,
    VIEW_DASHBOARD,
    EDIT_PROFILE,
)

ROLE_PERMISSIONS: Dict[str, Tuple[str, ...]] = {
    MAIN_ADMIN: PERMISSIONS,
    SUB_ADMIN: (
        VIEW_ALL_USERS,
        EDIT_USER,
        VIEW_ANALYTICS,
        VIEW_DASHBOARD,
        EDIT_PROFILE,
    ),
    USER: (
        VIEW_DASHBOARD,
        EDIT_PROFILE,
    ),
}


def permissions_for_role(role: str) -> List[str]:
    """Return the fixed permission list for ``role`` (empty for unknown roles)."""
    return list(ROLE_PERMISSIONS.get(role, ()))


def has_permission(permissions: Optional[Iterable[str]], required: str) -> bool:
    if permissions is None:
        return False
    return required in set(permissions)


def has_any_permission(permissions: Optional[Iterable[str]], required: Iterable[str]) -> bool:
    if permissions is None:
        return False
    granted = set(permissions)
    return any(p in granted for p in required)


def has_all_permissions(permissions: Optional[Iterable[str]], required: Iterable[str]) -> bool:
    if permissions is None:
        return False
    granted = set(permissions)
    return all(p in granted for p in required)


def invalid_sub_admin_permissions(requested: Iterable[str]) -> List[str]:
    """Return the requested permissions that fall outside the sub-admin catalog."""
    catalog = ROLE_PERMISSIONS[SUB_ADMIN]
    return [p for p in requested if p not in catalog]

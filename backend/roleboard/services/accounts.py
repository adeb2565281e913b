"""User directory: account CRUD on top of the storage adapter.

``find_by_email`` / ``find_by_id`` return :class:`AccountInDB` (with the password
hash) and are meant for authentication only; everything else returns
:class:`AccountResponse`.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from roleboard.config import settings
from roleboard.errors import ConflictError, ValidationError
from roleboard.models.account import Account, generate_account_id
from roleboard.permissions import (
    MAIN_ADMIN,
    ROLES,
    SUB_ADMIN,
    USER,
    invalid_sub_admin_permissions,
    permissions_for_role,
)
from roleboard.schemas.account import AccountInDB, AccountResponse, normalize_email
from roleboard.storage import MemoryStore, Storage
from roleboard.utils.logger import logger
from roleboard.utils.passwords import hash_password, validate_password, verify_password

UPDATABLE_FIELDS = ("name", "is_active", "permissions")


def _to_record(account: Account) -> AccountInDB:
    return AccountInDB.model_validate(account)


def _dedupe(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _check_sub_admin_permissions(permissions: List[str]) -> List[str]:
    invalid = invalid_sub_admin_permissions(permissions)
    if invalid:
        raise ValidationError("Invalid permissions for sub-admin role", details=invalid)
    return _dedupe(permissions)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def find_by_email(storage: Storage, email: str) -> Optional[AccountInDB]:
    email = email.strip().lower()

    def _persistent(db: Session) -> Optional[AccountInDB]:
        account = db.query(Account).filter(Account.email == email).first()
        return _to_record(account) if account else None

    def _memory(mem: MemoryStore) -> Optional[AccountInDB]:
        with mem.lock:
            for account in mem.accounts.values():
                if account.email == email:
                    return account.model_copy(deep=True)
        return None

    return storage.with_database(_persistent, _memory)


def find_by_id(storage: Storage, account_id: str) -> Optional[AccountInDB]:
    def _persistent(db: Session) -> Optional[AccountInDB]:
        account = db.query(Account).filter(Account.account_id == account_id).first()
        return _to_record(account) if account else None

    def _memory(mem: MemoryStore) -> Optional[AccountInDB]:
        with mem.lock:
            account = mem.accounts.get(account_id)
            return account.model_copy(deep=True) if account else None

    return storage.with_database(_persistent, _memory)


def list_accounts(storage: Storage, role: Optional[str] = None) -> List[AccountResponse]:
    """All accounts (optionally of one role), newest first, without password hashes."""

    def _persistent(db: Session) -> List[AccountResponse]:
        query = db.query(Account)
        if role:
            query = query.filter(Account.role == role)
        rows = query.order_by(Account.created_at.desc(), Account.id.desc()).all()
        return [_to_record(row).public() for row in rows]

    def _memory(mem: MemoryStore) -> List[AccountResponse]:
        with mem.lock:
            accounts = [a for a in reversed(list(mem.accounts.values())) if role is None or a.role == role]
        accounts = sorted(accounts, key=lambda a: a.created_at, reverse=True)
        return [a.public() for a in accounts]

    return storage.with_database(_persistent, _memory)


def list_sub_admins(storage: Storage) -> List[AccountResponse]:
    return list_accounts(storage, role=SUB_ADMIN)


def count_accounts(
    storage: Storage,
    role: Optional[str] = None,
    active_only: bool = False,
) -> int:
    def _persistent(db: Session) -> int:
        query = db.query(Account)
        if role:
            query = query.filter(Account.role == role)
        if active_only:
            query = query.filter(Account.is_active == True)  # noqa: E712
        return query.count()

    def _memory(mem: MemoryStore) -> int:
        with mem.lock:
            return sum(
                1 for a in mem.accounts.values()
                if (role is None or a.role == role) and (not active_only or a.is_active)
            )

    return storage.with_database(_persistent, _memory)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def _insert_account(
    storage: Storage,
    email: str,
    name: str,
    password_hash: str,
    role: str,
    permissions: List[str],
    created_by: Optional[str],
) -> AccountInDB:
    """Insert an account; uniqueness of ``email`` is enforced by the store itself."""

    def _persistent(db: Session) -> AccountInDB:
        account = Account(
            email=email,
            name=name,
            password_hash=password_hash,
            role=role,
            permissions=permissions,
            is_active=True,
            created_by=created_by,
        )
        db.add(account)
        try:
            db.flush()
        except IntegrityError:
            raise ConflictError("User with this email already exists")
        return _to_record(account)

    def _memory(mem: MemoryStore) -> AccountInDB:
        with mem.lock:
            if any(a.email == email for a in mem.accounts.values()):
                raise ConflictError("User with this email already exists")
            now = datetime.utcnow()
            account = AccountInDB(
                account_id=generate_account_id(),
                email=email,
                name=name,
                password_hash=password_hash,
                role=role,
                permissions=list(permissions),
                is_active=True,
                created_at=now,
                updated_at=now,
                last_login=None,
                created_by=created_by,
            )
            mem.accounts[account.account_id] = account
            return account.model_copy(deep=True)

    return storage.with_database(_persistent, _memory)


def create_account(
    storage: Storage,
    email: str,
    name: str,
    password: str,
    role: str,
    permissions: Optional[List[str]] = None,
    created_by: Optional[str] = None,
) -> AccountResponse:
    """Create a sub-admin or user account.

    Raises:
        ValidationError: main-admin role, unknown role, bad email, weak password,
            or sub-admin permissions outside the catalog.
        ConflictError: the email is already taken (case-insensitive).
    """
    if role == MAIN_ADMIN:
        raise ValidationError("main-admin accounts can only be created at bootstrap")
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join((SUB_ADMIN, USER))}")

    try:
        email = normalize_email(email)
    except ValueError as exc:
        raise ValidationError(str(exc))

    password_errors = validate_password(password)
    if password_errors:
        raise ValidationError("Password validation failed", details=password_errors)

    if role == SUB_ADMIN:
        if permissions is None:
            raise ValidationError("permissions are required for a sub-admin")
        granted = _check_sub_admin_permissions(permissions)
    else:
        granted = permissions_for_role(USER)

    account = _insert_account(
        storage,
        email=email,
        name=name.strip(),
        password_hash=hash_password(password),
        role=role,
        permissions=granted,
        created_by=created_by,
    )
    logger.info(
        f"Created {role} account: {account.account_id}",
        extra={"account_id": account.account_id, "role": role},
    )
    return account.public()


def update_account(
    storage: Storage,
    account_id: str,
    updates: Dict[str, Any],
) -> Optional[AccountResponse]:
    """Apply a partial patch. Only name, active flag and (sub-admin) permissions change.

    Returns None when the account does not exist.
    """
    unknown = [key for key in updates if key not in UPDATABLE_FIELDS]
    if unknown:
        raise ValidationError("Fields cannot be updated", details=unknown)

    changes = {key: value for key, value in updates.items() if value is not None}
    if "permissions" in changes:
        changes["permissions"] = _check_sub_admin_permissions(changes["permissions"])

    def _check_role(role: str) -> None:
        if "permissions" in changes and role != SUB_ADMIN:
            raise ValidationError("Permissions can only be changed on sub-admin accounts")

    def _persistent(db: Session) -> Optional[AccountResponse]:
        account = db.query(Account).filter(Account.account_id == account_id).first()
        if not account:
            return None
        _check_role(account.role)
        for key, value in changes.items():
            setattr(account, key, value)
        account.updated_at = datetime.utcnow()
        db.flush()
        return _to_record(account).public()

    def _memory(mem: MemoryStore) -> Optional[AccountResponse]:
        with mem.lock:
            account = mem.accounts.get(account_id)
            if not account:
                return None
            _check_role(account.role)
            updated = account.model_copy(update={**changes, "updated_at": datetime.utcnow()}, deep=True)
            mem.accounts[account_id] = updated
            return updated.public()

    return storage.with_database(_persistent, _memory)


def delete_account(storage: Storage, account_id: str) -> bool:
    """Hard delete. Audit entries and notifications that reference the account are kept."""

    def _persistent(db: Session) -> bool:
        deleted = db.query(Account).filter(Account.account_id == account_id).delete(synchronize_session=False)
        return deleted > 0

    def _memory(mem: MemoryStore) -> bool:
        with mem.lock:
            return mem.accounts.pop(account_id, None) is not None

    return storage.with_database(_persistent, _memory)


def update_last_login(storage: Storage, account_id: str) -> None:
    def _persistent(db: Session) -> None:
        account = db.query(Account).filter(Account.account_id == account_id).first()
        if account:
            now = datetime.utcnow()
            account.last_login = now
            account.updated_at = now

    def _memory(mem: MemoryStore) -> None:
        with mem.lock:
            account = mem.accounts.get(account_id)
            if account:
                now = datetime.utcnow()
                mem.accounts[account_id] = account.model_copy(update={"last_login": now, "updated_at": now})

    storage.with_database(_persistent, _memory)


def change_password(
    storage: Storage,
    account_id: str,
    current_password: str,
    new_password: str,
) -> bool:
    """Replace an account's password after checking the current one.

    Returns False when the account does not exist.
    """
    account = find_by_id(storage, account_id)
    if not account:
        return False
    if not verify_password(current_password, account.password_hash):
        raise ValidationError("Current password is incorrect")

    password_errors = validate_password(new_password)
    if password_errors:
        raise ValidationError("Password validation failed", details=password_errors)

    password_hash = hash_password(new_password)

    def _persistent(db: Session) -> bool:
        row = db.query(Account).filter(Account.account_id == account_id).first()
        if not row:
            return False
        row.password_hash = password_hash
        row.updated_at = datetime.utcnow()
        return True

    def _memory(mem: MemoryStore) -> bool:
        with mem.lock:
            row = mem.accounts.get(account_id)
            if not row:
                return False
            mem.accounts[account_id] = row.model_copy(
                update={"password_hash": password_hash, "updated_at": datetime.utcnow()}
            )
            return True

    return storage.with_database(_persistent, _memory)


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------

def bootstrap_default_admin(
    storage: Storage,
    email: Optional[str] = None,
    password: Optional[str] = None,
    name: Optional[str] = None,
) -> Optional[AccountResponse]:
    """Seed one main-admin if none exists (idempotent, restart-safe).

    On creation also writes a welcome notification and a ``system_startup``
    audit entry. Returns the created admin, or None if one already existed.
    """
    from roleboard.services import activity, notifications

    email = normalize_email(email or settings.SEED_ADMIN_EMAIL)
    name = name or settings.SEED_ADMIN_NAME
    password = password or settings.SEED_ADMIN_PASSWORD

    def _persistent(db: Session) -> Optional[AccountInDB]:
        if db.query(Account).filter(Account.role == MAIN_ADMIN).first():
            return None
        account = Account(
            email=email,
            name=name,
            password_hash=hash_password(password),
            role=MAIN_ADMIN,
            permissions=permissions_for_role(MAIN_ADMIN),
            is_active=True,
        )
        db.add(account)
        try:
            db.flush()
        except IntegrityError:
            raise ConflictError(f"Cannot seed main-admin: {email} is already registered")
        return _to_record(account)

    def _memory(mem: MemoryStore) -> Optional[AccountInDB]:
        with mem.lock:
            if any(a.role == MAIN_ADMIN for a in mem.accounts.values()):
                return None
            if any(a.email == email for a in mem.accounts.values()):
                raise ConflictError(f"Cannot seed main-admin: {email} is already registered")
            now = datetime.utcnow()
            account = AccountInDB(
                account_id=generate_account_id(),
                email=email,
                name=name,
                password_hash=hash_password(password),
                role=MAIN_ADMIN,
                permissions=permissions_for_role(MAIN_ADMIN),
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            mem.accounts[account.account_id] = account
            return account.model_copy(deep=True)

    admin = storage.with_database(_persistent, _memory)
    if admin is None:
        return None

    logger.info(
        f"Default main-admin created: {email}",
        extra={"account_id": admin.account_id, "role": MAIN_ADMIN, "storage_mode": storage.mode},
    )

    try:
        notifications.create_notification(
            storage,
            from_user_id="system",
            from_user_name="System",
            from_user_role=MAIN_ADMIN,
            target_role=MAIN_ADMIN,
            type="info",
            title="Welcome to Admin Dashboard",
            message="Your admin dashboard is now ready to use!",
            action="system_startup",
            priority="medium",
        )
    except Exception as exc:
        logger.error(f"Failed to create welcome notification: {exc}", exc_info=True)

    activity.record_activity(
        storage,
        actor_id=admin.account_id,
        actor_name=admin.name,
        actor_role=MAIN_ADMIN,
        action="system_startup",
        target="system",
        target_id=admin.account_id,
        details={"startup": True, "email": email},
    )

    return admin.public()

"""Pytest configuration and fixtures"""
import os

# Settings are read at import time
os.environ.setdefault("STORAGE_MODE", "memory")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EXPIRY_SWEEP_INTERVAL_SECONDS", "0")

from typing import Callable, Dict, Generator

import pytest
from fastapi.testclient import TestClient

from roleboard.api.deps import get_storage
from roleboard.config import settings
from roleboard.database import Base, DatabaseConnection
from roleboard.main import app
from roleboard.permissions import EDIT_PROFILE, EDIT_USER, SUB_ADMIN, USER, VIEW_ALL_USERS, VIEW_ANALYTICS, VIEW_DASHBOARD
from roleboard.schemas.account import AccountResponse
from roleboard.services import accounts
from roleboard.storage import MEMORY, PERSISTENT, Storage, StorageConfig

TEST_DATABASE_URL = "sqlite:///./test.db"

SUB_ADMIN_PASSWORD = "SubAdmin1!"
USER_PASSWORD = "UserPass1!"

SUB_ADMIN_PERMISSIONS = [VIEW_ALL_USERS, EDIT_USER, VIEW_ANALYTICS, VIEW_DASHBOARD, EDIT_PROFILE]


@pytest.fixture(scope="function")
def connection() -> Generator[DatabaseConnection, None, None]:
    """Create a fresh database for each test"""
    conn = DatabaseConnection(TEST_DATABASE_URL)
    conn.connect(create_tables=True)
    try:
        yield conn
    finally:
        Base.metadata.drop_all(bind=conn.engine)
        conn.dispose()


@pytest.fixture(scope="function")
def storage(connection: DatabaseConnection) -> Storage:
    """Persistent storage on the test database"""
    return Storage(StorageConfig(mode=PERSISTENT), connection=connection)


@pytest.fixture(scope="function")
def memory_storage() -> Storage:
    return Storage(StorageConfig(mode=MEMORY))


@pytest.fixture(params=[PERSISTENT, MEMORY])
def any_storage(request) -> Storage:
    """Runs the test once per storage mode"""
    if request.param == PERSISTENT:
        return request.getfixturevalue("storage")
    return request.getfixturevalue("memory_storage")


@pytest.fixture(scope="function")
def client(storage: Storage) -> Generator[TestClient, None, None]:
    """Create test client with storage override"""
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login(client: TestClient) -> Callable[[str, str], Dict[str, str]]:
    """Log in and return bearer headers"""

    def _login(email: str, password: str) -> Dict[str, str]:
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login


@pytest.fixture
def main_admin(storage: Storage) -> AccountResponse:
    return accounts.bootstrap_default_admin(storage)


@pytest.fixture
def sub_admin(storage: Storage, main_admin: AccountResponse) -> AccountResponse:
    return accounts.create_account(
        storage,
        email="sam.sub@example.com",
        name="Sam Sub",
        password=SUB_ADMIN_PASSWORD,
        role=SUB_ADMIN,
        permissions=SUB_ADMIN_PERMISSIONS,
        created_by=main_admin.account_id,
    )


@pytest.fixture
def regular_user(storage: Storage, main_admin: AccountResponse) -> AccountResponse:
    return accounts.create_account(
        storage,
        email="uma.user@example.com",
        name="Uma User",
        password=USER_PASSWORD,
        role=USER,
        created_by=main_admin.account_id,
    )


@pytest.fixture
def admin_headers(main_admin: AccountResponse, login) -> Dict[str, str]:
    return login(settings.SEED_ADMIN_EMAIL, settings.SEED_ADMIN_PASSWORD)


@pytest.fixture
def sub_admin_headers(sub_admin: AccountResponse, login) -> Dict[str, str]:
    return login(sub_admin.email, SUB_ADMIN_PASSWORD)


@pytest.fixture
def user_headers(regular_user: AccountResponse, login) -> Dict[str, str]:
    return login(regular_user.email, USER_PASSWORD)

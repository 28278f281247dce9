"""Shared fixtures: an in-memory SQLite database, wired services and a test client."""

import os

# Point the module-level app at SQLite before anything imports gate_auth
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only-do-not-use-in-production")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from gate_auth.config import Config  # noqa: E402
from gate_auth.database import DatabaseManager  # noqa: E402
from gate_auth.main import create_app  # noqa: E402
from gate_auth.models.enums import AdminRole, TokenKind  # noqa: E402
from gate_auth.models.principals import PrincipalContext  # noqa: E402
from gate_auth.services import build_services, ensure_bootstrap_admin  # noqa: E402

BOOTSTRAP_ADMIN_ID = "00000000-0000-0000-0000-000000000001"
BOOTSTRAP_ADMIN = "root"
BOOTSTRAP_PASSWORD = "root-password"


@pytest.fixture
def settings():
    """Create test settings."""
    return Config(
        DB_URL="sqlite://",
        JWT_SECRET="Test-Secret-Key_for-Automation-Only-987654321!",
        JWT_ALGORITHM="HS256",
        JWT_ACCESS_EXPIRY="15m",
        JWT_REFRESH_EXPIRY="720h",
        PASSWORD_HASH_ROUNDS=1000,
        INIT_ADMIN_UUID=BOOTSTRAP_ADMIN_ID,
        INIT_ADMIN=BOOTSTRAP_ADMIN,
        INIT_ADMIN_PASSWORD=BOOTSTRAP_PASSWORD,
        ENV="test",
    )


@pytest.fixture
def database(settings):
    db = DatabaseManager(settings)
    db.init_schema()
    yield db
    db.dispose()


@pytest.fixture
def services(settings):
    return build_services(settings)


@pytest.fixture
def conn(database, services, settings):
    """One transactional connection with the bootstrap super admin already present."""
    with database.get_connection() as connection:
        ensure_bootstrap_admin(connection, settings, services.store, services.hasher)
        yield connection


@pytest.fixture
def super_actor(conn, services):
    admin = services.store.find_admin_by_username(conn, BOOTSTRAP_ADMIN)
    return PrincipalContext(admin.id, admin.username, TokenKind.ADMIN, AdminRole.SUPER)


@pytest.fixture
def client(settings, database):
    """Test client; entering the context runs startup (schema + bootstrap admin)."""
    app = create_app(settings, database)
    with TestClient(app) as test_client:
        yield test_client


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_token(client):
    response = client.post(
        "/api/v1/admin/login",
        json={"username": BOOTSTRAP_ADMIN, "password": BOOTSTRAP_PASSWORD},
    )
    assert response.status_code == 200
    return response.json()["data"]["access_token"]

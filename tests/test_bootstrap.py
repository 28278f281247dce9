"""Tests for the initial super admin."""

import uuid

import pytest

from gate_auth.config import Config
from gate_auth.database import DatabaseManager
from gate_auth.models.enums import AdminRole
from gate_auth.services import build_services, ensure_bootstrap_admin
from gate_auth.utils.exceptions import AlreadyExistsError

from conftest import BOOTSTRAP_ADMIN_ID


def test_bootstrap_creates_super_admin(conn, services):
    admin = services.store.find_admin_by_id(conn, uuid.UUID(BOOTSTRAP_ADMIN_ID))
    assert admin.username == "root"
    assert admin.role == AdminRole.SUPER
    assert admin.token_version == 0
    assert services.hasher.verify("root-password", admin.password_hash)


def test_bootstrap_is_idempotent(conn, services, settings):
    ensure_bootstrap_admin(conn, settings, services.store, services.hasher)
    ensure_bootstrap_admin(conn, settings, services.store, services.hasher)
    _, total = services.store.list_admins(conn, 1, -1)
    assert total == 1


def test_bootstrap_does_not_resurrect_deleted_admin(conn, services, settings):
    admin = services.store.find_admin_by_id(conn, uuid.UUID(BOOTSTRAP_ADMIN_ID))
    services.store.delete_admin(conn, admin)

    ensure_bootstrap_admin(conn, settings, services.store, services.hasher)
    assert services.store.find_admin_by_id(conn, admin.id) is None


def test_bootstrap_refuses_taken_username():
    cfg = Config(
        DB_URL="sqlite://",
        JWT_SECRET="Test-Secret-Key_for-Automation-Only-987654321!",
        PASSWORD_HASH_ROUNDS=1000,
        INIT_ADMIN="root",
    )
    db = DatabaseManager(cfg)
    db.init_schema()
    services = build_services(cfg)
    try:
        with db.get_connection() as conn:
            services.store.create_admin(conn, "root", services.hasher.hash("x" * 8), AdminRole.REGULAR)
            with pytest.raises(AlreadyExistsError):
                ensure_bootstrap_admin(conn, cfg, services.store, services.hasher)
    finally:
        db.dispose()

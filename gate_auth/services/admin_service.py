# =======================================================================================
# gate_auth/services/admin_service.py - Admin Account Management
# =======================================================================================
import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy.engine import Connection

from .audit_service import AuditService
from .credential_store import CredentialStore
from .password_hasher import PasswordHasher
from ..config import Config
from ..models.enums import AdminRole, AuditAction
from ..models.principals import AdminRecord, PrincipalContext, RequestOrigin
from ..utils.exceptions import (
    AlreadyExistsError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from ..utils.validators import InputValidator

logger = logging.getLogger(__name__)


class AdminService:
    """
    Admin CRUD. Super admins manage everyone; a regular admin may only read
    and update their own record and may never change a role.

    Password, username and role changes do not touch token_version: an admin's
    sessions only end when they (or someone with their credentials) log in again.
    """

    def __init__(self, cfg: Config, store: CredentialStore, hasher: PasswordHasher, audit: AuditService):
        self.config = cfg
        self.store = store
        self.hasher = hasher
        self.audit = audit

    @property
    def bootstrap_admin_id(self) -> uuid.UUID:
        return uuid.UUID(self.config.INIT_ADMIN_UUID)

    def list_admins(
        self,
        conn: Connection,
        page: int = 1,
        limit: int = 500,
        search: str = "",
        role: Optional[str] = None,
        order: Optional[str] = "DESC",
    ) -> Tuple[List[AdminRecord], int, int, int]:
        page, limit = InputValidator.normalize_pagination(page, limit)
        role_filter = InputValidator.validate_role(role) if role else None
        admins, total = self.store.list_admins(
            conn, page, limit, search=search, role=role_filter, order=InputValidator.normalize_order(order)
        )
        return admins, total, page, limit

    def create_admin(
        self, conn: Connection, actor: PrincipalContext, username: str, password: str, role: str,
        origin: RequestOrigin = RequestOrigin(),
    ) -> AdminRecord:
        if not username:
            raise ValidationError("Username is required")
        admin_role = InputValidator.validate_role(role)
        InputValidator.validate_password(password, self.config.PASSWORD_MIN_LENGTH)
        if self.store.username_exists(conn, username):
            raise AlreadyExistsError("Admin with this username already exists")

        admin = self.store.create_admin(conn, username, self.hasher.hash(password), admin_role)
        logger.info("Admin %s (%s) created by %s", admin.id, admin_role.value, actor.identity)
        self.audit.record(
            conn, actor, AuditAction.CREATE_ADMIN, "admin", str(admin.id),
            {"username": username, "role": admin_role.value}, origin.ip_address, origin.user_agent,
        )
        return admin

    def get_admin(self, conn: Connection, actor: PrincipalContext, admin_id: uuid.UUID) -> AdminRecord:
        if not actor.is_super and actor.principal_id != admin_id:
            raise ForbiddenError("Regular admins can only access their own record")
        admin = self.store.find_admin_by_id(conn, admin_id)
        if admin is None:
            raise NotFoundError("Admin not found")
        return admin

    def update_admin(
        self,
        conn: Connection,
        actor: PrincipalContext,
        admin_id: uuid.UUID,
        password: Optional[str] = None,
        username: Optional[str] = None,
        role: Optional[str] = None,
        origin: RequestOrigin = RequestOrigin(),
    ) -> AdminRecord:
        if actor.principal_id != admin_id and not actor.is_super:
            raise ForbiddenError("Regular admins can only update their own record")
        if password is None and username is None and role is None:
            raise ValidationError("At least one field (password, username, or role) must be provided")
        if role is not None and not actor.is_super:
            raise ForbiddenError("Only super admins can change admin roles")

        admin = self.store.find_admin_by_id(conn, admin_id)
        if admin is None:
            raise NotFoundError("Admin not found")

        if password is not None:
            InputValidator.validate_password(password, self.config.PASSWORD_MIN_LENGTH)
            admin.password_hash = self.hasher.hash(password)

        if username is not None and username != admin.username:
            if not username:
                raise ValidationError("Username must not be empty")
            if self.store.username_exists(conn, username):
                raise AlreadyExistsError("Admin with this username already exists")
            admin.username = username

        if role is not None:
            admin.role = InputValidator.validate_role(role)

        self.store.save_admin(conn, admin, expected_version=admin.token_version)
        logger.info("Admin %s updated by %s", admin.id, actor.identity)
        self.audit.record(
            conn, actor, AuditAction.UPDATE_ADMIN, "admin", str(admin.id),
            {"password_updated": password is not None, "username": username, "role": role},
            origin.ip_address, origin.user_agent,
        )
        return admin

    def delete_admin(
        self, conn: Connection, actor: PrincipalContext, admin_id: uuid.UUID,
        origin: RequestOrigin = RequestOrigin(),
    ) -> AdminRecord:
        if admin_id == self.bootstrap_admin_id:
            raise ForbiddenError("Cannot delete the initial super admin")
        admin = self.store.find_admin_by_id(conn, admin_id)
        if admin is None:
            raise NotFoundError("Admin not found")

        self.store.delete_admin(conn, admin)
        logger.info("Admin %s deleted by %s", admin.id, actor.identity)
        self.audit.record(
            conn, actor, AuditAction.DELETE_ADMIN, "admin", str(admin.id),
            {"username": admin.username}, origin.ip_address, origin.user_agent,
        )
        return admin

# =======================================================================================
# gate_auth/services/user_service.py - User Management Service (admin side)
# =======================================================================================
import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy.engine import Connection

from .audit_service import AuditService
from .credential_store import CredentialStore
from .password_hasher import PasswordHasher
from ..config import Config
from ..models.enums import AuditAction, SortOrder
from ..models.principals import PrincipalContext, RequestOrigin, UserRecord
from ..utils.exceptions import AlreadyExistsError, NotFoundError
from ..utils.validators import InputValidator

logger = logging.getLogger(__name__)


class UserService:
    """Handles user management operations performed by admins."""

    def __init__(self, cfg: Config, store: CredentialStore, hasher: PasswordHasher, audit: AuditService):
        self.config = cfg
        self.store = store
        self.hasher = hasher
        self.audit = audit

    def list_users(
        self, conn: Connection, page: int = 1, limit: int = 500, search: str = "", order: Optional[str] = "DESC"
    ) -> Tuple[List[UserRecord], int, int, int]:
        """List users with pagination. Returns (users, total, page, limit)."""
        page, limit = InputValidator.normalize_pagination(page, limit)
        sort: SortOrder = InputValidator.normalize_order(order)
        users, total = self.store.list_users(conn, page, limit, search=search, order=sort)
        return users, total, page, limit

    def get_user(self, conn: Connection, user_id: uuid.UUID) -> UserRecord:
        user = self.store.find_user_by_id(conn, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def create_user(
        self, conn: Connection, actor: PrincipalContext, phone: str, password: str,
        origin: RequestOrigin = RequestOrigin(),
    ) -> UserRecord:
        InputValidator.validate_phone(phone)
        InputValidator.validate_password(password, self.config.PASSWORD_MIN_LENGTH)
        if self.store.phone_exists(conn, phone):
            raise AlreadyExistsError("User with this phone number already exists")

        user = self.store.create_user(conn, phone, self.hasher.hash(password))
        logger.info("User %s created by admin %s", user.id, actor.identity)
        self.audit.record(
            conn, actor, AuditAction.CREATE_USER, "user", str(user.id),
            {"phone": phone}, origin.ip_address, origin.user_agent,
        )
        return user

    def update_user(
        self,
        conn: Connection,
        actor: PrincipalContext,
        user_id: uuid.UUID,
        phone: Optional[str] = None,
        password: Optional[str] = None,
        origin: RequestOrigin = RequestOrigin(),
    ) -> UserRecord:
        """
        Change a user's phone and/or reset their password. Either change
        invalidates every session the user holds.
        """
        if password:
            InputValidator.validate_password(password, self.config.PASSWORD_MIN_LENGTH)

        user = self.get_user(conn, user_id)
        expected_version = user.token_version

        phone_changed = bool(phone) and phone != user.phone
        if phone_changed:
            InputValidator.validate_phone(phone)
            if self.store.phone_exists(conn, phone):
                raise AlreadyExistsError("Phone number is already in use")
            user.phone = phone

        if password:
            user.password_hash = self.hasher.hash(password)

        if phone_changed or password:
            user.token_version += 1

        self.store.save_user(conn, user, expected_version=expected_version)
        logger.info(
            "User %s updated by admin %s (token_version %d -> %d)",
            user.id, actor.identity, expected_version, user.token_version,
        )
        self.audit.record(
            conn, actor, AuditAction.UPDATE_USER, "user", str(user.id),
            {"phone_updated": phone_changed, "new_phone": phone if phone_changed else None,
             "password_updated": bool(password)},
            origin.ip_address, origin.user_agent,
        )
        return user

    def delete_user(
        self, conn: Connection, actor: PrincipalContext, user_id: uuid.UUID,
        origin: RequestOrigin = RequestOrigin(),
    ) -> UserRecord:
        user = self.get_user(conn, user_id)
        self.store.delete_user(conn, user)
        logger.info("User %s deleted by admin %s", user.id, actor.identity)
        self.audit.record(
            conn, actor, AuditAction.DELETE_USER, "user", str(user.id),
            {"phone": user.phone}, origin.ip_address, origin.user_agent,
        )
        return user

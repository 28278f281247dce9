# =======================================================================================
# gate_auth/services/session_issuer.py - Login, Registration & Token Refresh
# =======================================================================================
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.engine import Connection

from .credential_store import CredentialStore
from .password_hasher import PasswordHasher
from .token_codec import TokenCodec
from ..config import Config
from ..models.enums import AdminRole, TokenKind
from ..utils.exceptions import (
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    PrincipalNotFoundError,
    TokenError,
    TokenInvalidatedError,
    ValidationError,
)
from ..utils.validators import InputValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserSession:
    user_id: uuid.UUID
    phone: str
    access_token: str
    refresh_token: str
    access_ttl: timedelta
    refresh_ttl: timedelta
    token_version: int


@dataclass(frozen=True)
class AdminSession:
    admin_id: uuid.UUID
    username: str
    role: AdminRole
    token: str
    token_version: int


def device_requires_new_version(current_device_id: str, device_id: Optional[str]) -> bool:
    """
    Device-aware invalidation:
    - no device_id supplied       -> bump (legacy clients always start a fresh session)
    - device_id != stored device  -> bump (new device pushes the old one out)
    - same device, or none stored -> keep the version (session continuity)
    """
    if not device_id:
        return True
    return bool(current_device_id) and current_device_id != device_id


class SessionIssuer:
    """Turns verified credentials into tokens and decides when old sessions die."""

    def __init__(self, cfg: Config, store: CredentialStore, hasher: PasswordHasher, codec: TokenCodec):
        self.config = cfg
        self.store = store
        self.hasher = hasher
        self.codec = codec

    # ----------------- users -----------------

    def register_user(self, conn: Connection, phone: str, password: str) -> uuid.UUID:
        InputValidator.validate_phone(phone)
        InputValidator.validate_password(password, self.config.PASSWORD_MIN_LENGTH)

        if self.store.phone_exists(conn, phone):
            raise AlreadyExistsError("User with this phone number already exists")

        user = self.store.create_user(conn, phone, self.hasher.hash(password))
        logger.info("[REGISTER] User created: id=%s", user.id)
        return user.id

    def is_phone_available(self, conn: Connection, phone: str) -> bool:
        if not phone:
            raise ValidationError("Phone number is required")
        InputValidator.validate_phone(phone)
        return not self.store.phone_exists(conn, phone)

    def login_user(
        self, conn: Connection, phone: str, password: str, device_id: Optional[str] = None
    ) -> UserSession:
        InputValidator.validate_phone(phone)

        user = self.store.find_user_by_phone(conn, phone)
        if user is None:
            self.hasher.burn(password or "")
            logger.info("[LOGIN_FAILED] Unknown phone")
            raise InvalidCredentialsError()

        if not self.hasher.verify(password or "", user.password_hash):
            logger.info("[LOGIN_FAILED] Password mismatch for user %s", user.id)
            raise InvalidCredentialsError()

        previous_version = user.token_version
        previous_device = user.current_device_id

        if device_requires_new_version(previous_device, device_id):
            user.token_version += 1
        if device_id:
            user.current_device_id = device_id

        self.store.save_user(conn, user, expected_version=previous_version)

        if device_id and previous_device and previous_device != device_id:
            logger.info("[DEVICE_CHANGE] User %s switched devices", user.id)
        logger.info(
            "[LOGIN_SUCCESS] User %s: token_version %d -> %d",
            user.id, previous_version, user.token_version,
        )

        pair = self.codec.mint_user_pair(user.id, user.phone, user.token_version)
        return UserSession(
            user_id=user.id,
            phone=user.phone,
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            access_ttl=self.codec.access_ttl,
            refresh_ttl=self.codec.refresh_ttl,
            token_version=user.token_version,
        )

    def refresh_user_access(self, conn: Connection, refresh_token: str) -> str:
        try:
            claims = self.codec.verify(refresh_token, TokenKind.REFRESH)
        except TokenError as e:
            logger.info("[REFRESH_FAILED] %s", e.message)
            raise InvalidOrExpiredTokenError("Invalid or expired refresh token")

        user = self.store.find_user_by_id(conn, claims.principal_id)
        if user is None:
            logger.info("[REFRESH_FAILED] User %s not found", claims.principal_id)
            raise PrincipalNotFoundError("User not found")

        if user.token_version != claims.version:
            logger.info(
                "[REFRESH_FAILED] Version mismatch for user %s: claims=%d db=%d",
                user.id, claims.version, user.token_version,
            )
            raise TokenInvalidatedError()

        return self.codec.mint_access(user.id, claims.identity, claims.version)

    # ----------------- admins -----------------

    def login_admin(self, conn: Connection, username: str, password: str) -> AdminSession:
        if not username or not password:
            raise ValidationError("Username and password are required")

        admin = self.store.find_admin_by_username(conn, username)
        if admin is None:
            self.hasher.burn(password)
            raise InvalidCredentialsError()
        if not self.hasher.verify(password, admin.password_hash):
            logger.info("[ADMIN_LOGIN_FAILED] Password mismatch for admin %s", admin.id)
            raise InvalidCredentialsError()

        # every admin login ends every other admin session
        previous_version = admin.token_version
        admin.token_version += 1
        self.store.save_admin(conn, admin, expected_version=previous_version)

        token = self.codec.mint_admin(admin.id, admin.username, admin.role, admin.token_version)
        logger.info("[ADMIN_LOGIN_SUCCESS] Admin %s: token_version=%d", admin.id, admin.token_version)
        return AdminSession(
            admin_id=admin.id,
            username=admin.username,
            role=admin.role,
            token=token,
            token_version=admin.token_version,
        )

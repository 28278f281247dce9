# =======================================================================================
# gate_auth/services/bootstrap.py - Initial Super Admin
# =======================================================================================
import logging
import uuid

from sqlalchemy.engine import Connection

from .credential_store import CredentialStore
from .password_hasher import PasswordHasher
from ..config import Config
from ..models.enums import AdminRole
from ..utils.exceptions import AlreadyExistsError

logger = logging.getLogger(__name__)


def ensure_bootstrap_admin(conn: Connection, cfg: Config, store: CredentialStore, hasher: PasswordHasher) -> None:
    """
    Create the well-known super admin if no admin with INIT_ADMIN_UUID exists.
    Runs once at startup; calling it again is a no-op.
    """
    admin_id = uuid.UUID(cfg.INIT_ADMIN_UUID)

    existing = store.find_admin_by_id(conn, admin_id, include_deleted=True)
    if existing is not None:
        logger.info("Initial admin already exists (id=%s, username=%s)", admin_id, existing.username)
        return

    if store.username_exists(conn, cfg.INIT_ADMIN):
        raise AlreadyExistsError(f"Cannot create initial admin: username '{cfg.INIT_ADMIN}' is taken")

    store.create_admin(conn, cfg.INIT_ADMIN, hasher.hash(cfg.INIT_ADMIN_PASSWORD), AdminRole.SUPER, admin_id=admin_id)
    logger.info("Initial super admin created (username=%s)", cfg.INIT_ADMIN)
    if cfg.INIT_ADMIN_PASSWORD == "admin":
        logger.warning("Initial admin uses the default password; change it in production!")

# =======================================================================================
# gate_auth/services/__init__.py - Services Package
# =======================================================================================
from dataclasses import dataclass

from .access_guard import AccessGuard, RoleGate
from .admin_service import AdminService
from .audit_service import AuditService
from .bootstrap import ensure_bootstrap_admin
from .contact_service import ContactService
from .credential_store import CredentialStore
from .password_hasher import PasswordHasher
from .session_issuer import AdminSession, SessionIssuer, UserSession
from .token_codec import TokenClaims, TokenCodec, TokenPair
from .user_service import UserService
from ..config import Config


@dataclass
class ServiceRegistry:
    """Every service the HTTP layer needs, wired from one Config."""
    config: Config
    store: CredentialStore
    hasher: PasswordHasher
    codec: TokenCodec
    issuer: SessionIssuer
    guard: AccessGuard
    audit: AuditService
    users: UserService
    admins: AdminService
    contacts: ContactService


def build_services(cfg: Config) -> ServiceRegistry:
    store = CredentialStore()
    hasher = PasswordHasher(cfg)
    codec = TokenCodec(cfg)
    audit = AuditService()
    return ServiceRegistry(
        config=cfg,
        store=store,
        hasher=hasher,
        codec=codec,
        issuer=SessionIssuer(cfg, store, hasher, codec),
        guard=AccessGuard(codec, store),
        audit=audit,
        users=UserService(cfg, store, hasher, audit),
        admins=AdminService(cfg, store, hasher, audit),
        contacts=ContactService(audit),
    )


__all__ = [
    "AccessGuard", "RoleGate", "AdminService", "AuditService", "ensure_bootstrap_admin",
    "ContactService", "CredentialStore", "PasswordHasher", "AdminSession", "SessionIssuer",
    "UserSession", "TokenClaims", "TokenCodec", "TokenPair", "UserService",
    "ServiceRegistry", "build_services",
]

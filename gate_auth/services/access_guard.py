# =======================================================================================
# gate_auth/services/access_guard.py - Bearer Token Guard & Role Gate
# =======================================================================================
import logging
from typing import Optional, Union

from sqlalchemy.engine import Connection

from .credential_store import CredentialStore
from .token_codec import TokenCodec
from ..models.enums import AdminRole, TokenKind
from ..models.principals import AdminRecord, PrincipalContext, UserRecord
from ..utils.exceptions import (
    ForbiddenError,
    InvalidOrExpiredTokenError,
    MalformedAuthorizationError,
    MissingAuthorizationError,
    PrincipalNotFoundError,
    TokenError,
    TokenInvalidatedError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an `Authorization: Bearer <token>` header value."""
    if not authorization:
        raise MissingAuthorizationError()
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise MalformedAuthorizationError()
    return parts[1]


class AccessGuard:
    """
    Validates a bearer token end to end:

        header present -> "Bearer <token>" -> codec verify (expected kind)
        -> live principal lookup (soft-deleted rows never resolve)
        -> token_version equals the stored version

    and returns the PrincipalContext handlers work with.
    """

    def __init__(self, codec: TokenCodec, store: CredentialStore):
        self.codec = codec
        self.store = store

    def authenticate(self, conn: Connection, authorization: Optional[str], kind: TokenKind) -> PrincipalContext:
        token = extract_bearer_token(authorization)

        try:
            claims = self.codec.verify(token, kind)
        except TokenError as e:
            logger.info("[TOKEN_VALIDATION] Invalid or expired %s token: %s", kind.value, e.message)
            raise InvalidOrExpiredTokenError()

        principal: Optional[Union[UserRecord, AdminRecord]]
        if kind == TokenKind.ADMIN:
            principal = self.store.find_admin_by_id(conn, claims.principal_id)
            if principal is None:
                logger.info("[ADMIN_TOKEN_VALIDATION] Admin %s not found", claims.principal_id)
                raise PrincipalNotFoundError("Admin not found")
        else:
            principal = self.store.find_user_by_id(conn, claims.principal_id)
            if principal is None:
                logger.info("[TOKEN_VALIDATION] User %s not found", claims.principal_id)
                raise PrincipalNotFoundError("User not found")

        if principal.token_version != claims.version:
            logger.info(
                "[TOKEN_INVALIDATED] Version mismatch for %s: claims=%d db=%d",
                principal.id, claims.version, principal.token_version,
            )
            raise TokenInvalidatedError()

        if isinstance(principal, AdminRecord):
            # the live role wins over whatever the token was minted with
            return PrincipalContext(principal.id, principal.username, kind, principal.role)
        return PrincipalContext(principal.id, principal.phone, kind)


class RoleGate:
    """Narrows an authenticated admin context to a single required role."""

    def __init__(self, required_role: AdminRole = AdminRole.SUPER):
        self.required_role = AdminRole(required_role)

    def check(self, context: Optional[PrincipalContext]) -> PrincipalContext:
        if context is None or context.role is None:
            raise UnauthorizedError("Authentication required")
        if context.role != self.required_role:
            raise ForbiddenError(f"{self.required_role.value.capitalize()} admin access required")
        return context

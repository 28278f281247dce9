# =======================================================================================
# gate_auth/services/token_codec.py - Signed Token Minting & Verification
# =======================================================================================
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from ..config import HMAC_ALGORITHMS, Config
from ..models.enums import AdminRole, TokenKind
from ..utils.exceptions import (
    BadSignatureError,
    KindMismatchError,
    MalformedTokenError,
    TokenExpiredError,
)

logger = logging.getLogger(__name__)

USER_KINDS = (TokenKind.ACCESS, TokenKind.REFRESH)


@dataclass(frozen=True)
class TokenClaims:
    """Decoded, verified token contents."""
    principal_id: uuid.UUID
    identity: str
    kind: TokenKind
    version: int
    issued_at: datetime
    not_before: datetime
    expires_at: Optional[datetime] = None
    role: Optional[AdminRole] = None


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def _identity_claim(kind: TokenKind) -> str:
    return "username" if kind == TokenKind.ADMIN else "phone"


def _from_timestamp(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


class TokenCodec:
    """
    Mints and verifies HMAC-signed JWTs.

    User tokens (access/refresh) expire; admin tokens never do, so for admins
    the version stamp is the only way a token stops being valid. Every claim
    set carries the principal's token_version at mint time.
    """

    def __init__(self, cfg: Config):
        if cfg.JWT_ALGORITHM not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm: {cfg.JWT_ALGORITHM}")
        self._secret = cfg.JWT_SECRET
        self._algorithm = cfg.JWT_ALGORITHM
        self.access_ttl: timedelta = cfg.JWT_ACCESS_EXPIRY
        self.refresh_ttl: timedelta = cfg.JWT_REFRESH_EXPIRY

    # ----------------- minting -----------------

    def mint(
        self,
        principal_id: uuid.UUID,
        identity: str,
        kind: TokenKind,
        version: int,
        ttl: Optional[timedelta] = None,
        role: Optional[AdminRole] = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "id": str(principal_id),
            _identity_claim(kind): identity,
            "token_type": kind.value,
            "token_version": version,
            "iat": now,
            "nbf": now,
        }
        if kind == TokenKind.ADMIN:
            if role is not None:
                payload["role"] = AdminRole(role).value
        elif ttl is not None:
            payload["exp"] = now + ttl

        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)

        expiry = f"expires in {ttl}" if "exp" in payload else "never expires"
        logger.info(
            "[TOKEN_GENERATION] %s token created: id=%s token_version=%d (%s)",
            kind.value, principal_id, version, expiry,
        )
        return token

    def mint_user_pair(self, user_id: uuid.UUID, phone: str, version: int) -> TokenPair:
        return TokenPair(
            access_token=self.mint(user_id, phone, TokenKind.ACCESS, version, self.access_ttl),
            refresh_token=self.mint(user_id, phone, TokenKind.REFRESH, version, self.refresh_ttl),
        )

    def mint_access(self, user_id: uuid.UUID, phone: str, version: int) -> str:
        return self.mint(user_id, phone, TokenKind.ACCESS, version, self.access_ttl)

    def mint_admin(self, admin_id: uuid.UUID, username: str, role: AdminRole, version: int) -> str:
        return self.mint(admin_id, username, TokenKind.ADMIN, version, role=role)

    # ----------------- verification -----------------

    def verify(self, token: str, expected_kind: TokenKind) -> TokenClaims:
        """
        Decode and check a token. Raises MalformedTokenError, BadSignatureError,
        TokenExpiredError or KindMismatchError.
        """
        if not token or not isinstance(token, str):
            raise MalformedTokenError()

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=list(HMAC_ALGORITHMS),
                options={"require": ["iat", "nbf"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("[TOKEN_VALIDATION] Token expired")
            raise TokenExpiredError()
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
            logger.warning("[TOKEN_VALIDATION] Signature rejected: %s", e)
            raise BadSignatureError()
        except jwt.InvalidTokenError as e:
            logger.info("[TOKEN_VALIDATION] Token rejected: %s", e)
            raise MalformedTokenError()

        claims = self._to_claims(payload)

        if claims.kind != expected_kind:
            logger.info(
                "[TOKEN_VALIDATION] Token type mismatch. Expected=%s, Got=%s",
                expected_kind.value, claims.kind.value,
            )
            raise KindMismatchError()

        logger.debug(
            "[TOKEN_VALIDATION] %s token verified: id=%s token_version=%d",
            claims.kind.value, claims.principal_id, claims.version,
        )
        return claims

    @staticmethod
    def _to_claims(payload: Dict[str, Any]) -> TokenClaims:
        try:
            kind = TokenKind(payload["token_type"])
            version = payload["token_version"]
            if isinstance(version, bool) or not isinstance(version, int):
                raise ValueError("token_version must be an integer")
            principal_id = uuid.UUID(str(payload["id"]))
            identity = payload[_identity_claim(kind)]
            role = AdminRole(payload["role"]) if kind == TokenKind.ADMIN and "role" in payload else None
            if kind in USER_KINDS and "exp" not in payload:
                raise ValueError("user tokens must expire")
            return TokenClaims(
                principal_id=principal_id,
                identity=identity,
                kind=kind,
                version=version,
                issued_at=_from_timestamp(payload["iat"]),
                not_before=_from_timestamp(payload["nbf"]),
                expires_at=_from_timestamp(payload["exp"]) if "exp" in payload else None,
                role=role,
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.info("[TOKEN_VALIDATION] Claims malformed: %s", e)
            raise MalformedTokenError()

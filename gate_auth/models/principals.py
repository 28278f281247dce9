# =======================================================================================
# gate_auth/models/principals.py - Principal Records
# =======================================================================================
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from .enums import AdminRole, TokenKind


@dataclass
class UserRecord:
    """A phone-authenticated user as stored; password_hash never leaves the service layer."""
    id: uuid.UUID
    phone: str
    password_hash: str
    token_version: int = 0
    current_device_id: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserRecord":
        return cls(
            id=uuid.UUID(str(row["id"])),
            phone=row["phone"],
            password_hash=row["password_hash"],
            token_version=row["token_version"],
            current_device_id=row["current_device_id"] or "",
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            deleted_at=row["deleted_at"],
        )


@dataclass
class AdminRecord:
    """A username-authenticated admin as stored."""
    id: uuid.UUID
    username: str
    password_hash: str
    role: AdminRole
    token_version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AdminRecord":
        return cls(
            id=uuid.UUID(str(row["id"])),
            username=row["username"],
            password_hash=row["password_hash"],
            role=AdminRole(row["role"]),
            token_version=row["token_version"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            deleted_at=row["deleted_at"],
        )

    @property
    def is_super(self) -> bool:
        return self.role == AdminRole.SUPER


@dataclass(frozen=True)
class PrincipalContext:
    """What the access guard hands to downstream handlers."""
    principal_id: uuid.UUID
    identity: str
    kind: TokenKind
    role: Optional[AdminRole] = None

    @property
    def is_super(self) -> bool:
        return self.role == AdminRole.SUPER


@dataclass(frozen=True)
class RequestOrigin:
    """Where an administrative request came from, for the audit trail."""
    ip_address: str = ""
    user_agent: str = ""

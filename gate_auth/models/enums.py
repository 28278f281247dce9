# =======================================================================================
# gate_auth/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
SortOrder = Literal["ASC", "DESC"]
AuditStatus = Literal["success", "failed"]


class TokenKind(str, Enum):
    """Token kinds; one kind can never stand in for another."""
    ACCESS = "access"
    REFRESH = "refresh"
    ADMIN = "admin"


class AdminRole(str, Enum):
    """Admin roles. SUPER is the elevated role."""
    SUPER = "super"
    REGULAR = "regular"


class AuditAction(str, Enum):
    CREATE_USER = "create_user"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"
    CREATE_ADMIN = "create_admin"
    UPDATE_ADMIN = "update_admin"
    DELETE_ADMIN = "delete_admin"
    UPDATE_CONTACT = "update_contact"

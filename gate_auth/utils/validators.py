# =======================================================================================
# gate_auth/utils/validators.py - Validation Helpers
# =======================================================================================
import re
import uuid
from typing import Optional, Tuple

from .exceptions import (
    InvalidPhoneFormatError,
    InvalidRoleError,
    ValidationError,
    WeakPasswordError,
)
from ..models.enums import AdminRole, SortOrder

# E.164
PHONE_RE = re.compile(r"^\+[1-9]\d{1,14}$")

MAX_PAGE_SIZE = 500


class InputValidator:
    """Validates request input before it reaches the store."""

    @staticmethod
    def validate_phone(phone: Optional[str]) -> str:
        if not phone or not PHONE_RE.match(phone):
            raise InvalidPhoneFormatError()
        return phone

    @staticmethod
    def validate_password(password: Optional[str], min_length: int = 6) -> str:
        if password is None or len(password) < min_length:
            raise WeakPasswordError(f"Password must be at least {min_length} characters long")
        return password

    @staticmethod
    def validate_role(role: Optional[str]) -> AdminRole:
        try:
            return AdminRole(role)
        except ValueError:
            raise InvalidRoleError()

    @staticmethod
    def parse_uuid(value: str, what: str = "ID") -> uuid.UUID:
        try:
            return uuid.UUID(str(value))
        except ValueError:
            raise ValidationError(f"Invalid {what} format")

    @staticmethod
    def normalize_order(order: Optional[str]) -> SortOrder:
        order = (order or "").upper()
        return order if order in ("ASC", "DESC") else "DESC"

    @staticmethod
    def normalize_pagination(page: int, limit: int, max_limit: int = MAX_PAGE_SIZE) -> Tuple[int, int]:
        """
        Clamp page/limit the way the admin panel expects:
        page < 1 -> 1, limit -1 means "everything", other limits < 1 -> 10,
        limits above max_limit are capped.
        """
        if page < 1:
            page = 1
        if limit != -1 and limit < 1:
            limit = 10
        if limit > max_limit:
            limit = max_limit
        return page, limit

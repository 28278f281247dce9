# =======================================================================================
# gate_auth/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *
from .principals import AdminRecord, PrincipalContext, RequestOrigin, UserRecord

__all__ = [
    "APIResponse", "RegisterRequest", "LoginRequest", "RefreshRequest", "LoginData",
    "AdminLoginRequest", "AdminLoginData", "CreateUserRequest", "UpdateUserRequest",
    "CreateAdminRequest", "UpdateAdminRequest", "UpdateContactRequest", "HealthResponse",
    "TokenKind", "AdminRole", "AuditAction", "SortOrder", "AuditStatus",
    "AdminRecord", "PrincipalContext", "RequestOrigin", "UserRecord",
]

# =======================================================================================
# gate_auth/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, Field
from .enums import AdminRole


class APIResponse(BaseModel):
    """Standard envelope every endpoint answers with."""
    success: bool
    message: str
    data: Optional[Any] = None


# ========== User Auth ==========

class RegisterRequest(BaseModel):
    phone: str = Field(..., description="Phone number in E.164 format", examples=["+77771234567"])
    password: str = Field(..., description="At least 6 characters")


class LoginRequest(BaseModel):
    phone: str = Field(..., examples=["+77771234567"])
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class RegisteredUser(BaseModel):
    id: UUID
    phone: str


class LoginData(BaseModel):
    id: UUID
    phone: str
    access_token: str
    refresh_token: str
    access_expires_in: int = Field(..., description="Access token lifetime in seconds")
    refresh_expires_in: int = Field(..., description="Refresh token lifetime in seconds")


class RefreshData(BaseModel):
    access_token: str


class PhoneAvailabilityResponse(BaseModel):
    success: bool
    message: str
    available: bool


class CurrentUser(BaseModel):
    id: UUID
    phone: str


# ========== Admin Auth ==========

class AdminLoginRequest(BaseModel):
    username: str
    password: str


class AdminLoginData(BaseModel):
    id: UUID
    username: str
    role: AdminRole
    access_token: str


# ========== User management ==========

class CreateUserRequest(BaseModel):
    phone: str
    password: str


class UpdateUserRequest(BaseModel):
    phone: Optional[str] = None
    password: Optional[str] = None


class UserDTO(BaseModel):
    id: UUID
    phone: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaginationMeta(BaseModel):
    total: int
    per_page: int
    current_page: int
    last_page: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        """limit == -1 means everything came back on one page."""
        if limit == -1:
            return cls(total=total, per_page=total, current_page=page, last_page=1)
        last_page = max(1, (total + limit - 1) // limit)
        return cls(total=total, per_page=limit, current_page=page, last_page=last_page)


class UsersListResponse(BaseModel):
    success: bool
    message: str
    data: List[UserDTO]
    pagination: PaginationMeta


# ========== Admin management ==========

class CreateAdminRequest(BaseModel):
    username: str
    password: str
    role: str = Field(..., description="super | regular")


class UpdateAdminRequest(BaseModel):
    password: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None


class AdminDTO(BaseModel):
    id: UUID
    username: str
    role: AdminRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AdminsListResponse(BaseModel):
    success: bool
    message: str
    data: List[AdminDTO]
    pagination: PaginationMeta


# ========== Contacts ==========

class ContactDTO(BaseModel):
    support_number: int
    email_support: str
    address: str


class UpdateContactRequest(BaseModel):
    support_number: int = Field(..., examples=[77091234567])
    email_support: str
    address: str


# ========== Audit ==========

class AuditLogDTO(BaseModel):
    id: UUID
    admin_id: Optional[str] = None
    admin_name: Optional[str] = None
    action: str
    resource_type: str
    resource_id: str
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    status: str
    error_message: Optional[str] = None
    created_at: datetime


class AuditLogPagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class AuditLogsResponse(BaseModel):
    success: bool
    message: str
    data: List[AuditLogDTO]
    pagination: AuditLogPagination


# ========== Health ==========

class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None


class ServiceStatusResponse(BaseModel):
    success: bool
    message: str
    status: str
    timestamp: str
    uptime: str
    environment: str
    version: str

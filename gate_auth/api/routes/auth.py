# =======================================================================================
# gate_auth/api/routes/auth.py - User Authentication Endpoints
# =======================================================================================
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...database import DatabaseManager
from ...models.principals import PrincipalContext
from ...models.schemas import (
    APIResponse,
    CurrentUser,
    LoginData,
    LoginRequest,
    PhoneAvailabilityResponse,
    RefreshData,
    RefreshRequest,
    RegisteredUser,
    RegisterRequest,
)
from ...services import ServiceRegistry
from ..dependencies import get_database, get_services, require_user

router = APIRouter()


@router.post("/auth/register", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
def register_user(
    request: RegisterRequest,
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with db.get_connection() as conn:
        user_id = services.issuer.register_user(conn, request.phone, request.password)
    return APIResponse(
        success=True,
        message="User registered successfully",
        data=RegisteredUser(id=user_id, phone=request.phone),
    )


@router.post("/auth/login", response_model=APIResponse)
def login_user(
    request: LoginRequest,
    device_id_camel: Optional[str] = Query(None, alias="deviceId"),
    device_id: Optional[str] = Query(None, description="Unique device identifier"),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    """
    Log a user in. With a device id, logging in again from the same device
    keeps existing sessions alive; a different device (or no device id at all)
    invalidates them.
    """
    with db.get_connection() as conn:
        session = services.issuer.login_user(
            conn, request.phone, request.password, device_id_camel or device_id
        )
    return APIResponse(
        success=True,
        message="Login successful",
        data=LoginData(
            id=session.user_id,
            phone=session.phone,
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            access_expires_in=int(session.access_ttl.total_seconds()),
            refresh_expires_in=int(session.refresh_ttl.total_seconds()),
        ),
    )


@router.post("/auth/refresh", response_model=APIResponse)
def refresh_token(
    request: RefreshRequest,
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with db.get_connection() as conn:
        access_token = services.issuer.refresh_user_access(conn, request.refresh_token)
    return APIResponse(
        success=True,
        message="Token refreshed successfully",
        data=RefreshData(access_token=access_token),
    )


@router.get("/auth/check-phone", response_model=PhoneAvailabilityResponse)
def check_phone_availability(
    phone: str = Query("", description="Phone number in E.164 format"),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with db.get_connection() as conn:
        available = services.issuer.is_phone_available(conn, phone)
    return PhoneAvailabilityResponse(
        success=True, message="Phone availability checked", available=available
    )


@router.get("/auth/me", response_model=APIResponse)
def current_user(user: PrincipalContext = Depends(require_user)):
    return APIResponse(
        success=True,
        message="User retrieved successfully",
        data=CurrentUser(id=user.principal_id, phone=user.identity),
    )

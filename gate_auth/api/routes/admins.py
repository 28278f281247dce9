# =======================================================================================
# gate_auth/api/routes/admins.py - Admin Management Endpoints
# =======================================================================================
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...database import DatabaseManager
from ...models.enums import AuditAction
from ...models.principals import AdminRecord, PrincipalContext, RequestOrigin
from ...models.schemas import (
    AdminDTO,
    AdminsListResponse,
    APIResponse,
    CreateAdminRequest,
    PaginationMeta,
    UpdateAdminRequest,
)
from ...services import ServiceRegistry
from ...utils.validators import InputValidator
from ..dependencies import (
    get_database,
    get_request_origin,
    get_services,
    require_admin,
    require_super_admin,
)

router = APIRouter()


def _to_dto(admin: AdminRecord) -> AdminDTO:
    return AdminDTO(
        id=admin.id,
        username=admin.username,
        role=admin.role,
        created_at=admin.created_at,
        updated_at=admin.updated_at,
    )


@router.get("/admin/users", response_model=AdminsListResponse)
def list_admins(
    page: int = Query(1),
    limit: int = Query(500, description="-1 returns every admin"),
    search: str = Query("", description="Substring of the username"),
    role: Optional[str] = Query(None, description="super | regular"),
    order: str = Query("DESC"),
    admin: PrincipalContext = Depends(require_super_admin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with db.get_connection() as conn:
        admins, total, page, limit = services.admins.list_admins(conn, page, limit, search, role, order)
    return AdminsListResponse(
        success=True,
        message="Admins retrieved successfully",
        data=[_to_dto(a) for a in admins],
        pagination=PaginationMeta.build(total, page, limit),
    )


@router.post("/admin/users", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
def create_admin(
    request: CreateAdminRequest,
    admin: PrincipalContext = Depends(require_super_admin),
    origin: RequestOrigin = Depends(get_request_origin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with services.audit.recording_failures(
        db, admin, AuditAction.CREATE_ADMIN, "admin",
        details={"username": request.username, "role": request.role}, origin=origin,
    ):
        with db.get_connection() as conn:
            created = services.admins.create_admin(
                conn, admin, request.username, request.password, request.role, origin
            )
    return APIResponse(success=True, message="Admin created successfully", data=_to_dto(created))


@router.get("/admin/users/{admin_id}", response_model=APIResponse)
def get_admin(
    admin_id: str,
    admin: PrincipalContext = Depends(require_admin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with db.get_connection() as conn:
        record = services.admins.get_admin(conn, admin, InputValidator.parse_uuid(admin_id, "admin ID"))
    return APIResponse(success=True, message="Admin retrieved successfully", data=_to_dto(record))


@router.patch("/admin/users/{admin_id}", response_model=APIResponse)
def update_admin(
    admin_id: str,
    request: UpdateAdminRequest,
    admin: PrincipalContext = Depends(require_admin),
    origin: RequestOrigin = Depends(get_request_origin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    """Existing admin tokens stay valid after this call."""
    target = InputValidator.parse_uuid(admin_id, "admin ID")
    with services.audit.recording_failures(
        db, admin, AuditAction.UPDATE_ADMIN, "admin", str(target),
        details={"password_updated": request.password is not None, "username": request.username,
                 "role": request.role},
        origin=origin,
    ):
        with db.get_connection() as conn:
            record = services.admins.update_admin(
                conn,
                admin,
                target,
                password=request.password,
                username=request.username,
                role=request.role,
                origin=origin,
            )
    return APIResponse(success=True, message="Admin updated successfully", data=_to_dto(record))


@router.delete("/admin/users/{admin_id}", response_model=APIResponse)
def delete_admin(
    admin_id: str,
    admin: PrincipalContext = Depends(require_super_admin),
    origin: RequestOrigin = Depends(get_request_origin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    target = InputValidator.parse_uuid(admin_id, "admin ID")
    with services.audit.recording_failures(db, admin, AuditAction.DELETE_ADMIN, "admin", str(target), origin=origin):
        with db.get_connection() as conn:
            record = services.admins.delete_admin(conn, admin, target, origin)
    return APIResponse(success=True, message="Admin deleted successfully", data=_to_dto(record))

# =======================================================================================
# gate_auth/api/routes/users.py - User Management Endpoints (admin token)
# =======================================================================================
from fastapi import APIRouter, Depends, Query, status

from ...database import DatabaseManager
from ...models.enums import AuditAction
from ...models.principals import PrincipalContext, RequestOrigin
from ...models.schemas import (
    APIResponse,
    CreateUserRequest,
    PaginationMeta,
    RegisteredUser,
    UpdateUserRequest,
    UserDTO,
    UsersListResponse,
)
from ...services import ServiceRegistry
from ...utils.validators import InputValidator
from ..dependencies import get_database, get_request_origin, get_services, require_admin

router = APIRouter()


def _to_dto(user) -> UserDTO:
    return UserDTO(id=user.id, phone=user.phone, created_at=user.created_at, updated_at=user.updated_at)


@router.get("/users", response_model=UsersListResponse)
def list_users(
    page: int = Query(1),
    limit: int = Query(500, description="-1 returns every user"),
    search: str = Query("", description="Substring of the phone number"),
    order: str = Query("DESC", description="ASC | DESC by created_at"),
    admin: PrincipalContext = Depends(require_admin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with db.get_connection() as conn:
        users, total, page, limit = services.users.list_users(conn, page, limit, search, order)
    return UsersListResponse(
        success=True,
        message="Users retrieved successfully",
        data=[_to_dto(u) for u in users],
        pagination=PaginationMeta.build(total, page, limit),
    )


@router.post("/users", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    request: CreateUserRequest,
    admin: PrincipalContext = Depends(require_admin),
    origin: RequestOrigin = Depends(get_request_origin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with services.audit.recording_failures(
        db, admin, AuditAction.CREATE_USER, "user", details={"phone": request.phone}, origin=origin
    ):
        with db.get_connection() as conn:
            user = services.users.create_user(conn, admin, request.phone, request.password, origin)
    return APIResponse(
        success=True,
        message="User created successfully",
        data=RegisteredUser(id=user.id, phone=user.phone),
    )


@router.get("/users/{user_id}", response_model=APIResponse)
def get_user(
    user_id: str,
    admin: PrincipalContext = Depends(require_admin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with db.get_connection() as conn:
        user = services.users.get_user(conn, InputValidator.parse_uuid(user_id, "user ID"))
    return APIResponse(success=True, message="User retrieved successfully", data=_to_dto(user))


@router.patch("/users/{user_id}", response_model=APIResponse)
def update_user(
    user_id: str,
    request: UpdateUserRequest,
    admin: PrincipalContext = Depends(require_admin),
    origin: RequestOrigin = Depends(get_request_origin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    """Changing the phone or resetting the password logs the user out everywhere."""
    target = InputValidator.parse_uuid(user_id, "user ID")
    with services.audit.recording_failures(
        db, admin, AuditAction.UPDATE_USER, "user", str(target),
        details={"phone_updated": bool(request.phone), "password_updated": bool(request.password)},
        origin=origin,
    ):
        with db.get_connection() as conn:
            user = services.users.update_user(
                conn, admin, target, phone=request.phone, password=request.password, origin=origin
            )
    return APIResponse(
        success=True,
        message="User updated successfully",
        data=RegisteredUser(id=user.id, phone=user.phone),
    )


@router.delete("/users/{user_id}", response_model=APIResponse)
def delete_user(
    user_id: str,
    admin: PrincipalContext = Depends(require_admin),
    origin: RequestOrigin = Depends(get_request_origin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    target = InputValidator.parse_uuid(user_id, "user ID")
    with services.audit.recording_failures(db, admin, AuditAction.DELETE_USER, "user", str(target), origin=origin):
        with db.get_connection() as conn:
            user = services.users.delete_user(conn, admin, target, origin)
    return APIResponse(
        success=True,
        message="User deleted successfully",
        data=RegisteredUser(id=user.id, phone=user.phone),
    )

# =======================================================================================
# gate_auth/api/routes/admin_auth.py - Admin Authentication Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends

from ...database import DatabaseManager
from ...models.schemas import AdminLoginData, AdminLoginRequest, APIResponse
from ...services import ServiceRegistry
from ..dependencies import get_database, get_services

router = APIRouter()


@router.post("/admin/login", response_model=APIResponse)
def login_admin(
    request: AdminLoginRequest,
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    # the returned token never expires; logging in again is what revokes it
    with db.get_connection() as conn:
        session = services.issuer.login_admin(conn, request.username, request.password)
    return APIResponse(
        success=True,
        message="Login successful",
        data=AdminLoginData(
            id=session.admin_id,
            username=session.username,
            role=session.role,
            access_token=session.token,
        ),
    )

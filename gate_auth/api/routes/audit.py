# =======================================================================================
# gate_auth/api/routes/audit.py - Audit Log Endpoints (super admin only)
# =======================================================================================
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...database import DatabaseManager
from ...models.principals import PrincipalContext
from ...models.schemas import APIResponse, AuditLogDTO, AuditLogPagination, AuditLogsResponse
from ...services import ServiceRegistry
from ...utils.validators import InputValidator
from ..dependencies import get_database, get_services, require_super_admin

router = APIRouter()


@router.get("/admin/audit-logs", response_model=AuditLogsResponse)
def list_audit_logs(
    page: int = Query(1),
    limit: int = Query(20, description="1..100"),
    admin_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="success | failed"),
    admin: PrincipalContext = Depends(require_super_admin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with db.get_connection() as conn:
        logs, total, page, limit = services.audit.list_logs(
            conn, page, limit, admin_id, action, resource_type, status
        )
    return AuditLogsResponse(
        success=True,
        message="Audit logs retrieved successfully",
        data=[AuditLogDTO(**log) for log in logs],
        pagination=AuditLogPagination(total=total, page=page, limit=limit, pages=(total + limit - 1) // limit),
    )


@router.get("/admin/audit-logs/{log_id}", response_model=APIResponse)
def get_audit_log(
    log_id: str,
    admin: PrincipalContext = Depends(require_super_admin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with db.get_connection() as conn:
        log = services.audit.get_log(conn, InputValidator.parse_uuid(log_id, "audit log ID"))
    return APIResponse(success=True, message="Audit log retrieved successfully", data=AuditLogDTO(**log))

# =======================================================================================
# gate_auth/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from typing import Optional

from fastapi import Depends, Header, Request

from ..database import DatabaseManager
from ..models.enums import AdminRole, TokenKind
from ..models.principals import PrincipalContext, RequestOrigin
from ..services import RoleGate, ServiceRegistry


def get_services(request: Request) -> ServiceRegistry:
    return request.app.state.services


def get_database(request: Request) -> DatabaseManager:
    """
    Handlers open their own transaction with `db.get_connection()` so the
    commit completes before the response is built.
    """
    return request.app.state.db


def get_request_origin(request: Request) -> RequestOrigin:
    return RequestOrigin(
        ip_address=request.client.host if request.client else "",
        user_agent=request.headers.get("user-agent", ""),
    )


def _authenticate(request: Request, db: DatabaseManager, services: ServiceRegistry,
                  authorization: Optional[str], kind: TokenKind) -> PrincipalContext:
    with db.get_connection() as conn:
        principal = services.guard.authenticate(conn, authorization, kind)
    request.state.principal = principal
    return principal


def require_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
) -> PrincipalContext:
    """Guard for user routes: a live, current-version user access token."""
    return _authenticate(request, db, services, authorization, TokenKind.ACCESS)


def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
) -> PrincipalContext:
    """Guard for admin routes: a live, current-version admin token."""
    return _authenticate(request, db, services, authorization, TokenKind.ADMIN)


class RequireRole:
    """Declarative role gate: `Depends(RequireRole(AdminRole.SUPER))`."""

    def __init__(self, role: AdminRole):
        self.gate = RoleGate(role)

    def __call__(self, admin: PrincipalContext = Depends(require_admin)) -> PrincipalContext:
        return self.gate.check(admin)


require_super_admin = RequireRole(AdminRole.SUPER)

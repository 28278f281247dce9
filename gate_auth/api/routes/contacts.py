# =======================================================================================
# gate_auth/api/routes/contacts.py - Support Contact Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends

from ...database import DatabaseManager
from ...models.enums import AuditAction
from ...models.principals import PrincipalContext, RequestOrigin
from ...models.schemas import APIResponse, ContactDTO, UpdateContactRequest
from ...services import ServiceRegistry
from ..dependencies import get_database, get_request_origin, get_services, require_admin

router = APIRouter()


@router.get("/contacts", response_model=APIResponse)
def get_contacts(
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with db.get_connection() as conn:
        contact = services.contacts.get_contact(conn)
    return APIResponse(success=True, message="Contacts retrieved successfully", data=ContactDTO(**contact))


@router.patch("/contacts", response_model=APIResponse)
def update_contacts(
    request: UpdateContactRequest,
    admin: PrincipalContext = Depends(require_admin),
    origin: RequestOrigin = Depends(get_request_origin),
    db: DatabaseManager = Depends(get_database),
    services: ServiceRegistry = Depends(get_services),
):
    with services.audit.recording_failures(db, admin, AuditAction.UPDATE_CONTACT, "contact", origin=origin):
        with db.get_connection() as conn:
            contact = services.contacts.update_contact(
                conn, admin, request.support_number, request.email_support, request.address, origin
            )
    return APIResponse(success=True, message="Contacts updated successfully", data=ContactDTO(**contact))

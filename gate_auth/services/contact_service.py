# =======================================================================================
# gate_auth/services/contact_service.py - Support Contact Info
# =======================================================================================
from typing import Any, Dict

from sqlalchemy import select, update
from sqlalchemy.engine import Connection

from .audit_service import AuditService
from ..database import contacts_table, utcnow
from ..models.enums import AuditAction
from ..models.principals import PrincipalContext, RequestOrigin
from ..utils.exceptions import ValidationError

EMPTY_CONTACT = {"support_number": 0, "email_support": "", "address": ""}


class ContactService:
    """The app's single contact record: public read, admin upsert."""

    def __init__(self, audit: AuditService):
        self.audit = audit

    def get_contact(self, conn: Connection) -> Dict[str, Any]:
        row = conn.execute(
            select(contacts_table).order_by(contacts_table.c.id).limit(1)
        ).mappings().first()
        if not row:
            return dict(EMPTY_CONTACT)
        return {
            "support_number": row["support_number"],
            "email_support": row["email_support"],
            "address": row["address"],
        }

    def update_contact(
        self,
        conn: Connection,
        actor: PrincipalContext,
        support_number: int,
        email_support: str,
        address: str,
        origin: RequestOrigin = RequestOrigin(),
    ) -> Dict[str, Any]:
        if support_number is None or support_number <= 0:
            raise ValidationError("Support number must be a valid phone number")
        if not email_support:
            raise ValidationError("Email support is required")
        if not address:
            raise ValidationError("Address is required")

        values = {"support_number": support_number, "email_support": email_support, "address": address}
        existing = conn.execute(
            select(contacts_table.c.id).order_by(contacts_table.c.id).limit(1)
        ).first()
        if existing is None:
            now = utcnow()
            result = conn.execute(contacts_table.insert().values(created_at=now, updated_at=now, **values))
            contact_id = result.inserted_primary_key[0]
        else:
            contact_id = existing.id
            conn.execute(
                update(contacts_table)
                .where(contacts_table.c.id == existing.id)
                .values(updated_at=utcnow(), **values)
            )

        self.audit.record(
            conn, actor, AuditAction.UPDATE_CONTACT, "contact", str(contact_id), values,
            origin.ip_address, origin.user_agent,
        )
        return values

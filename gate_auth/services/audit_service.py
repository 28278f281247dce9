# =======================================================================================
# gate_auth/services/audit_service.py - Admin Audit Trail
# =======================================================================================
import json
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import and_, func, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ..database import DatabaseManager, audit_logs_table, utcnow
from ..models.enums import AuditAction, AuditStatus
from ..models.principals import PrincipalContext, RequestOrigin
from ..utils.exceptions import ConflictError, GateAuthError, NotFoundError

logger = logging.getLogger(__name__)


class AuditService:
    """Records administrative operations for later review by super admins."""

    def record(
        self,
        conn: Connection,
        actor: PrincipalContext,
        action: AuditAction,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
        ip_address: str = "",
        user_agent: str = "",
        status: AuditStatus = "success",
        error_message: str = "",
    ) -> uuid.UUID:
        log_id = uuid.uuid4()
        conn.execute(
            audit_logs_table.insert().values(
                id=str(log_id),
                admin_id=str(actor.principal_id),
                admin_name=actor.identity,
                action=AuditAction(action).value,
                resource_type=resource_type,
                resource_id=str(resource_id),
                details=json.dumps(details or {}, default=str),
                ip_address=ip_address,
                user_agent=user_agent,
                status=status,
                error_message=error_message,
                created_at=utcnow(),
            )
        )
        return log_id

    def record_failure(
        self,
        db: DatabaseManager,
        actor: PrincipalContext,
        action: AuditAction,
        resource_type: str,
        resource_id: str,
        error: Exception,
        details: Optional[Dict[str, Any]] = None,
        origin: RequestOrigin = RequestOrigin(),
    ) -> None:
        """
        Write a "failed" entry in a transaction of its own, since the
        transaction of the failed mutation is being rolled back.
        """
        message = error.message if isinstance(error, GateAuthError) else "Failed to persist changes"
        try:
            with db.get_connection() as conn:
                self.record(
                    conn, actor, action, resource_type, resource_id, details,
                    origin.ip_address, origin.user_agent, status="failed", error_message=message,
                )
        except SQLAlchemyError as e:
            logger.error(
                "[AUDIT] Could not record failed %s on %s %s: %s",
                AuditAction(action).value, resource_type, resource_id, e,
            )

    @contextmanager
    def recording_failures(
        self,
        db: DatabaseManager,
        actor: PrincipalContext,
        action: AuditAction,
        resource_type: str,
        resource_id: str = "",
        details: Optional[Dict[str, Any]] = None,
        origin: RequestOrigin = RequestOrigin(),
    ) -> Iterator[None]:
        """
        Wrap a mutation's transaction. Conflicts and database errors leave a
        "failed" entry behind and are re-raised; input and permission errors
        are not recorded.
        """
        try:
            yield
        except (ConflictError, SQLAlchemyError) as e:
            logger.warning(
                "[AUDIT] %s on %s %s by %s failed: %s",
                AuditAction(action).value, resource_type, resource_id or "-", actor.identity, e,
            )
            self.record_failure(db, actor, action, resource_type, resource_id, e, details, origin)
            raise

    def list_logs(
        self,
        conn: Connection,
        page: int = 1,
        limit: int = 20,
        admin_id: Optional[str] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], int, int, int]:
        """Newest first. Returns (rows, total, page, limit) with page/limit clamped."""
        if page < 1:
            page = 1
        if limit < 1 or limit > 100:
            limit = 20

        conditions = []
        if admin_id:
            conditions.append(audit_logs_table.c.admin_id == admin_id)
        if action:
            conditions.append(audit_logs_table.c.action == action)
        if resource_type:
            conditions.append(audit_logs_table.c.resource_type == resource_type)
        if status:
            conditions.append(audit_logs_table.c.status == status)
        where = and_(*conditions) if conditions else None

        count_query = select(func.count()).select_from(audit_logs_table)
        query = select(audit_logs_table)
        if where is not None:
            count_query = count_query.where(where)
            query = query.where(where)

        total = conn.execute(count_query).scalar_one()
        rows = conn.execute(
            query.order_by(audit_logs_table.c.created_at.desc()).offset((page - 1) * limit).limit(limit)
        ).mappings().all()
        return [self._to_dict(r) for r in rows], total, page, limit

    def get_log(self, conn: Connection, log_id: str) -> Dict[str, Any]:
        row = conn.execute(
            select(audit_logs_table).where(audit_logs_table.c.id == str(log_id))
        ).mappings().first()
        if not row:
            raise NotFoundError("Audit log not found")
        return self._to_dict(row)

    @staticmethod
    def _to_dict(row) -> Dict[str, Any]:
        data = dict(row)
        try:
            data["details"] = json.loads(data.get("details") or "{}")
        except ValueError:
            data["details"] = {"raw": data["details"]}
        return data

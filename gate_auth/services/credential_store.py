# =======================================================================================
# gate_auth/services/credential_store.py - Principal Persistence
# =======================================================================================
import uuid
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import Table, and_, func, select, true, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from ..database import admins_table, users_table, utcnow
from ..models.enums import AdminRole, SortOrder
from ..models.principals import AdminRecord, UserRecord
from ..utils.exceptions import AlreadyExistsError, ConcurrentUpdateError

# Soft-delete policy: a phone or username held only by deleted rows is free to
# be registered again. Deleted rows never resolve through the default lookups,
# so the old principal's tokens cannot come back to life. The active_phone and
# active_username columns carry the unique constraint: they mirror the
# identity while the row is live and are cleared on delete.


def _active(table: Table, include_deleted: bool):
    return true() if include_deleted else table.c.deleted_at.is_(None)


class CredentialStore:
    """Reads and writes user and admin records."""

    # ----------------- users -----------------

    def find_user_by_phone(self, conn: Connection, phone: str, include_deleted: bool = False) -> Optional[UserRecord]:
        row = conn.execute(
            select(users_table)
            .where(users_table.c.phone == phone, _active(users_table, include_deleted))
            .order_by(users_table.c.created_at.desc())
        ).mappings().first()
        return UserRecord.from_row(row) if row else None

    def find_user_by_id(self, conn: Connection, user_id: uuid.UUID, include_deleted: bool = False) -> Optional[UserRecord]:
        row = conn.execute(
            select(users_table).where(users_table.c.id == str(user_id), _active(users_table, include_deleted))
        ).mappings().first()
        return UserRecord.from_row(row) if row else None

    def phone_exists(self, conn: Connection, phone: str) -> bool:
        return self.find_user_by_phone(conn, phone) is not None

    def create_user(self, conn: Connection, phone: str, password_hash: str) -> UserRecord:
        user_id = uuid.uuid4()
        now = utcnow()
        try:
            conn.execute(
                users_table.insert().values(
                    id=str(user_id),
                    phone=phone,
                    active_phone=phone,
                    password_hash=password_hash,
                    token_version=0,
                    current_device_id="",
                    created_at=now,
                    updated_at=now,
                )
            )
        except IntegrityError as e:
            raise AlreadyExistsError("User with this phone number already exists") from e
        return UserRecord(
            id=user_id, phone=phone, password_hash=password_hash,
            token_version=0, current_device_id="", created_at=now, updated_at=now,
        )

    def save_user(self, conn: Connection, user: UserRecord, expected_version: int) -> None:
        """
        Persist phone, password, version and device in one conditional UPDATE.
        Raises ConcurrentUpdateError when the stored version is no longer
        expected_version (another request won the read-modify-write race).
        """
        try:
            result = conn.execute(
                update(users_table)
                .where(
                    users_table.c.id == str(user.id),
                    users_table.c.token_version == expected_version,
                    users_table.c.deleted_at.is_(None),
                )
                .values(
                    phone=user.phone,
                    active_phone=user.phone,
                    password_hash=user.password_hash,
                    token_version=user.token_version,
                    current_device_id=user.current_device_id or "",
                    updated_at=utcnow(),
                )
            )
        except IntegrityError as e:
            raise AlreadyExistsError("Phone number is already in use") from e
        if result.rowcount != 1:
            raise ConcurrentUpdateError()

    def delete_user(self, conn: Connection, user: UserRecord) -> None:
        """Soft delete and bump the version in the same statement, killing live sessions."""
        now = utcnow()
        result = conn.execute(
            update(users_table)
            .where(
                users_table.c.id == str(user.id),
                users_table.c.token_version == user.token_version,
                users_table.c.deleted_at.is_(None),
            )
            .values(token_version=user.token_version + 1, active_phone=None, deleted_at=now, updated_at=now)
        )
        if result.rowcount != 1:
            raise ConcurrentUpdateError()
        user.token_version += 1
        user.deleted_at = now

    def list_users(
        self, conn: Connection, page: int, limit: int, search: str = "", order: SortOrder = "DESC"
    ) -> Tuple[List[UserRecord], int]:
        conditions = [users_table.c.deleted_at.is_(None)]
        if search:
            conditions.append(users_table.c.phone.like(f"%{search}%"))
        rows, total = self._paginate(conn, users_table, conditions, page, limit, order)
        return [UserRecord.from_row(r) for r in rows], total

    # ----------------- admins -----------------

    def find_admin_by_username(self, conn: Connection, username: str, include_deleted: bool = False) -> Optional[AdminRecord]:
        row = conn.execute(
            select(admins_table)
            .where(admins_table.c.username == username, _active(admins_table, include_deleted))
            .order_by(admins_table.c.created_at.desc())
        ).mappings().first()
        return AdminRecord.from_row(row) if row else None

    def find_admin_by_id(self, conn: Connection, admin_id: uuid.UUID, include_deleted: bool = False) -> Optional[AdminRecord]:
        row = conn.execute(
            select(admins_table).where(admins_table.c.id == str(admin_id), _active(admins_table, include_deleted))
        ).mappings().first()
        return AdminRecord.from_row(row) if row else None

    def username_exists(self, conn: Connection, username: str) -> bool:
        return self.find_admin_by_username(conn, username) is not None

    def create_admin(
        self,
        conn: Connection,
        username: str,
        password_hash: str,
        role: AdminRole,
        admin_id: Optional[uuid.UUID] = None,
    ) -> AdminRecord:
        admin_id = admin_id or uuid.uuid4()
        now = utcnow()
        try:
            conn.execute(
                admins_table.insert().values(
                    id=str(admin_id),
                    username=username,
                    active_username=username,
                    password_hash=password_hash,
                    role=AdminRole(role).value,
                    token_version=0,
                    created_at=now,
                    updated_at=now,
                )
            )
        except IntegrityError as e:
            raise AlreadyExistsError("Admin with this username already exists") from e
        return AdminRecord(
            id=admin_id, username=username, password_hash=password_hash,
            role=AdminRole(role), token_version=0, created_at=now, updated_at=now,
        )

    def save_admin(self, conn: Connection, admin: AdminRecord, expected_version: int) -> None:
        """Conditional UPDATE of username, password, role and version (see save_user)."""
        try:
            result = conn.execute(
                update(admins_table)
                .where(
                    admins_table.c.id == str(admin.id),
                    admins_table.c.token_version == expected_version,
                    admins_table.c.deleted_at.is_(None),
                )
                .values(
                    username=admin.username,
                    active_username=admin.username,
                    password_hash=admin.password_hash,
                    role=AdminRole(admin.role).value,
                    token_version=admin.token_version,
                    updated_at=utcnow(),
                )
            )
        except IntegrityError as e:
            raise AlreadyExistsError("Admin with this username already exists") from e
        if result.rowcount != 1:
            raise ConcurrentUpdateError()

    def delete_admin(self, conn: Connection, admin: AdminRecord) -> None:
        now = utcnow()
        result = conn.execute(
            update(admins_table)
            .where(admins_table.c.id == str(admin.id), admins_table.c.deleted_at.is_(None))
            .values(
                token_version=admins_table.c.token_version + 1,
                active_username=None,
                deleted_at=now,
                updated_at=now,
            )
        )
        if result.rowcount != 1:
            raise ConcurrentUpdateError()
        admin.deleted_at = now

    def list_admins(
        self,
        conn: Connection,
        page: int,
        limit: int,
        search: str = "",
        role: Optional[AdminRole] = None,
        order: SortOrder = "DESC",
    ) -> Tuple[List[AdminRecord], int]:
        conditions = [admins_table.c.deleted_at.is_(None)]
        if search:
            conditions.append(admins_table.c.username.like(f"%{search}%"))
        if role is not None:
            conditions.append(admins_table.c.role == AdminRole(role).value)
        rows, total = self._paginate(conn, admins_table, conditions, page, limit, order)
        return [AdminRecord.from_row(r) for r in rows], total

    # ----------------- either -----------------

    def find_by_id(self, conn: Connection, principal_id: uuid.UUID) -> Optional[Union[UserRecord, AdminRecord]]:
        return self.find_user_by_id(conn, principal_id) or self.find_admin_by_id(conn, principal_id)

    @staticmethod
    def _paginate(
        conn: Connection, table: Table, conditions: list, page: int, limit: int, order: SortOrder
    ) -> Tuple[List[Dict[str, Any]], int]:
        where = and_(*conditions)
        total = conn.execute(select(func.count()).select_from(table).where(where)).scalar_one()

        created = table.c.created_at.asc() if order == "ASC" else table.c.created_at.desc()
        query = select(table).where(where).order_by(created)
        if limit != -1:
            query = query.offset((page - 1) * limit).limit(limit)
        rows = conn.execute(query).mappings().all()
        return [dict(r) for r in rows], total

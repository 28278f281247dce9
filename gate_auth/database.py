# =======================================================================================
# gate_auth/database.py - Database Management
# =======================================================================================
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    text,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import QueuePool, StaticPool

from .config import Config, config as default_config


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DATETIME column here stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


metadata = MetaData()

users_table = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("phone", String(32), nullable=False, index=True),
    # equals phone while the row is live, NULL once soft-deleted
    Column("active_phone", String(32), nullable=True, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("token_version", Integer, nullable=False, default=0),
    Column("current_device_id", String(255), nullable=False, default=""),
    Column("created_at", DateTime, nullable=False, default=utcnow),
    Column("updated_at", DateTime, nullable=False, default=utcnow, onupdate=utcnow),
    Column("deleted_at", DateTime, nullable=True, index=True),
)

admins_table = Table(
    "admins",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("username", String(64), nullable=False, index=True),
    Column("active_username", String(64), nullable=True, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("role", String(16), nullable=False),
    Column("token_version", Integer, nullable=False, default=0),
    Column("created_at", DateTime, nullable=False, default=utcnow),
    Column("updated_at", DateTime, nullable=False, default=utcnow, onupdate=utcnow),
    Column("deleted_at", DateTime, nullable=True, index=True),
)

contacts_table = Table(
    "contacts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("support_number", BigInteger, nullable=False),
    Column("email_support", String(255), nullable=False),
    Column("address", String(512), nullable=False),
    Column("created_at", DateTime, nullable=False, default=utcnow),
    Column("updated_at", DateTime, nullable=False, default=utcnow, onupdate=utcnow),
)

audit_logs_table = Table(
    "admin_audit_logs",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("admin_id", String(36), index=True),
    Column("admin_name", String(64), index=True),
    Column("action", String(64), index=True),
    Column("resource_type", String(32), index=True),
    Column("resource_id", String(64), index=True),
    Column("details", Text),
    Column("ip_address", String(64)),
    Column("user_agent", Text),
    Column("status", String(16)),
    Column("error_message", Text),
    Column("created_at", DateTime, nullable=False, default=utcnow, index=True),
)


class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, cfg: Optional[Config] = None):
        cfg = cfg or default_config
        if cfg.DB_URL.startswith("sqlite"):
            # one shared connection so an in-memory database survives across requests
            self.engine: Engine = create_engine(
                cfg.DB_URL,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                future=True,
            )
        else:
            self.engine = create_engine(
                cfg.DB_URL,
                poolclass=QueuePool,
                pool_size=cfg.DB_POOL_SIZE,
                max_overflow=cfg.DB_MAX_OVERFLOW,
                pool_pre_ping=True,
                isolation_level="READ COMMITTED",
                future=True,
            )

    @contextmanager
    def get_connection(self) -> Iterator[Connection]:
        """Get a transactional connection; commits on success, rolls back on error."""
        with self.engine.begin() as conn:
            yield conn

    def init_schema(self) -> None:
        """Create any missing tables."""
        metadata.create_all(self.engine)

    def ping(self) -> None:
        with self.get_connection() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()

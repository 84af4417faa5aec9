"""SQLAlchemy mapping metadata for the directory model."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import Any, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    event,
    orm,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import configure_mappers

from dogrula.domain.model import (
    Application,
    ApplicationStatus,
    BlacklistEntry,
    Business,
    BusinessStatus,
    Report,
    ReportStatus,
)
from dogrula.domain.predicates import fold_case

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class StringListType(TypeDecorator[list[str]]):
    """Ordered list of strings stored as a JSON array in a text column.

    Stored as text so that substring filters reach the individual values on every
    dialect.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[str] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps([str(item) for item in value], ensure_ascii=False)

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[str]:
        _ = dialect
        if not value:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        items = cast(list[Any], loaded)
        return [item for item in items if isinstance(item, str)]


def _sqlite_lower(value: object) -> object:
    return fold_case(value) if isinstance(value, str) else value


@event.listens_for(Engine, "connect")
def _register_sqlite_functions(dbapi_connection: object, connection_record: object) -> None:
    """Replace SQLite's ASCII-only ``lower`` with the folding used by in-memory matching."""

    _ = connection_record
    if isinstance(dbapi_connection, sqlite3.Connection):
        dbapi_connection.create_function("lower", 1, _sqlite_lower, deterministic=True)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _identity_columns() -> list[Column[Any]]:
    return [
        Column("handle", String(64), nullable=True, index=True),
        Column("profile_url", String(300), nullable=True),
        Column("phone", String(32), nullable=True, index=True),
    ]


# Directory tables ------------------------------------------------------------

business_table = Table(
    "business",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String(200), nullable=False),
    Column("slug", String(200), nullable=False, unique=True),
    Column("type", String(100), nullable=True),
    *_identity_columns(),
    Column("phones", StringListType, nullable=False, default=list),
    Column("website", String(300), nullable=True),
    Column("website_host", String(200), nullable=True, index=True),
    Column("email", String(254), nullable=True),
    Column("address", String(500), nullable=True),
    Column("city", String(100), nullable=True),
    Column("district", String(100), nullable=True),
    Column("description", Text, nullable=True),
    Column("summary", Text, nullable=True),
    Column("features", StringListType, nullable=False, default=list),
    Column("verified", Boolean, nullable=False, default=False),
    Column("status", Enum(BusinessStatus, native_enum=False), nullable=False),
    Column("rating", Float, nullable=True),
    Column("reviews_count", Integer, nullable=True),
    Column("google_rating", Float, nullable=True),
    Column("google_reviews_count", Integer, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
)

application_table = Table(
    "application",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("business_name", String(200), nullable=False),
    Column("legal_name", String(200), nullable=True),
    Column("type", String(100), nullable=True),
    *_identity_columns(),
    Column("phones", StringListType, nullable=False, default=list),
    Column("website", String(300), nullable=True),
    Column("website_host", String(200), nullable=True),
    Column("email", String(254), nullable=True),
    Column("address", String(500), nullable=True),
    Column("city", String(100), nullable=True),
    Column("district", String(100), nullable=True),
    Column("terms_accepted", Boolean, nullable=False, default=False),
    Column("status", Enum(ApplicationStatus, native_enum=False), nullable=False, index=True),
    # lookup-only back-reference; businesses may be removed by admins independently
    Column("business_id", UUIDColumnType, nullable=True),
    Column("reject_reason", String(1000), nullable=True),
    Column("reviewed_at", UTCDateTime(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

report_table = Table(
    "report",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String(200), nullable=True),
    *_identity_columns(),
    Column("description", Text, nullable=True),
    Column("reporter_email", String(254), nullable=True),
    Column("reporter_ip", String(64), nullable=True),
    Column("consent", Boolean, nullable=False, default=False),
    Column("status", Enum(ReportStatus, native_enum=False), nullable=False, index=True),
    Column("close_reason", String(1000), nullable=True),
    Column("support_count", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=False),
)

report_supporter_table = Table(
    "report_supporter",
    mapper_registry.metadata,
    Column(
        "report_id",
        UUIDColumnType,
        ForeignKey("report.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("fingerprint", String(128), primary_key=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

blacklist_entry_table = Table(
    "blacklist_entry",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String(200), nullable=True),
    *_identity_columns(),
    Column("description", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

Index("ix_business_verified_created", business_table.c.verified, business_table.c.created_at)


@cache
def start_mappers() -> orm.registry:
    """Configure imperative mappings between domain records and tables."""

    mapper_registry.map_imperatively(Business, business_table)
    mapper_registry.map_imperatively(Application, application_table)
    mapper_registry.map_imperatively(Report, report_table)
    mapper_registry.map_imperatively(BlacklistEntry, blacklist_entry_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)

"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.attributes import set_committed_value

from dogrula.adapters.sqlalchemy.mappings import (
    application_table,
    blacklist_entry_table,
    business_table,
    report_supporter_table,
    report_table,
)
from dogrula.adapters.sqlalchemy.predicates import compile_predicate
from dogrula.domain.errors import PersistenceError, UniquenessViolation
from dogrula.domain.model import (
    Application,
    ApplicationStatus,
    BlacklistEntry,
    Business,
    Report,
    utcnow,
)

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy import ColumnElement, Table
    from sqlalchemy.orm import Session

    from dogrula.domain.predicates import Predicate

log = logging.getLogger(__name__)

_UNIQUE_MARKERS = ("unique", "duplicate")


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return any(marker in message for marker in _UNIQUE_MARKERS)


class SqlAlchemyRepository[TEntity]:
    """Shared add/get/find helpers for a mapped record type."""

    def __init__(
        self,
        session: Session,
        entity_cls: type[TEntity],
        table: Table,
    ) -> None:
        self.session = session
        self._entity_cls = entity_cls
        self._table = table

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> TEntity | None:
        return self.session.get(self._entity_cls, entity_id)

    def find(self, predicate: Predicate, *, limit: int | None = None) -> list[TEntity]:
        stmt = (
            select(self._entity_cls)
            .where(compile_predicate(predicate, self._table))
            .order_by(*self._ordering())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def find_one(self, predicate: Predicate) -> TEntity | None:
        matches = self.find(predicate, limit=1)
        return matches[0] if matches else None

    def _ordering(self) -> tuple[ColumnElement[object], ...]:
        return (self._table.c.created_at.desc(), self._table.c.id)


class SqlAlchemyBusinessRepository(SqlAlchemyRepository[Business]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Business, business_table)

    def add(self, entity: Business) -> None:
        # Flush right away so the slug index is checked inside the caller's transaction.
        self.session.add(entity)
        try:
            self.session.flush()
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                log.debug("Slug conflict while inserting business %s: %s", entity.id, entity.slug)
                raise UniquenessViolation(f"Business slug {entity.slug!r} is taken") from exc
            raise PersistenceError(f"Could not store business {entity.id}") from exc

    def get_by_slug(self, slug: str) -> Business | None:
        stmt = select(Business).where(business_table.c.slug == slug)
        return self.session.execute(stmt).scalar_one_or_none()

    def slug_family(self, base: str) -> list[str]:
        """Slugs equal to ``base`` or shaped ``base-<n>``."""

        stmt = select(business_table.c.slug).where(
            (business_table.c.slug == base)
            | business_table.c.slug.startswith(f"{base}-", autoescape=True)
        )
        pattern = re.compile(rf"^{re.escape(base)}(?:-\d+)?$")
        return [slug for slug in self.session.execute(stmt).scalars() if pattern.match(slug)]

    def _ordering(self) -> tuple[ColumnElement[object], ...]:
        recency = func.coalesce(business_table.c.updated_at, business_table.c.created_at)
        return (business_table.c.verified.desc(), recency.desc(), business_table.c.id)


class SqlAlchemyApplicationRepository(SqlAlchemyRepository[Application]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Application, application_table)

    def mark_approved(
        self,
        application: Application,
        business_id: UUID,
        reviewed_at: datetime,
        *,
        replacing: UUID | None = None,
    ) -> bool:
        link = application_table.c.business_id
        stmt = (
            update(application_table)
            .where(application_table.c.id == application.id)
            .where(link.is_(None) if replacing is None else link == replacing)
            .where(application_table.c.status != ApplicationStatus.REJECTED)
            .values(
                status=ApplicationStatus.APPROVED,
                business_id=business_id,
                reviewed_at=reviewed_at,
            )
        )
        if self.session.execute(stmt).rowcount != 1:
            return False
        set_committed_value(application, "status", ApplicationStatus.APPROVED)
        set_committed_value(application, "business_id", business_id)
        set_committed_value(application, "reviewed_at", reviewed_at)
        return True


class SqlAlchemyReportRepository(SqlAlchemyRepository[Report]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Report, report_table)

    def delete(self, report: Report) -> None:
        self.session.execute(
            delete(report_supporter_table).where(report_supporter_table.c.report_id == report.id)
        )
        self.session.delete(report)
        self.session.flush()

    def add_supporter(self, report_id: UUID, fingerprint: str) -> bool:
        values = {"report_id": report_id, "fingerprint": fingerprint, "created_at": utcnow()}
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql_insert(report_supporter_table).values(values).on_conflict_do_nothing()
        else:
            stmt = insert(report_supporter_table).values(values).prefix_with("OR IGNORE")
        inserted = self.session.execute(stmt).rowcount == 1
        if inserted:
            self.session.execute(
                update(report_table)
                .where(report_table.c.id == report_id)
                .values(support_count=report_table.c.support_count + 1)
            )
        return inserted

    def support_count(self, report_id: UUID) -> int:
        stmt = select(report_table.c.support_count).where(report_table.c.id == report_id)
        return self.session.execute(stmt).scalar_one_or_none() or 0

    def supporters(self, report_id: UUID) -> frozenset[str]:
        stmt = select(report_supporter_table.c.fingerprint).where(
            report_supporter_table.c.report_id == report_id
        )
        return frozenset(self.session.execute(stmt).scalars())


class SqlAlchemyBlacklistRepository(SqlAlchemyRepository[BlacklistEntry]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, BlacklistEntry, blacklist_entry_table)

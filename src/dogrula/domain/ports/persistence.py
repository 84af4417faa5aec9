"""Ports for persisting directory records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from dogrula.domain.model import Application, BlacklistEntry, Business, Report

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from dogrula.domain.predicates import Predicate


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent record store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class SearchableRepository[TEntity](Repository[TEntity], Protocol):
    """Records that can be filtered with a lookup predicate."""

    def find(self, predicate: Predicate, *, limit: int | None = None) -> list[TEntity]: ...

    def find_one(self, predicate: Predicate) -> TEntity | None: ...


@runtime_checkable
class BusinessRepository(SearchableRepository[Business], Protocol):
    """Businesses come back ordered verified first, then most recently touched first.

    ``add`` writes through immediately and raises ``UniquenessViolation`` when the slug
    is already taken.
    """

    def get_by_slug(self, slug: str) -> Business | None: ...

    def slug_family(self, base: str) -> list[str]: ...


@runtime_checkable
class ApplicationRepository(Repository[Application], Protocol):
    def mark_approved(
        self,
        application: Application,
        business_id: UUID,
        reviewed_at: datetime,
        *,
        replacing: UUID | None = None,
    ) -> bool:
        """Link and approve unless another writer already did; ``False`` if it lost.

        The claim holds only while the stored link still equals ``replacing``, which is
        ``None`` for a first approval and the dangling id when re-promoting.
        """
        ...


@runtime_checkable
class ReportRepository(Repository[Report], Protocol):
    def delete(self, report: Report) -> None: ...

    def add_supporter(self, report_id: UUID, fingerprint: str) -> bool:
        """Record a supporter and bump the counter; ``False`` when already present."""
        ...

    def support_count(self, report_id: UUID) -> int: ...

    def supporters(self, report_id: UUID) -> frozenset[str]: ...


@runtime_checkable
class BlacklistRepository(SearchableRepository[BlacklistEntry], Protocol):
    """Persistence contract for blacklist entries."""

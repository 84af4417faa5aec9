"""Application orchestration entry points.

Each function wires a domain operation to the SQLAlchemy unit of work, the environment
configuration and the process-wide result cache. Every collaborator can be overridden,
which is how tests and embedding services inject their own.
"""

from __future__ import annotations

from functools import cache
from logging import getLogger
from typing import TYPE_CHECKING

from dogrula.adapters.intake import (
    parse_application,
    parse_blacklist_changes,
    parse_blacklist_entry,
    parse_business,
    parse_business_changes,
    parse_report,
    parse_report_changes,
)
from dogrula.adapters.memory_cache import build_result_cache
from dogrula.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyDirectoryUnitOfWork,
    is_started,
    startup,
)
from dogrula.config import DirectoryConfig, get_directory_config
from dogrula.domain import intake
from dogrula.domain.classification import Classification, classify
from dogrula.domain.endorsement import SupportResult, add_support
from dogrula.domain.escalation import escalate_to_blacklist
from dogrula.domain.promotion import PromotionResult, approve_application, reject_application
from dogrula.domain.resolution import ResolveResult, Resolver
from dogrula.domain.search import DirectorySearch, SearchResult

if TYPE_CHECKING:
    from uuid import UUID

    from dogrula.adapters.intake.schema import PayloadInput
    from dogrula.domain.model import Application, BlacklistEntry, Business, Report
    from dogrula.domain.ports import ResultCache, UnitOfWorkFactory


log = getLogger(__name__)


@cache
def shared_result_cache() -> ResultCache:
    """Process-wide cache for resolve/search results, built from the environment."""

    return build_result_cache(get_directory_config())


def init_database(database_uri: str | None = None) -> None:
    """Create the engine and tables if the adapter has not been started yet."""

    if not is_started():
        startup(database_uri=database_uri)
        log.info("Database initialised")


def _unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    init_database()
    return SqlAlchemyDirectoryUnitOfWork


def _config(config: DirectoryConfig | None) -> DirectoryConfig:
    return config or get_directory_config()


def _cache(result_cache: ResultCache | None) -> ResultCache:
    return result_cache if result_cache is not None else shared_result_cache()


def classify_query(
    query: str,
    hint: str | None = None,
    *,
    config: DirectoryConfig | None = None,
) -> Classification:
    return classify(query, hint, region=_config(config).default_region)


def resolve_query(
    query: str,
    hint: str | None = None,
    limit: int | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: DirectoryConfig | None = None,
    result_cache: ResultCache | None = None,
) -> ResolveResult:
    resolver = Resolver(
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        config=_config(config),
        cache=_cache(result_cache),
    )
    result = resolver.resolve(query, hint, limit)
    log.info(
        "Resolved %r as %s: %s (%d records)",
        query,
        result.classification.type,
        result.status,
        len(result.records),
    )
    return result


def search_directory(
    query: str,
    *,
    limit: int | None = None,
    by_rating: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: DirectoryConfig | None = None,
    result_cache: ResultCache | None = None,
) -> SearchResult:
    search = DirectorySearch(
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        config=_config(config),
        cache=_cache(result_cache),
    )
    return search.search(query, limit=limit, by_rating=by_rating)


def approve(
    application_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: DirectoryConfig | None = None,
    result_cache: ResultCache | None = None,
) -> PromotionResult:
    return approve_application(
        application_id,
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        config=_config(config),
        cache=_cache(result_cache),
    )


def reject(
    application_id: UUID,
    reason: str | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    result_cache: ResultCache | None = None,
) -> Application:
    return reject_application(
        application_id,
        reason,
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        cache=_cache(result_cache),
    )


def add_report_support(
    report_id: UUID,
    fingerprint: str | None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SupportResult:
    return add_support(
        report_id,
        fingerprint,
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
    )


def escalate_report(
    report_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: DirectoryConfig | None = None,
    result_cache: ResultCache | None = None,
) -> BlacklistEntry:
    return escalate_to_blacklist(
        report_id,
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        config=_config(config),
        cache=_cache(result_cache),
    )


def submit_application(
    payload: PayloadInput,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: DirectoryConfig | None = None,
) -> Application:
    return intake.submit_application(
        parse_application(payload),
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        config=_config(config),
    )


def submit_report(
    payload: PayloadInput,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: DirectoryConfig | None = None,
) -> Report:
    return intake.submit_report(
        parse_report(payload),
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        config=_config(config),
    )


def update_report(
    report_id: UUID,
    payload: PayloadInput,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: DirectoryConfig | None = None,
) -> Report:
    return intake.update_report(
        report_id,
        parse_report_changes(payload),
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        config=_config(config),
    )


def create_business(
    payload: PayloadInput,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: DirectoryConfig | None = None,
    result_cache: ResultCache | None = None,
) -> Business:
    return intake.create_business(
        parse_business(payload),
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        config=_config(config),
        cache=_cache(result_cache),
    )


def create_blacklist_entry(
    payload: PayloadInput,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: DirectoryConfig | None = None,
    result_cache: ResultCache | None = None,
) -> BlacklistEntry:
    return intake.create_blacklist_entry(
        parse_blacklist_entry(payload),
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        config=_config(config),
        cache=_cache(result_cache),
    )


def update_business(
    business_id: UUID,
    payload: PayloadInput,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: DirectoryConfig | None = None,
    result_cache: ResultCache | None = None,
) -> Business:
    return intake.update_business(
        business_id,
        parse_business_changes(payload),
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        config=_config(config),
        cache=_cache(result_cache),
    )


def update_blacklist_entry(
    entry_id: UUID,
    payload: PayloadInput,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: DirectoryConfig | None = None,
    result_cache: ResultCache | None = None,
) -> BlacklistEntry:
    return intake.update_blacklist_entry(
        entry_id,
        parse_blacklist_changes(payload),
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
        config=_config(config),
        cache=_cache(result_cache),
    )

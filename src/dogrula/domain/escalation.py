"""Escalate a report into a blacklist entry."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from dogrula.config.directory import DirectoryConfig
from dogrula.domain.errors import NotFoundError, ValidationError
from dogrula.domain.exclusion import ensure_not_listed
from dogrula.domain.model import BlacklistEntry, RecordKind, utcnow
from dogrula.domain.normalization import normalize_blacklist_entry, normalize_report
from dogrula.domain.promotion import normalization_options

if TYPE_CHECKING:
    from uuid import UUID

    from dogrula.domain.ports import ResultCache, UnitOfWorkFactory

log = getLogger(__name__)


def escalate_to_blacklist(
    report_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: DirectoryConfig | None = None,
    cache: ResultCache | None = None,
) -> BlacklistEntry:
    """Copy the report's normalized identity into the blacklist and delete the report.

    Both writes commit together; a failure leaves the report in place and no entry.
    """

    options = normalization_options(config or DirectoryConfig())
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        report = repositories.reports.get(report_id)
        if report is None:
            raise NotFoundError(RecordKind.REPORT, report_id)

        normalize_report(report, options)
        if not report.has_identity():
            raise ValidationError(f"Report {report_id} carries no identity to blacklist")
        ensure_not_listed(repositories, handle=report.handle, phone=report.phone)

        entry = normalize_blacklist_entry(
            BlacklistEntry(
                name=report.name,
                handle=report.handle,
                profile_url=report.profile_url,
                phone=report.phone,
                description=report.description,
                created_at=utcnow(),
            ),
            options,
        )
        repositories.blacklist.add(entry)
        repositories.reports.delete(report)
        uow.commit()

    log.info("Report %s escalated to blacklist entry %s", report_id, entry.id)
    if cache is not None:
        cache.clear()
    return entry

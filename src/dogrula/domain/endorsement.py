"""At-most-once endorsement counter for reports."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from dogrula.domain.errors import NotFoundError, ValidationError
from dogrula.domain.model import RecordKind

if TYPE_CHECKING:
    from uuid import UUID

    from dogrula.domain.ports import UnitOfWorkFactory

log = getLogger(__name__)

MAX_FINGERPRINT_LENGTH = 128


@dataclass(frozen=True, slots=True)
class SupportResult:
    updated: bool
    support_count: int


def add_support(
    report_id: UUID,
    fingerprint: str | None,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> SupportResult:
    """Count ``fingerprint`` as a supporter of the report at most once.

    The supporter row and the counter change in the same transaction, and the insert is
    conditional on the fingerprint being new, so concurrent duplicates increment once.
    A blank fingerprint changes nothing; one longer than ``MAX_FINGERPRINT_LENGTH`` is
    rejected.
    """

    token = (fingerprint or "").strip()
    if len(token) > MAX_FINGERPRINT_LENGTH:
        raise ValidationError(
            "Fingerprint is too long",
            fields={"fingerprint": f"max length {MAX_FINGERPRINT_LENGTH}"},
        )
    with unit_of_work_factory() as uow:
        reports = uow.repositories.reports
        if reports.get(report_id) is None:
            raise NotFoundError(RecordKind.REPORT, report_id)
        if not token:
            return SupportResult(updated=False, support_count=reports.support_count(report_id))

        updated = reports.add_supporter(report_id, token)
        count = reports.support_count(report_id)
        if updated:
            uow.commit()
        else:
            log.debug("Fingerprint already supports report %s", report_id)

    return SupportResult(updated=updated, support_count=count)

"""Public submissions and admin inserts that feed the directory."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from dogrula.config.directory import DirectoryConfig
from dogrula.domain.canonicalization import slugify
from dogrula.domain.errors import ConflictError, NotFoundError, UniquenessViolation, ValidationError
from dogrula.domain.exclusion import ensure_not_blacklisted, ensure_not_listed
from dogrula.domain.model import (
    Application,
    ApplicationStatus,
    BlacklistEntry,
    Business,
    BusinessStatus,
    RecordKind,
    Report,
    ReportStatus,
    utcnow,
)
from dogrula.domain.normalization import (
    clean_text,
    normalize_application,
    normalize_blacklist_entry,
    normalize_business,
    normalize_report,
)
from dogrula.domain.promotion import next_free_slug, normalization_options

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime
    from uuid import UUID

    from dogrula.domain.ports import DirectoryRepositories, ResultCache, UnitOfWorkFactory

log = getLogger(__name__)

MIN_BUSINESS_NAME_LENGTH: Final[int] = 2
REPORT_MUTABLE_FIELDS: Final[frozenset[str]] = frozenset(
    {"name", "handle", "profile_url", "phone", "description", "status", "close_reason"}
)
BLACKLIST_MUTABLE_FIELDS: Final[frozenset[str]] = frozenset(
    {"name", "handle", "profile_url", "phone", "description"}
)
BUSINESS_MUTABLE_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "name",
        "slug",
        "type",
        "phone",
        "phones",
        "handle",
        "profile_url",
        "website",
        "email",
        "address",
        "city",
        "district",
        "description",
        "summary",
        "features",
        "verified",
        "status",
        "rating",
        "reviews_count",
        "google_rating",
        "google_reviews_count",
    }
)


def _require_identity(record: Report | BlacklistEntry) -> None:
    if not any((record.name, record.handle, record.profile_url, record.phone)):
        raise ValidationError(
            "At least one of name, handle, profile URL or phone is required",
            fields={"identity": "required"},
        )


def _reject_unknown(
    kind: RecordKind,
    changes: Mapping[str, object],
    allowed: frozenset[str],
) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(
            f"Unknown {kind} fields", fields={name: "not editable" for name in sorted(unknown)}
        )


def _report_status(value: object) -> ReportStatus:
    try:
        return ReportStatus(str(value))
    except ValueError as exc:
        raise ValidationError(
            f"Unknown report status {value!r}", fields={"status": "invalid"}
        ) from exc


def _business_status(value: object) -> BusinessStatus:
    try:
        return BusinessStatus(str(value))
    except ValueError as exc:
        raise ValidationError(
            f"Unknown business status {value!r}", fields={"status": "invalid"}
        ) from exc


def _updated_slug(
    repositories: DirectoryRepositories,
    business: Business,
    changes: Mapping[str, object],
    config: DirectoryConfig,
) -> str | None:
    """Slug after applying ``changes``, read before the business is touched.

    An explicit slug wins; otherwise a rename re-derives the slug from the new name.
    The business's own slug never counts as taken.
    """

    new_name = clean_text(str(changes.get("name") or ""))
    if changes.get("slug"):
        source = str(changes["slug"])
    elif new_name and new_name != business.name:
        source = new_name
    else:
        return business.slug
    base = slugify(source, config.slug_locale, config.slug_fallback)
    if base == business.slug:
        return base
    siblings = [slug for slug in repositories.businesses.slug_family(base) if slug != business.slug]
    return next_free_slug(base, siblings)


def submit_application(
    application: Application,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: DirectoryConfig | None = None,
) -> Application:
    normalize_application(application, normalization_options(config or DirectoryConfig()))
    if len(application.business_name) < MIN_BUSINESS_NAME_LENGTH:
        raise ValidationError(
            "Business name is too short", fields={"business_name": "min length 2"}
        )
    if not application.terms_accepted:
        raise ValidationError("Terms must be accepted", fields={"terms_accepted": "required"})
    application.status = ApplicationStatus.PENDING
    application.business_id = None
    with unit_of_work_factory() as uow:
        uow.repositories.applications.add(application)
        uow.commit()
    log.info("Application %s submitted for %r", application.id, application.business_name)
    return application


def submit_report(
    report: Report,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: DirectoryConfig | None = None,
) -> Report:
    normalize_report(report, normalization_options(config or DirectoryConfig()))
    _require_identity(report)
    report.status = ReportStatus.OPEN
    report.support_count = 0
    with unit_of_work_factory() as uow:
        uow.repositories.reports.add(report)
        uow.commit()
    log.info("Report %s filed", report.id)
    return report


def update_report(
    report_id: UUID,
    changes: Mapping[str, object],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: DirectoryConfig | None = None,
) -> Report:
    """Apply admin edits; identity fields are re-normalized before saving."""

    _reject_unknown(RecordKind.REPORT, changes, REPORT_MUTABLE_FIELDS)
    options = normalization_options(config or DirectoryConfig())
    with unit_of_work_factory() as uow:
        report = uow.repositories.reports.get(report_id)
        if report is None:
            raise NotFoundError(RecordKind.REPORT, report_id)
        for name, value in changes.items():
            setattr(report, name, _report_status(value) if name == "status" else value)
        normalize_report(report, options)
        _require_identity(report)
        if report.status is not ReportStatus.CLOSED:
            report.close_reason = None
        uow.commit()
    return report


def create_business(
    business: Business,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: DirectoryConfig | None = None,
    cache: ResultCache | None = None,
) -> Business:
    """Admin insert with the same slug allocation as the promotion workflow."""

    effective_config = config or DirectoryConfig()
    normalize_business(business, normalization_options(effective_config))
    if len(business.name) < MIN_BUSINESS_NAME_LENGTH:
        raise ValidationError("Business name is too short", fields={"name": "min length 2"})
    base = slugify(business.slug, effective_config.slug_locale, effective_config.slug_fallback)
    try:
        with unit_of_work_factory() as uow:
            repositories = uow.repositories
            ensure_not_blacklisted(
                repositories,
                handle=business.handle,
                phone=business.phone,
                phones=business.phones,
            )
            business.slug = next_free_slug(base, repositories.businesses.slug_family(base))
            repositories.businesses.add(business)
            uow.commit()
    except UniquenessViolation as exc:
        raise ConflictError(f"Slug {business.slug!r} was taken concurrently") from exc
    if cache is not None:
        cache.clear()
    log.info("Business %s created with slug %s", business.id, business.slug)
    return business


def create_blacklist_entry(
    entry: BlacklistEntry,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: DirectoryConfig | None = None,
    cache: ResultCache | None = None,
) -> BlacklistEntry:
    normalize_blacklist_entry(entry, normalization_options(config or DirectoryConfig()))
    _require_identity(entry)
    with unit_of_work_factory() as uow:
        ensure_not_listed(uow.repositories, handle=entry.handle, phone=entry.phone)
        uow.repositories.blacklist.add(entry)
        uow.commit()
    if cache is not None:
        cache.clear()
    log.info("Blacklist entry %s created", entry.id)
    return entry


def update_business(
    business_id: UUID,
    changes: Mapping[str, object],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: DirectoryConfig | None = None,
    cache: ResultCache | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> Business:
    """Apply admin edits to a business and keep it unique and off the blacklist.

    A new primary phone replaces the old one unless ``phones`` is edited as well, and a
    new handle rebuilds the profile URL unless one is sent with it.
    """

    _reject_unknown(RecordKind.BUSINESS, changes, BUSINESS_MUTABLE_FIELDS)
    effective_config = config or DirectoryConfig()
    try:
        with unit_of_work_factory() as uow:
            repositories = uow.repositories
            business = repositories.businesses.get(business_id)
            if business is None:
                raise NotFoundError(RecordKind.BUSINESS, business_id)
            slug = _updated_slug(repositories, business, changes, effective_config)
            if "phone" in changes and "phones" not in changes:
                business.phones = [phone for phone in business.phones if phone != business.phone]
            if "handle" in changes and "profile_url" not in changes:
                business.profile_url = None
            for name, value in changes.items():
                if name == "status":
                    business.status = _business_status(value)
                elif name != "slug":
                    setattr(business, name, value)
            business.slug = slug
            normalize_business(business, normalization_options(effective_config))
            if len(business.name) < MIN_BUSINESS_NAME_LENGTH:
                raise ValidationError(
                    "Business name is too short", fields={"name": "min length 2"}
                )
            business.updated_at = clock()
            repositories.businesses.add(business)
            ensure_not_blacklisted(
                repositories,
                handle=business.handle,
                phone=business.phone,
                phones=business.phones,
            )
            uow.commit()
    except UniquenessViolation as exc:
        raise ConflictError(f"Slug of business {business_id} was taken concurrently") from exc
    if cache is not None:
        cache.clear()
    log.info("Business %s updated; slug %s", business.id, business.slug)
    return business


def update_blacklist_entry(
    entry_id: UUID,
    changes: Mapping[str, object],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: DirectoryConfig | None = None,
    cache: ResultCache | None = None,
) -> BlacklistEntry:
    _reject_unknown(RecordKind.BLACKLIST, changes, BLACKLIST_MUTABLE_FIELDS)
    options = normalization_options(config or DirectoryConfig())
    with unit_of_work_factory() as uow:
        entry = uow.repositories.blacklist.get(entry_id)
        if entry is None:
            raise NotFoundError(RecordKind.BLACKLIST, entry_id)
        if "handle" in changes and "profile_url" not in changes:
            entry.profile_url = None
        for name, value in changes.items():
            setattr(entry, name, value)
        normalize_blacklist_entry(entry, options)
        _require_identity(entry)
        ensure_not_listed(uow.repositories, handle=entry.handle, phone=entry.phone)
        uow.commit()
    if cache is not None:
        cache.clear()
    log.info("Blacklist entry %s updated", entry.id)
    return entry

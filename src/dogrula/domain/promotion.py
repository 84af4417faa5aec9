"""Promotion workflow: turn a pending application into exactly one directory record.

States: ``pending -> approved`` (terminal, linked to one business) or
``pending -> rejected`` (terminal).

Each attempt runs in a single unit of work. The application is claimed with a
conditional update, and the business insert is guarded by the unique slug index. Losing
either race rolls the attempt back and runs it exactly once more: the second attempt
sees the winner's link and returns it, or retries the insert under a timestamp-derived
fallback slug.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from dogrula.config.directory import DirectoryConfig
from dogrula.domain.canonicalization import slugify
from dogrula.domain.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    UniquenessViolation,
)
from dogrula.domain.exclusion import BUSINESS_PHONE_FIELDS, ensure_not_blacklisted, phone_set
from dogrula.domain.model import (
    Application,
    ApplicationStatus,
    Business,
    BusinessStatus,
    RecordKind,
    utcnow,
)
from dogrula.domain.normalization import (
    NormalizationOptions,
    normalize_application,
    normalize_business,
)
from dogrula.domain.predicates import AnyOf, Equals

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime
    from uuid import UUID

    from dogrula.domain.ports import DirectoryRepositories, ResultCache, UnitOfWorkFactory

log = getLogger(__name__)

# application attribute -> business attribute, merged when present on the application
MERGED_FIELDS: tuple[tuple[str, str], ...] = (
    ("business_name", "name"),
    ("type", "type"),
    ("phone", "phone"),
    ("handle", "handle"),
    ("profile_url", "profile_url"),
    ("website", "website"),
    ("email", "email"),
    ("address", "address"),
    ("city", "city"),
    ("district", "district"),
)


class ApprovalRaceLost(Exception):  # noqa: N818
    """Another transaction approved the application first."""


@dataclass(frozen=True, slots=True)
class PromotionResult:
    business: Business
    created: bool
    updated: bool


def normalization_options(config: DirectoryConfig) -> NormalizationOptions:
    return NormalizationOptions(
        region=config.default_region,
        slug_locale=config.slug_locale,
        slug_fallback=config.slug_fallback,
    )


def next_free_slug(base: str, existing: Iterable[str]) -> str:
    """``base`` when unused, otherwise ``base-<highest suffix + 1>``.

    The bare ``base`` counts as suffix 1.
    """

    pattern = re.compile(rf"^{re.escape(base)}-(\d+)$")
    taken = False
    highest = 1
    for slug in existing:
        if slug == base:
            taken = True
            continue
        match = pattern.match(slug)
        if match is not None:
            highest = max(highest, int(match.group(1)))
    return f"{base}-{highest + 1}" if taken else base


def fallback_slug(base: str, now: datetime) -> str:
    """High-entropy slug for the retry; never shaped like ``base-<n>``."""

    return f"{base}-t{int(now.timestamp() * 1_000_000):x}"


def base_slug(application: Application, config: DirectoryConfig) -> str:
    source = application.business_name or application.handle
    return slugify(source, config.slug_locale, config.slug_fallback)


def _corroborates(business: Business, application: Application) -> bool:
    """Whether a slug-matched business is the applicant rather than a namesake."""

    if application.handle and business.handle == application.handle:
        return True
    applicant_phones = set(phone_set(application.phone, application.phones))
    return bool(applicant_phones & set(phone_set(business.phone, business.phones)))


def find_candidate(
    repositories: DirectoryRepositories,
    application: Application,
    base: str,
) -> Business | None:
    """Existing business for the application: by slug, then handle, then phone."""

    by_slug = repositories.businesses.get_by_slug(base)
    if by_slug is not None and _corroborates(by_slug, application):
        return by_slug
    if application.handle:
        found = repositories.businesses.find_one(Equals("handle", application.handle))
        if found is not None:
            return found
    for phone in phone_set(application.phone, application.phones):
        found = repositories.businesses.find_one(
            AnyOf(tuple(Equals(field, phone) for field in BUSINESS_PHONE_FIELDS))
        )
        if found is not None:
            return found
    return None


def merge_application(business: Business, application: Application, now: datetime) -> Business:
    """Copy present application fields onto ``business``; absent ones never clear it."""

    for source, target in MERGED_FIELDS:
        value = getattr(application, source)
        if value:
            setattr(business, target, value)
    business.phones = phone_set(business.phone, [*business.phones, *application.phones])
    business.verified = True
    business.status = BusinessStatus.APPROVED
    business.updated_at = now
    return business


def business_from_application(application: Application, slug: str, now: datetime) -> Business:
    business = Business(name=application.business_name, slug=slug, created_at=now)
    return merge_application(business, application, now)


def _approve_once(
    application_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: DirectoryConfig,
    clock: Callable[[], datetime],
    use_fallback_slug: bool,
) -> PromotionResult:
    options = normalization_options(config)
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        application = repositories.applications.get(application_id)
        if application is None:
            raise NotFoundError(RecordKind.APPLICATION, application_id)
        if application.status is ApplicationStatus.REJECTED:
            raise InvalidTransitionError(f"Application {application_id} was rejected")
        stale_link = application.business_id
        if stale_link is not None:
            linked = repositories.businesses.get(stale_link)
            if linked is not None:
                return PromotionResult(business=linked, created=False, updated=False)
            log.warning(
                "Application %s links missing business %s; promoting again",
                application_id,
                stale_link,
            )

        normalize_application(application, options)
        ensure_not_blacklisted(
            repositories,
            handle=application.handle,
            phone=application.phone,
            phones=application.phones,
        )

        now = clock()
        base = base_slug(application, config)
        business = find_candidate(repositories, application, base)
        created = business is None
        if business is None:
            slug = (
                fallback_slug(base, now)
                if use_fallback_slug
                else next_free_slug(base, repositories.businesses.slug_family(base))
            )
            business = business_from_application(application, slug, now)
        else:
            merge_application(business, application, now)
        normalize_business(business, options)

        claimed = repositories.applications.mark_approved(
            application, business.id, now, replacing=stale_link
        )
        if not claimed:
            raise ApprovalRaceLost(str(application_id))
        if created:
            repositories.businesses.add(business)
        uow.commit()

    return PromotionResult(business=business, created=created, updated=not created)


def approve_application(
    application_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: DirectoryConfig | None = None,
    cache: ResultCache | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> PromotionResult:
    """Promote an application into a business; safe to call repeatedly and concurrently.

    Raises ``NotFoundError`` for unknown applications, ``InvalidTransitionError`` for
    rejected ones, ``IdentityConflictError`` when the identity is blacklisted and
    ``ConflictError`` when the single retry loses a race as well.
    """

    effective_config = config or DirectoryConfig()
    try:
        result = _approve_once(
            application_id,
            unit_of_work_factory=unit_of_work_factory,
            config=effective_config,
            clock=clock,
            use_fallback_slug=False,
        )
    except (UniquenessViolation, ApprovalRaceLost) as exc:
        log.warning("Approval of %s lost a race (%s); retrying once", application_id, exc)
        try:
            result = _approve_once(
                application_id,
                unit_of_work_factory=unit_of_work_factory,
                config=effective_config,
                clock=clock,
                use_fallback_slug=True,
            )
        except (UniquenessViolation, ApprovalRaceLost) as retry_exc:
            raise ConflictError(
                f"Could not approve application {application_id}: concurrent writes"
            ) from retry_exc

    if result.created or result.updated:
        log.info(
            "Application %s approved: business=%s slug=%s created=%s",
            application_id,
            result.business.id,
            result.business.slug,
            result.created,
        )
        if cache is not None:
            cache.clear()
    return result


def reject_application(
    application_id: UUID,
    reason: str | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    cache: ResultCache | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> Application:
    """Move a pending application to rejected; rejecting twice is a no-op."""

    with unit_of_work_factory() as uow:
        application = uow.repositories.applications.get(application_id)
        if application is None:
            raise NotFoundError(RecordKind.APPLICATION, application_id)
        if application.status is ApplicationStatus.REJECTED:
            return application
        if application.status is ApplicationStatus.APPROVED:
            raise InvalidTransitionError(f"Application {application_id} is already approved")
        application.status = ApplicationStatus.REJECTED
        application.reject_reason = reason.strip() if reason and reason.strip() else None
        application.reviewed_at = clock()
        uow.commit()

    log.info("Application %s rejected", application_id)
    if cache is not None:
        cache.clear()
    return application

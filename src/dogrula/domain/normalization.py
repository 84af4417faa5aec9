"""Write-boundary normalization for directory records.

Every create and update path runs the record through ``normalize_record`` before it is
persisted, so stored identity fields are always canonical. The functions do no I/O; they
rewrite the record's fields in place and return it.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import singledispatch
from typing import TYPE_CHECKING

from dogrula.domain.canonicalization import (
    DEFAULT_REGION,
    canonical_handle,
    canonical_host,
    canonical_phone,
    canonical_profile_url,
    ensure_scheme,
    slugify,
)
from dogrula.domain.model import Application, BlacklistEntry, Business, Report

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True, slots=True)
class NormalizationOptions:
    region: str = DEFAULT_REGION
    slug_locale: str = "tr"
    slug_fallback: str = "business"


DEFAULT_OPTIONS = NormalizationOptions()


def clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _or_none(value: str) -> str | None:
    return value or None


def _identity(
    handle: str | None,
    profile_url: str | None,
    phone: str | None,
    region: str,
) -> tuple[str | None, str | None, str | None]:
    canonical = canonical_handle(handle) or canonical_handle(profile_url)
    url = canonical_profile_url(profile_url) or canonical_profile_url(canonical)
    return _or_none(canonical), _or_none(url), _or_none(canonical_phone(phone, region))


def _phones(
    primary: str | None,
    others: Iterable[str],
    region: str,
) -> tuple[str | None, list[str]]:
    """Primary phone plus every distinct canonical phone, primary first.

    Without a primary the first listed phone takes its place.
    """

    phones = _dedupe([canonical_phone(phone, region) for phone in (primary, *others)])
    return (phones[0] if phones else None), phones


def _website(value: str | None) -> tuple[str | None, str | None]:
    website = clean_text(value)
    if website is None:
        return None, None
    website = ensure_scheme(website)
    return website, _or_none(canonical_host(website))


def _email(value: str | None) -> str | None:
    email = clean_text(value)
    return email.lower() if email else None


def _dedupe(values: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        cleaned = clean_text(value)
        if cleaned is not None:
            seen.setdefault(cleaned, None)
    return list(seen)


@singledispatch
def normalize_record(record: object, options: NormalizationOptions = DEFAULT_OPTIONS) -> object:
    raise TypeError(f"Cannot normalize {type(record).__name__}")


@normalize_record.register
def normalize_business(
    business: Business,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> Business:
    business.name = clean_text(business.name) or ""
    business.handle, business.profile_url, business.phone = _identity(
        business.handle, business.profile_url, business.phone, options.region
    )
    business.phone, business.phones = _phones(business.phone, business.phones, options.region)
    business.website, business.website_host = _website(business.website)
    business.email = _email(business.email)
    business.slug = slugify(
        business.slug or business.name or business.handle,
        options.slug_locale,
        options.slug_fallback,
    )
    for attr in ("type", "address", "city", "district", "description", "summary"):
        setattr(business, attr, clean_text(getattr(business, attr)))
    business.features = _dedupe(business.features)
    return business


@normalize_record.register
def normalize_application(
    application: Application,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> Application:
    application.business_name = clean_text(application.business_name) or ""
    application.handle, application.profile_url, application.phone = _identity(
        application.handle, application.profile_url, application.phone, options.region
    )
    application.phone, application.phones = _phones(
        application.phone, application.phones, options.region
    )
    application.website, application.website_host = _website(application.website)
    application.email = _email(application.email)
    for attr in ("legal_name", "type", "address", "city", "district", "reject_reason"):
        setattr(application, attr, clean_text(getattr(application, attr)))
    return application


@normalize_record.register
def normalize_report(
    report: Report,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> Report:
    report.name = clean_text(report.name)
    report.handle, report.profile_url, report.phone = _identity(
        report.handle, report.profile_url, report.phone, options.region
    )
    report.description = clean_text(report.description)
    report.reporter_email = _email(report.reporter_email)
    report.close_reason = clean_text(report.close_reason)
    return report


@normalize_record.register
def normalize_blacklist_entry(
    entry: BlacklistEntry,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> BlacklistEntry:
    entry.name = clean_text(entry.name)
    entry.handle, entry.profile_url, entry.phone = _identity(
        entry.handle, entry.profile_url, entry.phone, options.region
    )
    entry.description = clean_text(entry.description)
    return entry

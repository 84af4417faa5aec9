"""Resolve a lookup query to a verified business, a blacklist entry, or nothing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from dogrula.domain.canonicalization import (
    canonical_handle,
    canonical_phone,
    digits_of,
    phone_suffix,
    slugify,
)
from dogrula.domain.classification import Classification, classify
from dogrula.domain.exclusion import shares_identity
from dogrula.domain.model import IdentityType, RecordKind, ResolutionStatus
from dogrula.domain.predicates import AnyOf, Contains, EndsWith, Equals, FieldPredicate

if TYPE_CHECKING:
    from dogrula.config import DirectoryConfig
    from dogrula.domain.model import BlacklistEntry, Business
    from dogrula.domain.ports import ResultCache, UnitOfWorkFactory

log = logging.getLogger(__name__)

MIN_PHONE_DIGITS: Final[int] = 6

_RESOLVABLE_FIELDS: Final[dict[RecordKind, frozenset[str]]] = {
    RecordKind.BUSINESS: frozenset(
        {"name", "slug", "handle", "profile_url", "website_host", "phone", "phones"}
    ),
    RecordKind.BLACKLIST: frozenset({"name", "handle", "profile_url", "phone"}),
}


@dataclass(frozen=True, slots=True)
class ResolveResult:
    status: ResolutionStatus
    classification: Classification
    record: Business | BlacklistEntry | None = None
    records: tuple[Business, ...] | tuple[BlacklistEntry, ...] = field(default=())


def identity_predicate(
    classification: Classification,
    kind: RecordKind,
    *,
    region: str,
    slug_locale: str = "tr",
) -> AnyOf:
    """OR-set of identity lookups for ``classification`` against one record kind."""

    value = classification.canonical_value
    raw = classification.raw
    digits = digits_of(raw)
    handle = classification.extracted_handle or canonical_handle(raw)

    candidates: list[FieldPredicate] = [
        Contains("name", value),
        Equals("slug", slugify(value, slug_locale, fallback="")),
        Equals("handle", handle if " " not in handle else ""),
        Contains("profile_url", handle or value),
    ]
    if classification.type is IdentityType.WEBSITE:
        candidates.append(Equals("website_host", value))
    if classification.type is IdentityType.PHONE or len(digits) >= MIN_PHONE_DIGITS:
        phone = canonical_phone(raw, region)
        candidates += [Equals("phone", phone), Equals("phones", phone)]
    if len(digits) >= MIN_PHONE_DIGITS:
        suffix = phone_suffix(raw)
        candidates += [EndsWith("phone", suffix), EndsWith("phones", suffix)]

    allowed = _RESOLVABLE_FIELDS[kind]
    return AnyOf(
        tuple(clause for clause in candidates if clause.field in allowed and clause.value)
    )


class Resolver:
    """Looks a query up against businesses first and the blacklist second."""

    def __init__(
        self,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        config: DirectoryConfig,
        cache: ResultCache,
    ) -> None:
        self.unit_of_work_factory = unit_of_work_factory
        self.config = config
        self.cache = cache

    def resolve(
        self,
        query: str,
        hint: str | None = None,
        limit: int | None = None,
    ) -> ResolveResult:
        classification = classify(query, hint, region=self.config.default_region)
        effective_limit = max(1, limit or self.config.resolve_limit)
        key = (
            "resolve",
            classification.type,
            classification.canonical_value,
            digits_of(classification.raw),
            effective_limit,
        )
        cached = self.cache.get(key)
        if isinstance(cached, ResolveResult):
            return cached

        result = self._lookup(classification, effective_limit)
        self.cache.set(key, result)
        return result

    def _lookup(self, classification: Classification, limit: int) -> ResolveResult:
        business_predicate = identity_predicate(
            classification,
            RecordKind.BUSINESS,
            region=self.config.default_region,
            slug_locale=self.config.slug_locale,
        )
        blacklist_predicate = identity_predicate(
            classification,
            RecordKind.BLACKLIST,
            region=self.config.default_region,
            slug_locale=self.config.slug_locale,
        )
        with self.unit_of_work_factory() as uow:
            businesses = uow.repositories.businesses.find(business_predicate, limit=limit)
            blacklisted = uow.repositories.blacklist.find_one(blacklist_predicate)

        if businesses:
            if blacklisted is not None:
                self._report_overlap(classification, businesses, blacklisted)
            return ResolveResult(
                status=ResolutionStatus.VERIFIED,
                classification=classification,
                record=businesses[0],
                records=tuple(businesses),
            )
        if blacklisted is not None:
            return ResolveResult(
                status=ResolutionStatus.BLACKLIST,
                classification=classification,
                record=blacklisted,
                records=(blacklisted,),
            )
        return ResolveResult(status=ResolutionStatus.NOT_FOUND, classification=classification)

    @staticmethod
    def _report_overlap(
        classification: Classification,
        businesses: list[Business],
        blacklisted: BlacklistEntry,
    ) -> None:
        # verified still wins; a shared canonical handle/phone means corrupted data
        clashing = [business for business in businesses if shares_identity(business, blacklisted)]
        if clashing:
            log.error(
                "Identity overlap for query %r: business %s and blacklist entry %s share "
                "a canonical handle or phone",
                classification.raw,
                clashing[0].id,
                blacklisted.id,
            )
        else:
            log.warning(
                "Query %r matched business %s and blacklist entry %s",
                classification.raw,
                businesses[0].id,
                blacklisted.id,
            )

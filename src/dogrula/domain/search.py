"""Free-text directory search: tokenizer, filter builder, ranking and the service."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from dogrula.domain.canonicalization import digits_of, phone_suffix
from dogrula.domain.errors import ValidationError
from dogrula.domain.predicates import AllOf, AnyOf, Contains, Predicate, fold_case

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from dogrula.config import DirectoryConfig
    from dogrula.domain.model import Business
    from dogrula.domain.ports import ResultCache, UnitOfWorkFactory

MIN_TOKEN_LENGTH: Final[int] = 3
MIN_PHONE_DIGITS: Final[int] = 6
SNIPPET_FEATURES: Final[int] = 5

STOP_WORDS: Final[frozenset[str]] = frozenset(
    {
        # Turkish filler
        "ev", "evleri", "otel", "otelleri", "konaklama",
        "fiyat", "fiyatları", "fiyatlari",
        "en", "icin", "için", "ve", "veya", "ile",
        "yakın", "yakini", "yakınında",
        # English filler
        "the", "and", "for", "near", "best", "with",
        # symbols
        "&", "-", "–", "—",
    }
)  # fmt: skip

SEARCH_FIELDS: Final[tuple[str, ...]] = (
    "name",
    "type",
    "slug",
    "handle",
    "profile_url",
    "website",
    "address",
    "city",
    "district",
    "description",
    "summary",
    "features",
)

PHONE_FIELDS: Final[tuple[str, ...]] = ("phone", "phones")

_TOKEN_NOISE_RE = re.compile(r"[^\w@.+-]+")
_PHONE_TOKEN_RE = re.compile(r"^\+?[\d().-]+$")
_EPOCH = datetime.min.replace(tzinfo=UTC)


def tokenize(raw: str) -> list[str]:
    """Lower-case, split on whitespace, strip noise, drop short tokens and stop words."""

    tokens: list[str] = []
    for chunk in fold_case(raw).split():
        token = _TOKEN_NOISE_RE.sub("", chunk)
        if len(token) >= MIN_TOKEN_LENGTH and token not in STOP_WORDS:
            tokens.append(token)
    return tokens


def _any_field_contains(value: str, fields: Iterable[str] = SEARCH_FIELDS) -> AnyOf:
    return AnyOf(tuple(Contains(field, value) for field in fields))


def build_search_filter(raw: str) -> Predicate:
    """AND over surviving tokens of OR(field contains token) across ``SEARCH_FIELDS``.

    Never returns a match-nothing filter for a non-empty query: when no token survives
    the raw query itself is matched against every field. With six or more digits in the
    query a phone clause is required too, and digit-only tokens are left to it.
    """

    query = raw.strip() if raw else ""
    if not query:
        raise ValidationError("Search query must not be empty", fields={"query": "required"})

    digits = digits_of(query)
    has_phone = len(digits) >= MIN_PHONE_DIGITS
    tokens = tokenize(query)
    text_tokens = [t for t in tokens if not (has_phone and _PHONE_TOKEN_RE.match(t))]

    if text_tokens:
        clauses: list[Predicate] = [_any_field_contains(token) for token in text_tokens]
    elif has_phone:
        clauses = []
    else:
        clauses = [_any_field_contains(query)]

    if has_phone:
        suffix = phone_suffix(digits)
        clauses.append(
            AnyOf(
                tuple(
                    Contains(field, value)
                    for field in PHONE_FIELDS
                    for value in (digits, suffix)
                )
            )
        )
    return AllOf(tuple(clauses))


def default_rank_key(business: Business) -> tuple[bool, datetime]:
    """Verified first, then most recently touched; sort with ``reverse=True``."""

    return bool(business.verified), business.updated_at or business.created_at or _EPOCH


def rating_rank_key(business: Business) -> tuple[bool, float, bool, int]:
    """Internal rating, else external rating, then review count; non-zero values first."""

    rating = business.effective_rating
    reviews = business.effective_reviews
    return rating > 0, rating, reviews > 0, reviews


def rank_by_rating(businesses: Sequence[Business]) -> list[Business]:
    """Stable secondary ordering: ties keep their default (verified, recency) order."""

    return sorted(businesses, key=rating_rank_key, reverse=True)


def build_snippet(business: Business) -> str:
    features = ", ".join([item for item in business.features if item][:SNIPPET_FEATURES])
    first = business.description or business.summary or features
    if first:
        return first.strip()
    location = " / ".join(part for part in (business.city, business.district) if part)
    kind = business.type.strip() if business.type else "business"
    return " • ".join(part for part in (kind, location) if part)


@dataclass(frozen=True, slots=True)
class SearchHit:
    business: Business
    snippet: str


@dataclass(frozen=True, slots=True)
class SearchResult:
    query: str
    tokens: tuple[str, ...]
    hits: tuple[SearchHit, ...]

    @property
    def businesses(self) -> list[Business]:
        return [hit.business for hit in self.hits]


class DirectorySearch:
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

    def search(
        self,
        query: str,
        *,
        limit: int | None = None,
        by_rating: bool = False,
    ) -> SearchResult:
        predicate = build_search_filter(query)
        effective_limit = max(1, limit or self.config.search_limit)
        key = ("search", " ".join(query.split()).lower(), effective_limit, by_rating)
        cached = self.cache.get(key)
        if isinstance(cached, SearchResult):
            return cached

        with self.unit_of_work_factory() as uow:
            businesses = uow.repositories.businesses.find(predicate, limit=effective_limit)
        if by_rating:
            businesses = rank_by_rating(businesses)

        result = SearchResult(
            query=query,
            tokens=tuple(tokenize(query)),
            hits=tuple(SearchHit(business, build_snippet(business)) for business in businesses),
        )
        self.cache.set(key, result)
        return result

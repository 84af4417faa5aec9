"""Keep verified businesses and blacklist entries apart.

The same canonical handle or phone must never resolve to both sets. Writers call the
guards below inside their unit of work, before the conflicting record is stored.
Businesses carry extra phones next to their primary one; every one of them counts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dogrula.domain.errors import IdentityConflictError
from dogrula.domain.model import Business, RecordKind
from dogrula.domain.predicates import AnyOf, Equals

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dogrula.domain.model import BlacklistEntry
    from dogrula.domain.ports import DirectoryRepositories

BUSINESS_PHONE_FIELDS: tuple[str, ...] = ("phone", "phones")
BLACKLIST_PHONE_FIELDS: tuple[str, ...] = ("phone",)


def phone_set(phone: str | None, phones: Iterable[str] = ()) -> list[str]:
    """Distinct non-empty phones, ``phone`` first."""

    return list(dict.fromkeys(value for value in (phone, *phones) if value))


def strong_identity(
    handle: str | None,
    phones: Iterable[str],
    phone_fields: Iterable[str] = ("phone",),
) -> AnyOf:
    """Exact canonical handle/phone lookups; empty when neither is known."""

    clauses = [Equals("handle", handle)] if handle else []
    fields = tuple(phone_fields)
    clauses += [Equals(field, phone) for phone in phones for field in fields]
    return AnyOf(tuple(clauses))


def _phones_of(record: Business | BlacklistEntry) -> set[str]:
    if isinstance(record, Business):
        return set(phone_set(record.phone, record.phones))
    return set(phone_set(record.phone))


def shares_identity(left: Business | BlacklistEntry, right: Business | BlacklistEntry) -> bool:
    if left.handle and left.handle == right.handle:
        return True
    return bool(_phones_of(left) & _phones_of(right))


def ensure_not_blacklisted(
    repositories: DirectoryRepositories,
    *,
    handle: str | None,
    phone: str | None,
    phones: Iterable[str] = (),
) -> None:
    candidates = phone_set(phone, phones)
    predicate = strong_identity(handle, candidates, BLACKLIST_PHONE_FIELDS)
    if not predicate.clauses:
        return
    entry = repositories.blacklist.find_one(predicate)
    if entry is not None:
        raise IdentityConflictError(
            f"Identity handle={handle!r} phones={candidates!r} is blacklisted",
            existing_kind=RecordKind.BLACKLIST,
            existing_id=entry.id,
        )


def ensure_not_listed(
    repositories: DirectoryRepositories,
    *,
    handle: str | None,
    phone: str | None,
) -> None:
    predicate = strong_identity(handle, phone_set(phone), BUSINESS_PHONE_FIELDS)
    if not predicate.clauses:
        return
    business = repositories.businesses.find_one(predicate)
    if business is not None:
        raise IdentityConflictError(
            f"Identity handle={handle!r} phone={phone!r} belongs to business {business.slug}",
            existing_kind=RecordKind.BUSINESS,
            existing_id=business.id,
        )

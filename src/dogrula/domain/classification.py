"""Decide which canonical form applies to an arbitrary lookup query."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from dogrula.domain.canonicalization import (
    DEFAULT_REGION,
    canonical_handle,
    canonical_host,
    canonical_phone,
)
from dogrula.domain.errors import ValidationError
from dogrula.domain.model import IdentityType

if TYPE_CHECKING:
    from collections.abc import Callable

INSTAGRAM_URL_RE: Final = re.compile(
    r"^(?:https?://)?(?:www\.)?(?:instagram\.com|instagr\.am)/@?([\w.]{1,30})/?(?:\?.*)?$",
    re.IGNORECASE,
)
USERNAME_RE: Final = re.compile(r"^@?([\w.]{1,30})$")
WEBSITE_RE: Final = re.compile(
    r"^(?:https?://)?(?:[a-z0-9-]+\.)+[a-z]{2,}(?:[:/?#].*)?$",
    re.IGNORECASE,
)
PHONE_RE: Final = re.compile(r"^\+?[\d\s()\-]{10,20}$")

# Suffixes that make a dotted bare word read as a domain rather than a handle.
WEBSITE_TLDS: Final[frozenset[str]] = frozenset(
    {
        "app", "biz", "co", "com", "de", "dev", "edu", "eu", "gov", "info", "io",
        "me", "net", "online", "org", "shop", "site", "store", "tr", "uk", "us", "xyz",
    }
)  # fmt: skip

HINT_ALIASES: Final[dict[str, IdentityType]] = {
    "instagram_url": IdentityType.INSTAGRAM_URL,
    "ig_url": IdentityType.INSTAGRAM_URL,
    "url": IdentityType.INSTAGRAM_URL,
    "instagram_username": IdentityType.INSTAGRAM_USERNAME,
    "ig_username": IdentityType.INSTAGRAM_USERNAME,
    "instagram": IdentityType.INSTAGRAM_USERNAME,
    "website": IdentityType.WEBSITE,
    "site": IdentityType.WEBSITE,
    "phone": IdentityType.PHONE,
    "tel": IdentityType.PHONE,
}


@dataclass(frozen=True, slots=True)
class Classification:
    type: IdentityType
    canonical_value: str
    raw: str
    extracted_handle: str | None = None


def _is_instagram_url(query: str) -> bool:
    return INSTAGRAM_URL_RE.match(query) is not None


def _is_username(query: str) -> bool:
    match = USERNAME_RE.match(query)
    if match is None:
        return False
    body = match.group(1)
    if not any(char.isalpha() for char in body):
        return False
    if query.startswith("@"):
        return True
    suffix = body.rsplit(".", 1)[-1].lower() if "." in body else ""
    return suffix not in WEBSITE_TLDS


def _is_website(query: str) -> bool:
    return WEBSITE_RE.match(query) is not None


def _is_phone(query: str) -> bool:
    return PHONE_RE.match(query) is not None


_MATCHERS: Final[dict[IdentityType, Callable[[str], bool]]] = {
    IdentityType.INSTAGRAM_URL: _is_instagram_url,
    IdentityType.INSTAGRAM_USERNAME: _is_username,
    IdentityType.WEBSITE: _is_website,
    IdentityType.PHONE: _is_phone,
}


def resolve_hint(hint: str | None) -> IdentityType | None:
    """Map a caller-supplied hint to a typed pattern; unknown hints are ignored."""

    if not hint:
        return None
    return HINT_ALIASES.get(hint.strip().lower())


def _build(kind: IdentityType, query: str, region: str) -> Classification:
    if kind in (IdentityType.INSTAGRAM_URL, IdentityType.INSTAGRAM_USERNAME):
        handle = canonical_handle(query)
        return Classification(type=kind, canonical_value=handle, raw=query, extracted_handle=handle)
    if kind is IdentityType.WEBSITE:
        return Classification(type=kind, canonical_value=canonical_host(query), raw=query)
    if kind is IdentityType.PHONE:
        return Classification(type=kind, canonical_value=canonical_phone(query, region), raw=query)
    return Classification(type=kind, canonical_value=" ".join(query.split()), raw=query)


def classify(
    query: str,
    hint: str | None = None,
    *,
    region: str = DEFAULT_REGION,
) -> Classification:
    """Classify ``query`` by fixed precedence, honouring ``hint`` when it matches.

    Precedence: instagram URL, instagram username, website, phone, free text.
    """

    text = (query or "").strip()
    if not text:
        raise ValidationError("Query must not be empty", fields={"query": "required"})

    hinted = resolve_hint(hint)
    if hinted is not None and _MATCHERS[hinted](text):
        return _build(hinted, text, region)

    for kind, matcher in _MATCHERS.items():
        if matcher(text):
            return _build(kind, text, region)
    return _build(IdentityType.FREE_TEXT, text, region)

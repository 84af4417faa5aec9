"""Pure helpers turning heterogeneous identity signals into stable keys.

Every function here is total: malformed input degrades to a best-effort value or an
empty string, never an exception. Every function is idempotent, so canonical values can
be fed back in (``f(f(x)) == f(x)``).
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Final
from urllib.parse import urlsplit

import phonenumbers

DEFAULT_REGION: Final[str] = "TR"
PHONE_SUFFIX_LENGTH: Final[int] = 10

_INSTAGRAM_URL_RE = re.compile(
    r"^(?:https?://)?(?:www\.)?(?:instagram\.com|instagr\.am)(?:[/?#]|$)",
    re.IGNORECASE,
)
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_NON_DIGIT_RE = re.compile(r"\D")
_SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")
_WWW_PREFIX_RE = re.compile(r"^(?:www\.)+")

_TRANSLITERATIONS: Final[dict[str, dict[int, str]]] = {
    "tr": str.maketrans(
        {
            "ş": "s",
            "Ş": "s",
            "ğ": "g",
            "Ğ": "g",
            "ı": "i",
            "İ": "i",
            "ü": "u",
            "Ü": "u",
            "ö": "o",
            "Ö": "o",
            "ç": "c",
            "Ç": "c",
        }
    ),
}


@dataclass(frozen=True, slots=True)
class Parsed:
    """A phone number the numbering plan accepts, formatted as E.164."""

    value: str


@dataclass(frozen=True, slots=True)
class Fallback:
    """Best-effort digits (with an optional leading ``+``) for unparseable numbers."""

    value: str


type PhoneParse = Parsed | Fallback


def digits_of(raw: str | None) -> str:
    return _NON_DIGIT_RE.sub("", raw or "")


def phone_suffix(raw: str | None, length: int = PHONE_SUFFIX_LENGTH) -> str:
    """Last ``length`` digits, the part that survives country-prefix variations."""

    return digits_of(raw)[-length:]


def _strip_phone(raw: str) -> str:
    digits = digits_of(raw)
    if not digits:
        return ""
    return f"+{digits}" if raw.lstrip().startswith("+") else digits


def _try_e164(candidate: str, region: str) -> str | None:
    try:
        number = phonenumbers.parse(candidate, region)
    except phonenumbers.NumberParseException:
        return None
    if not phonenumbers.is_valid_number(number):
        return None
    return phonenumbers.format_number(number, phonenumbers.PhoneNumberFormat.E164)


def parse_phone(raw: str | None, region: str = DEFAULT_REGION) -> PhoneParse | None:
    """Parse ``raw`` under ``region``'s numbering plan.

    The raw input is tried first, then its stripped form (digits plus a leading ``+``).
    Returns ``None`` when the input carries no digits at all.
    """

    text = (raw or "").strip()
    stripped = _strip_phone(text)
    if not stripped:
        return None
    for candidate in (text, stripped):
        formatted = _try_e164(candidate, region)
        if formatted is not None:
            return Parsed(formatted)
    return Fallback(stripped)


def canonical_phone(raw: str | None, region: str = DEFAULT_REGION) -> str:
    parsed = parse_phone(raw, region)
    return parsed.value if parsed is not None else ""


def is_instagram_url(value: str) -> bool:
    return bool(_INSTAGRAM_URL_RE.match(value.strip()))


def ensure_scheme(value: str) -> str:
    return value if _SCHEME_RE.match(value) else f"https://{value}"


def canonical_handle(raw: str | None) -> str:
    """Bare lower-case handle from ``@name``, ``name`` or a profile URL."""

    text = (raw or "").strip()
    if not text:
        return ""
    if "/" in text and is_instagram_url(text):
        try:
            path = urlsplit(ensure_scheme(text)).path
        except ValueError:
            return ""
        segments = [segment for segment in path.split("/") if segment]
        text = segments[0] if segments else ""
    return text.lstrip("@").strip().rstrip("/").lower()


def canonical_profile_url(handle_or_url: str | None) -> str:
    """Absolute profile URL; bare handles are expanded to instagram.com links."""

    text = (handle_or_url or "").strip()
    if not text:
        return ""
    if "/" in text or is_instagram_url(text):
        return ensure_scheme(text)
    handle = canonical_handle(text)
    return f"https://instagram.com/{handle}" if handle else ""


def canonical_host(url_or_domain: str | None) -> str:
    """Lower-case host without ``www.``; empty when nothing parseable remains."""

    text = (url_or_domain or "").strip()
    if not text:
        return ""
    try:
        hostname = urlsplit(ensure_scheme(text)).hostname
    except ValueError:
        return ""
    if not hostname:
        return ""
    return _WWW_PREFIX_RE.sub("", hostname.rstrip("."))


def slugify(
    name: str | None,
    locale: str = "tr",
    fallback: str = "business",
) -> str:
    """URL-safe slug: transliterate, fold to ASCII, collapse separators."""

    text = (name or "").strip()
    table = _TRANSLITERATIONS.get(locale)
    if table is not None:
        text = text.translate(table)
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = _SLUG_SEPARATOR_RE.sub("-", folded.lower()).strip("-")
    return slug or fallback

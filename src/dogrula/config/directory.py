"""Directory lookup, promotion and cache defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_float, env_int, env_str
from .errors import ConfigurationError

DEFAULT_REGION = "TR"
DEFAULT_SLUG_LOCALE = "tr"
DEFAULT_SLUG_FALLBACK = "business"
DEFAULT_RESOLVE_LIMIT = 10
DEFAULT_SEARCH_LIMIT = 30
DEFAULT_CACHE_TTL_SECONDS = 60.0
DEFAULT_CACHE_MAX_ENTRIES = 1024


@dataclass(frozen=True, slots=True)
class DirectoryConfig:
    default_region: str = DEFAULT_REGION
    slug_locale: str = DEFAULT_SLUG_LOCALE
    slug_fallback: str = DEFAULT_SLUG_FALLBACK
    resolve_limit: int = DEFAULT_RESOLVE_LIMIT
    search_limit: int = DEFAULT_SEARCH_LIMIT
    cache_enabled: bool = True
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES

    def __post_init__(self) -> None:
        if len(self.default_region) != 2 or not self.default_region.isalpha():  # noqa: PLR2004
            raise ConfigurationError(
                f"Default region must be a two-letter country code, got {self.default_region!r}"
            )
        if not self.slug_fallback:
            raise ConfigurationError("Slug fallback token must not be empty")
        if self.resolve_limit < 1 or self.search_limit < 1:
            raise ConfigurationError("Result limits must be positive")


def get_directory_config() -> DirectoryConfig:
    return DirectoryConfig(
        default_region=env_str("DOGRULA_DEFAULT_REGION", DEFAULT_REGION).upper(),
        slug_locale=env_str("DOGRULA_SLUG_LOCALE", DEFAULT_SLUG_LOCALE).lower(),
        slug_fallback=env_str("DOGRULA_SLUG_FALLBACK", DEFAULT_SLUG_FALLBACK),
        resolve_limit=env_int("DOGRULA_RESOLVE_LIMIT", DEFAULT_RESOLVE_LIMIT, minimum=1),
        search_limit=env_int("DOGRULA_SEARCH_LIMIT", DEFAULT_SEARCH_LIMIT, minimum=1),
        cache_enabled=env_bool("DOGRULA_CACHE_ENABLED", default=True),
        cache_ttl_seconds=env_float("DOGRULA_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
        cache_max_entries=env_int(
            "DOGRULA_CACHE_MAX_ENTRIES", DEFAULT_CACHE_MAX_ENTRIES, minimum=1
        ),
    )

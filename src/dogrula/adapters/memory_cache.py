"""In-process result caches for lookup services."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

    from dogrula.config import DirectoryConfig
    from dogrula.domain.ports import ResultCache


class TTLResultCache:
    """Time-boxed, size-bounded memoization with least-recently-used eviction.

    Not synchronised: concurrent callers may observe a stale entry or compute the same
    value twice, both of which are acceptable for non-authoritative lookups.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 60.0,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[Hashable, tuple[float, object]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return True

    def get(self, key: Hashable) -> object | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: Hashable, value: object) -> None:
        if self.ttl_seconds <= 0:
            return
        self._entries[key] = (self._clock() + self.ttl_seconds, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()


class NullResultCache:
    """Cache that never stores anything."""

    def get(self, key: Hashable) -> object | None:
        _ = key
        return None

    def set(self, key: Hashable, value: object) -> None:
        _ = key, value

    def clear(self) -> None:
        return None


def build_result_cache(config: DirectoryConfig) -> ResultCache:
    if not config.cache_enabled:
        return NullResultCache()
    return TTLResultCache(
        ttl_seconds=config.cache_ttl_seconds,
        max_entries=config.cache_max_entries,
    )

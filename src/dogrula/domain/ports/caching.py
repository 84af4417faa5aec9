"""Port for the ephemeral lookup-result cache."""

from __future__ import annotations

from collections.abc import Hashable
from typing import Protocol, runtime_checkable


@runtime_checkable
class ResultCache(Protocol):
    """Best-effort memoization; a miss must always be acceptable to callers."""

    def get(self, key: Hashable) -> object | None: ...

    def set(self, key: Hashable, value: object) -> None: ...

    def clear(self) -> None: ...

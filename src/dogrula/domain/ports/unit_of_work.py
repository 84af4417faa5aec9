"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from dogrula.domain.ports.persistence import (
        ApplicationRepository,
        BlacklistRepository,
        BusinessRepository,
        ReportRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection.

    Leaving the context without ``commit`` discards every write made through it.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class DirectoryRepositories(RepositoryCollection):
    """Repositories required by the directory workflows."""

    businesses: BusinessRepository
    applications: ApplicationRepository
    reports: ReportRepository
    blacklist: BlacklistRepository


type DirectoryUnitOfWork = UnitOfWork[DirectoryRepositories]
type UnitOfWorkFactory = Callable[[], DirectoryUnitOfWork]

"""Domain port definitions for adapters."""

from __future__ import annotations

from .caching import ResultCache
from .persistence import (
    ApplicationRepository,
    BlacklistRepository,
    BusinessRepository,
    ReportRepository,
    Repository,
    SearchableRepository,
)
from .unit_of_work import (
    DirectoryRepositories,
    DirectoryUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "ApplicationRepository",
    "BlacklistRepository",
    "BusinessRepository",
    "DirectoryRepositories",
    "DirectoryUnitOfWork",
    "ReportRepository",
    "Repository",
    "RepositoryCollection",
    "ResultCache",
    "SearchableRepository",
    "UnitOfWork",
    "UnitOfWorkFactory",
]

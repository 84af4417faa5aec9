"""SQLAlchemy adapter package for dogrula."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyApplicationRepository,
    SqlAlchemyBlacklistRepository,
    SqlAlchemyBusinessRepository,
    SqlAlchemyReportRepository,
)
from .unit_of_work import SqlAlchemyDirectoryUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyApplicationRepository",
    "SqlAlchemyBlacklistRepository",
    "SqlAlchemyBusinessRepository",
    "SqlAlchemyDirectoryUnitOfWork",
    "SqlAlchemyReportRepository",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]

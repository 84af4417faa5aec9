"""Public domain model surface."""

from __future__ import annotations

from dogrula.domain.model.directory import (
    Application,
    BlacklistEntry,
    Business,
    DirectoryRecord,
    Report,
)
from dogrula.domain.model.entity import Entity, new_id, utcnow
from dogrula.domain.model.enums import (
    ApplicationStatus,
    BusinessStatus,
    IdentityType,
    RecordKind,
    ReportStatus,
    ResolutionStatus,
)

__all__ = [
    "Application",
    "ApplicationStatus",
    "BlacklistEntry",
    "Business",
    "BusinessStatus",
    "DirectoryRecord",
    "Entity",
    "IdentityType",
    "RecordKind",
    "Report",
    "ReportStatus",
    "ResolutionStatus",
    "new_id",
    "utcnow",
]

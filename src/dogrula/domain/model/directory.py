"""Directory records: businesses, applications, reports and blacklist entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from dogrula.domain.model.entity import Entity
from dogrula.domain.model.enums import (
    ApplicationStatus,
    BusinessStatus,
    RecordKind,
    ReportStatus,
)

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Business(Entity):
    """Canonical, publicly visible directory record."""

    KIND: ClassVar[RecordKind] = RecordKind.BUSINESS

    name: str
    slug: str | None = None
    type: str | None = None
    phone: str | None = None
    phones: list[str] = field(default_factory=list)
    handle: str | None = None
    profile_url: str | None = None
    website: str | None = None
    website_host: str | None = None
    email: str | None = None
    address: str | None = None
    city: str | None = None
    district: str | None = None
    description: str | None = None
    summary: str | None = None
    features: list[str] = field(default_factory=list)
    verified: bool = False
    status: BusinessStatus = BusinessStatus.APPROVED
    rating: float | None = None
    reviews_count: int | None = None
    google_rating: float | None = None
    google_reviews_count: int | None = None
    updated_at: datetime | None = None

    @property
    def effective_rating(self) -> float:
        """Internal rating when present, otherwise the external one."""

        return self.rating or self.google_rating or 0.0

    @property
    def effective_reviews(self) -> int:
        return self.reviews_count or self.google_reviews_count or 0


@dataclass(eq=False, kw_only=True)
class Application(Entity):
    """An owner's request to be listed; promoted into a Business on approval."""

    KIND: ClassVar[RecordKind] = RecordKind.APPLICATION

    business_name: str
    legal_name: str | None = None
    type: str | None = None
    phone: str | None = None
    phones: list[str] = field(default_factory=list)
    handle: str | None = None
    profile_url: str | None = None
    website: str | None = None
    website_host: str | None = None
    email: str | None = None
    address: str | None = None
    city: str | None = None
    district: str | None = None
    terms_accepted: bool = False
    status: ApplicationStatus = ApplicationStatus.PENDING
    business_id: UUID | None = None
    reject_reason: str | None = None
    reviewed_at: datetime | None = None


@dataclass(eq=False, kw_only=True)
class Report(Entity):
    """User-filed complaint; supporters are tracked by the repository."""

    KIND: ClassVar[RecordKind] = RecordKind.REPORT

    name: str | None = None
    handle: str | None = None
    profile_url: str | None = None
    phone: str | None = None
    description: str | None = None
    reporter_email: str | None = None
    reporter_ip: str | None = None
    consent: bool = False
    status: ReportStatus = ReportStatus.OPEN
    close_reason: str | None = None
    support_count: int = 0

    def has_identity(self) -> bool:
        return any((self.name, self.handle, self.profile_url, self.phone))


@dataclass(eq=False, kw_only=True)
class BlacklistEntry(Entity):
    KIND: ClassVar[RecordKind] = RecordKind.BLACKLIST

    name: str | None = None
    handle: str | None = None
    profile_url: str | None = None
    phone: str | None = None
    description: str | None = None


type DirectoryRecord = Business | Application | Report | BlacklistEntry

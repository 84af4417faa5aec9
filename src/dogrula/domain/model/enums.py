"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class BusinessStatus(StrEnum):
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"


class ApplicationStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReportStatus(StrEnum):
    OPEN = "open"
    REVIEWING = "reviewing"
    CLOSED = "closed"


class IdentityType(StrEnum):
    """Shape of a lookup query, in precedence order."""

    INSTAGRAM_URL = "instagram_url"
    INSTAGRAM_USERNAME = "instagram_username"
    WEBSITE = "website"
    PHONE = "phone"
    FREE_TEXT = "free_text"


class ResolutionStatus(StrEnum):
    VERIFIED = "verified"
    BLACKLIST = "blacklist"
    NOT_FOUND = "not_found"


class RecordKind(StrEnum):
    """Record sets that identity lookups and conflict checks run against."""

    BUSINESS = "business"
    APPLICATION = "application"
    REPORT = "report"
    BLACKLIST = "blacklist"

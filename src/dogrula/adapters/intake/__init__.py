"""Public interface for the submission intake adapter."""

from __future__ import annotations

from .schema import (
    ApplicationPayload,
    BlacklistPayload,
    BlacklistUpdatePayload,
    BusinessPayload,
    BusinessUpdatePayload,
    ReportPayload,
    ReportUpdatePayload,
)
from .translator import (
    parse_application,
    parse_blacklist_changes,
    parse_blacklist_entry,
    parse_business,
    parse_business_changes,
    parse_report,
    parse_report_changes,
)

__all__ = [
    "ApplicationPayload",
    "BlacklistPayload",
    "BlacklistUpdatePayload",
    "BusinessPayload",
    "BusinessUpdatePayload",
    "ReportPayload",
    "ReportUpdatePayload",
    "parse_application",
    "parse_blacklist_changes",
    "parse_blacklist_entry",
    "parse_business",
    "parse_business_changes",
    "parse_report",
    "parse_report_changes",
]

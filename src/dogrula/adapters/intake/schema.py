"""Pydantic models describing inbound submission payloads.

Field aliases follow the camelCase names used by the public forms; snake_case names are
accepted too.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_DESCRIPTION_LENGTH = 2000
_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _website_with_scheme(value: str | None) -> str | None:
    if value is None or _SCHEME_RE.match(value):
        return value
    return f"https://{value}"


class IntakeBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)


class IdentityPayload(IntakeBaseModel):
    """Identity shape shared by reports and blacklist entries."""

    name: str | None = Field(default=None, max_length=200)
    instagram_username: str | None = Field(
        default=None, alias="instagramUsername", max_length=64
    )
    instagram_url: str | None = Field(default=None, alias="instagramUrl", max_length=300)
    phone: str | None = Field(default=None, max_length=40)
    description: str | None = Field(
        default=None, alias="desc", max_length=MAX_DESCRIPTION_LENGTH
    )

    _normalize_blanks = field_validator(
        "name", "instagram_username", "instagram_url", "phone", "description", mode="before"
    )(_blank_to_none)

    def has_identity(self) -> bool:
        return any((self.name, self.instagram_username, self.instagram_url, self.phone))


class ApplicationPayload(IntakeBaseModel):
    business_name: str = Field(alias="businessName", min_length=2, max_length=200)
    legal_name: str | None = Field(default=None, alias="legalName", max_length=200)
    type: str | None = Field(default=None, max_length=100)
    address: str | None = Field(default=None, max_length=500)
    city: str | None = Field(default=None, max_length=100)
    district: str | None = Field(default=None, max_length=100)
    phone_mobile: str | None = Field(default=None, alias="phoneMobile", max_length=40)
    phone_fixed: str | None = Field(default=None, alias="phoneFixed", max_length=40)
    instagram: str | None = Field(default=None, max_length=300)
    website: str | None = Field(default=None, max_length=300)
    email: str | None = Field(default=None, max_length=254)
    terms_accepted: bool = Field(default=False, alias="termsAccepted")

    _normalize_blanks = field_validator(
        "legal_name",
        "type",
        "address",
        "city",
        "district",
        "phone_mobile",
        "phone_fixed",
        "instagram",
        "website",
        "email",
        mode="before",
    )(_blank_to_none)

    @field_validator("website")
    @classmethod
    def _prefix_scheme(cls, value: str | None) -> str | None:
        return _website_with_scheme(value)

    @property
    def phone(self) -> str | None:
        return self.phone_mobile or self.phone_fixed

    @property
    def phones(self) -> list[str]:
        return [phone for phone in (self.phone_mobile, self.phone_fixed) if phone]


class ReportPayload(IdentityPayload):
    reporter_email: str | None = Field(default=None, alias="reporterEmail", max_length=254)
    reporter_ip: str | None = Field(default=None, alias="reporterIp", max_length=64)
    consent: bool = False

    _normalize_reporter = field_validator("reporter_email", "reporter_ip", mode="before")(
        _blank_to_none
    )

    @model_validator(mode="after")
    def _require_identity(self) -> Self:
        if not self.has_identity():
            raise ValueError("one of name, instagramUsername, instagramUrl or phone is required")
        return self


class ReportUpdatePayload(IdentityPayload):
    status: Literal["open", "reviewing", "closed"] | None = None
    close_reason: str | None = Field(default=None, alias="closeReason", max_length=1000)


class BlacklistPayload(IdentityPayload):
    @model_validator(mode="after")
    def _require_identity(self) -> Self:
        if not self.has_identity():
            raise ValueError("one of name, instagramUsername, instagramUrl or phone is required")
        return self


class BusinessPayload(IntakeBaseModel):
    name: str = Field(min_length=2, max_length=200)
    slug: str | None = Field(default=None, max_length=200)
    type: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=40)
    phones: list[str] = Field(default_factory=list, max_length=10)
    instagram_username: str | None = Field(
        default=None, alias="instagramUsername", max_length=64
    )
    instagram_url: str | None = Field(default=None, alias="instagramUrl", max_length=300)
    website: str | None = Field(default=None, max_length=300)
    email: str | None = Field(default=None, max_length=254)
    address: str | None = Field(default=None, max_length=500)
    city: str | None = Field(default=None, max_length=100)
    district: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=5000)
    summary: str | None = Field(default=None, max_length=1000)
    features: list[str] = Field(default_factory=list)
    verified: bool = True
    status: Literal["approved", "pending", "rejected"] = "approved"
    rating: float | None = Field(default=None, ge=0, le=5)
    reviews_count: int | None = Field(default=None, alias="reviewsCount", ge=0)
    google_rating: float | None = Field(default=None, alias="googleRating", ge=0, le=5)
    google_reviews_count: int | None = Field(default=None, alias="googleReviewsCount", ge=0)

    _normalize_blanks = field_validator(
        "slug",
        "type",
        "phone",
        "instagram_username",
        "instagram_url",
        "website",
        "email",
        "address",
        "city",
        "district",
        "description",
        "summary",
        mode="before",
    )(_blank_to_none)

    @field_validator("website")
    @classmethod
    def _prefix_scheme(cls, value: str | None) -> str | None:
        return _website_with_scheme(value)


class BusinessUpdatePayload(IntakeBaseModel):
    """Admin edit of a business; only the fields that are sent change."""

    name: str | None = Field(default=None, min_length=2, max_length=200)
    slug: str | None = Field(default=None, max_length=200)
    type: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=40)
    phones: list[str] | None = Field(default=None, max_length=10)
    instagram_username: str | None = Field(
        default=None, alias="instagramUsername", max_length=64
    )
    instagram_url: str | None = Field(default=None, alias="instagramUrl", max_length=300)
    website: str | None = Field(default=None, max_length=300)
    email: str | None = Field(default=None, max_length=254)
    address: str | None = Field(default=None, max_length=500)
    city: str | None = Field(default=None, max_length=100)
    district: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=5000)
    summary: str | None = Field(default=None, max_length=1000)
    features: list[str] | None = None
    verified: bool | None = None
    status: Literal["approved", "pending", "rejected"] | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    reviews_count: int | None = Field(default=None, alias="reviewsCount", ge=0)
    google_rating: float | None = Field(default=None, alias="googleRating", ge=0, le=5)
    google_reviews_count: int | None = Field(default=None, alias="googleReviewsCount", ge=0)

    _normalize_blanks = field_validator(
        "name",
        "slug",
        "type",
        "phone",
        "instagram_username",
        "instagram_url",
        "website",
        "email",
        "address",
        "city",
        "district",
        "description",
        "summary",
        mode="before",
    )(_blank_to_none)

    @field_validator("website")
    @classmethod
    def _prefix_scheme(cls, value: str | None) -> str | None:
        return _website_with_scheme(value)


class BlacklistUpdatePayload(IdentityPayload):
    """Admin edit of a blacklist entry; identity is re-checked after merging."""


type PayloadInput = Mapping[str, object]

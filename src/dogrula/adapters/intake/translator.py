"""Translate validated submission payloads into domain records."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from dogrula.domain.errors import ValidationError
from dogrula.domain.model import (
    Application,
    BlacklistEntry,
    Business,
    BusinessStatus,
    Report,
)

from .schema import (
    ApplicationPayload,
    BlacklistPayload,
    BlacklistUpdatePayload,
    BusinessPayload,
    BusinessUpdatePayload,
    ReportPayload,
    ReportUpdatePayload,
)

if TYPE_CHECKING:
    from .schema import PayloadInput


log = getLogger(__name__)

# payload attribute -> domain attribute for identity-shaped payloads
_IDENTITY_RENAMES = {"instagram_username": "handle", "instagram_url": "profile_url"}
# update fields that are left alone rather than cleared when sent as null
_NON_NULLABLE_BUSINESS_FIELDS = frozenset({"phones", "features", "verified", "status"})


def _validate[TModel: BaseModel](model: type[TModel], payload: PayloadInput | TModel) -> TModel:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        fields = {
            ".".join(str(part) for part in error["loc"]) or "__root__": error["msg"]
            for error in exc.errors()
        }
        log.debug("Rejected %s payload: %s", model.__name__, fields)
        raise ValidationError(f"Invalid {model.__name__}", fields=fields) from exc


def parse_application(payload: PayloadInput | ApplicationPayload) -> Application:
    data = _validate(ApplicationPayload, payload)
    return Application(
        business_name=data.business_name,
        legal_name=data.legal_name,
        type=data.type,
        phone=data.phone,
        phones=data.phones,
        handle=data.instagram,
        profile_url=data.instagram if data.instagram and "/" in data.instagram else None,
        website=data.website,
        email=data.email,
        address=data.address,
        city=data.city,
        district=data.district,
        terms_accepted=data.terms_accepted,
    )


def parse_report(payload: PayloadInput | ReportPayload) -> Report:
    data = _validate(ReportPayload, payload)
    return Report(
        name=data.name,
        handle=data.instagram_username,
        profile_url=data.instagram_url,
        phone=data.phone,
        description=data.description,
        reporter_email=data.reporter_email,
        reporter_ip=data.reporter_ip,
        consent=data.consent,
    )


def parse_report_changes(payload: PayloadInput | ReportUpdatePayload) -> dict[str, object]:
    """Only the fields the caller actually sent, keyed by domain attribute name."""

    data = _validate(ReportUpdatePayload, payload)
    return _renamed(data.model_dump(exclude_unset=True))


def _renamed(changes: dict[str, object]) -> dict[str, object]:
    return {_IDENTITY_RENAMES.get(name, name): value for name, value in changes.items()}


def parse_blacklist_entry(payload: PayloadInput | BlacklistPayload) -> BlacklistEntry:
    data = _validate(BlacklistPayload, payload)
    return BlacklistEntry(
        name=data.name,
        handle=data.instagram_username,
        profile_url=data.instagram_url,
        phone=data.phone,
        description=data.description,
    )


def parse_business(payload: PayloadInput | BusinessPayload) -> Business:
    data = _validate(BusinessPayload, payload)
    return Business(
        name=data.name,
        slug=data.slug,
        type=data.type,
        phone=data.phone,
        phones=list(data.phones),
        handle=data.instagram_username,
        profile_url=data.instagram_url,
        website=data.website,
        email=data.email,
        address=data.address,
        city=data.city,
        district=data.district,
        description=data.description,
        summary=data.summary,
        features=list(data.features),
        verified=data.verified,
        status=BusinessStatus(data.status),
        rating=data.rating,
        reviews_count=data.reviews_count,
        google_rating=data.google_rating,
        google_reviews_count=data.google_reviews_count,
    )


def parse_business_changes(payload: PayloadInput | BusinessUpdatePayload) -> dict[str, object]:
    data = _validate(BusinessUpdatePayload, payload)
    changes = {
        name: value
        for name, value in data.model_dump(exclude_unset=True).items()
        if value is not None or name not in _NON_NULLABLE_BUSINESS_FIELDS
    }
    return _renamed(changes)


def parse_blacklist_changes(payload: PayloadInput | BlacklistUpdatePayload) -> dict[str, object]:
    data = _validate(BlacklistUpdatePayload, payload)
    return _renamed(data.model_dump(exclude_unset=True))

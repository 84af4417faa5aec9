from __future__ import annotations

import pytest

from dogrula.adapters.intake import (
    parse_application,
    parse_blacklist_changes,
    parse_blacklist_entry,
    parse_business,
    parse_business_changes,
    parse_report,
    parse_report_changes,
)
from dogrula.domain.errors import ValidationError
from dogrula.domain.model import BusinessStatus


def test_parse_application_maps_form_fields() -> None:
    application = parse_application(
        {
            "businessName": "  Kule Sapanca ",
            "phoneMobile": " ",
            "phoneFixed": "0264 123 45 67",
            "instagram": "https://instagram.com/kule.sapanca",
            "website": "kulesapanca.com",
            "termsAccepted": True,
            "unknown": "ignored",
        }
    )

    assert application.business_name == "Kule Sapanca"
    assert application.phone == "0264 123 45 67"
    assert application.phones == ["0264 123 45 67"]
    assert application.handle == "https://instagram.com/kule.sapanca"
    assert application.profile_url == "https://instagram.com/kule.sapanca"
    assert application.website == "https://kulesapanca.com"
    assert application.terms_accepted is True


def test_parse_application_prefers_mobile_phone_and_bare_handles() -> None:
    application = parse_application(
        {
            "business_name": "Kule",
            "phone_mobile": "0532",
            "phone_fixed": "0264",
            "instagram": "@kule",
        }
    )

    assert application.phone == "0532"
    assert application.phones == ["0532", "0264"]
    assert application.handle == "@kule"
    assert application.profile_url is None


def test_parse_application_reports_field_errors() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_application({"businessName": "K"})

    assert "businessName" in excinfo.value.fields


def test_parse_report_requires_identity() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_report({"desc": "kapora aldı", "consent": True})

    assert excinfo.value.fields


def test_parse_report_maps_identity_fields() -> None:
    report = parse_report(
        {
            "instagramUsername": "@sahte",
            "instagramUrl": "",
            "phone": "0533 111 22 33",
            "desc": "kapora aldı",
            "reporterEmail": "a@b.com",
            "consent": True,
        }
    )

    assert report.handle == "@sahte"
    assert report.profile_url is None
    assert report.phone == "0533 111 22 33"
    assert report.description == "kapora aldı"
    assert report.reporter_email == "a@b.com"
    assert report.consent is True


def test_parse_report_changes_keeps_only_sent_fields() -> None:
    changes = parse_report_changes(
        {"status": "closed", "closeReason": "mükerrer", "instagramUrl": "x"}
    )

    assert changes == {"status": "closed", "close_reason": "mükerrer", "profile_url": "x"}


def test_parse_report_changes_rejects_unknown_status() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_report_changes({"status": "archived"})

    assert "status" in excinfo.value.fields


def test_parse_blacklist_entry() -> None:
    entry = parse_blacklist_entry({"name": "Sahte Ev", "instagramUsername": "sahte.ev"})

    assert entry.name == "Sahte Ev"
    assert entry.handle == "sahte.ev"

    with pytest.raises(ValidationError):
        parse_blacklist_entry({"desc": "kimliksiz"})


def test_parse_business_validates_ratings() -> None:
    business = parse_business(
        {
            "name": "Kule Sapanca",
            "features": ["Jakuzi"],
            "googleRating": 4.6,
            "status": "pending",
            "website": "kule.com",
        }
    )

    assert business.status is BusinessStatus.PENDING
    assert business.google_rating == pytest.approx(4.6)
    assert business.features == ["Jakuzi"]
    assert business.website == "https://kule.com"
    assert business.verified is True

    with pytest.raises(ValidationError) as excinfo:
        parse_business({"name": "Kule", "rating": 7})

    assert "rating" in excinfo.value.fields


def test_parse_business_keeps_extra_phones() -> None:
    business = parse_business(
        {"name": "Kule", "phone": "0532 123 45 67", "phones": ["0264 111 22 33"]}
    )

    assert business.phone == "0532 123 45 67"
    assert business.phones == ["0264 111 22 33"]


def test_parse_business_changes_keeps_only_sent_fields() -> None:
    changes = parse_business_changes(
        {
            "name": "Kule Bungalov",
            "instagramUsername": "@kule.bungalov",
            "city": " ",
            "features": None,
            "reviewsCount": 12,
        }
    )

    assert changes == {
        "name": "Kule Bungalov",
        "handle": "@kule.bungalov",
        "city": None,
        "reviews_count": 12,
    }


def test_parse_business_changes_validates_values() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_business_changes({"status": "archived", "googleRating": 9})

    assert {"status", "googleRating"} <= set(excinfo.value.fields)


def test_parse_blacklist_changes_maps_identity_fields() -> None:
    changes = parse_blacklist_changes({"instagramUrl": "instagram.com/sahte", "desc": "kapora"})

    assert changes == {"profile_url": "instagram.com/sahte", "description": "kapora"}

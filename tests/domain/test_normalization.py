from __future__ import annotations

import pytest

from dogrula.domain.model import Application, BlacklistEntry, Business, Report
from dogrula.domain.normalization import (
    NormalizationOptions,
    normalize_application,
    normalize_business,
    normalize_record,
)


def test_normalize_business_canonicalizes_identity_fields() -> None:
    business = Business(
        name="  Kule Sapanca  ",
        profile_url="https://www.instagram.com/Kule.Sapanca/",
        phone="0532 123 45 67",
        website="www.KuleSapanca.com",
        email=" Info@KuleSapanca.com ",
        city="  ",
        features=["Jakuzi", " Jakuzi ", "", "Şömine"],
    )

    normalize_business(business)

    assert business.name == "Kule Sapanca"
    assert business.slug == "kule-sapanca"
    assert business.handle == "kule.sapanca"
    assert business.profile_url == "https://www.instagram.com/Kule.Sapanca/"
    assert business.phone == "+905321234567"
    assert business.website == "https://www.KuleSapanca.com"
    assert business.website_host == "kulesapanca.com"
    assert business.email == "info@kulesapanca.com"
    assert business.city is None
    assert business.features == ["Jakuzi", "Şömine"]


def test_normalize_business_builds_profile_url_from_handle() -> None:
    business = normalize_business(Business(name="Kule", handle="@Kule.Sapanca"))

    assert business.handle == "kule.sapanca"
    assert business.profile_url == "https://instagram.com/kule.sapanca"


def test_normalize_business_keeps_explicit_slug_and_falls_back() -> None:
    explicit = normalize_business(Business(name="Kule Sapanca", slug="Kule Özel"))
    nameless = normalize_business(Business(name="", handle="kule.sapanca"))
    empty = normalize_business(
        Business(name="!!"),
        NormalizationOptions(slug_fallback="isletme"),
    )

    assert explicit.slug == "kule-ozel"
    assert nameless.slug == "kule-sapanca"
    assert empty.slug == "isletme"


def test_normalization_is_idempotent() -> None:
    business = normalize_business(
        Business(name="Kule", handle="@Kule", phone="+90 532 123 45 67", website="kule.com")
    )
    snapshot = (
        business.slug,
        business.handle,
        business.profile_url,
        business.phone,
        business.website,
        business.website_host,
    )

    normalize_business(business)

    assert snapshot == (
        business.slug,
        business.handle,
        business.profile_url,
        business.phone,
        business.website,
        business.website_host,
    )


def test_phones_are_canonical_distinct_and_led_by_primary() -> None:
    business = normalize_business(
        Business(
            name="Kule",
            phone="0532 123 45 67",
            phones=["+90 532 123 45 67", "", "0533 111 22 33", "05331112233"],
        )
    )

    assert business.phone == "+905321234567"
    assert business.phones == ["+905321234567", "+905331112233"]


def test_first_listed_phone_becomes_primary() -> None:
    application = normalize_application(
        Application(business_name="Kule", phones=["0533 111 22 33", "0532 123 45 67"])
    )

    assert application.phone == "+905331112233"
    assert application.phones == ["+905331112233", "+905321234567"]


def test_normalize_application_keeps_unparseable_phone_digits() -> None:
    application = normalize_application(
        Application(business_name=" Kule ", phone="tel: 12345", reject_reason="  ")
    )

    assert application.business_name == "Kule"
    assert application.phone == "12345"
    assert application.reject_reason is None


def test_normalize_record_dispatches_on_type() -> None:
    report = normalize_record(Report(handle="instagram.com/Sahte"))
    entry = normalize_record(BlacklistEntry(phone="0532 123 45 67", description=" x "))

    assert isinstance(report, Report)
    assert report.handle == "sahte"
    assert isinstance(entry, BlacklistEntry)
    assert entry.phone == "+905321234567"
    assert entry.description == "x"


def test_normalize_record_rejects_unknown_types() -> None:
    with pytest.raises(TypeError):
        normalize_record(object())

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from dogrula.config import DirectoryConfig
from dogrula.domain.canonicalization import canonical_phone
from dogrula.domain.errors import (
    ConflictError,
    IdentityConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from dogrula.domain.model import ApplicationStatus, BusinessStatus, RecordKind
from dogrula.domain.promotion import (
    approve_application,
    fallback_slug,
    next_free_slug,
    reject_application,
)
from tests.helpers.directory import (
    FakeDirectory,
    RecordingCache,
    make_application,
    make_blacklist_entry,
    make_business,
)

if TYPE_CHECKING:
    from uuid import UUID

    from dogrula.domain.model import Application
    from dogrula.domain.promotion import PromotionResult

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _approve(
    directory: FakeDirectory,
    application_id: UUID,
    cache: RecordingCache | None = None,
) -> PromotionResult:
    return approve_application(
        application_id,
        unit_of_work_factory=directory.unit_of_work_factory,
        config=DirectoryConfig(),
        cache=cache,
        clock=lambda: NOW,
    )


def _submitted(directory: FakeDirectory, **overrides: object) -> Application:
    application = make_application(**overrides)  # type: ignore[arg-type]
    directory.applications.add(application)
    return application


@pytest.mark.parametrize(
    ("existing", "expected"),
    [
        ([], "kule"),
        (["kule-2"], "kule"),
        (["kule"], "kule-2"),
        (["kule", "kule-2"], "kule-3"),
        (["kule", "kule-5", "kule-2"], "kule-6"),
        (["kule", "kule-bungalov", "kulex-9"], "kule-2"),
    ],
)
def test_next_free_slug(existing: list[str], expected: str) -> None:
    assert next_free_slug("kule", existing) == expected


def test_fallback_slug_is_not_a_numbered_sibling() -> None:
    slug = fallback_slug("kule", NOW)

    assert slug.startswith("kule-t")
    assert next_free_slug("kule", ["kule", slug]) == "kule-2"


def test_approve_creates_verified_business(fake_directory: FakeDirectory) -> None:
    cache = RecordingCache()
    application = _submitted(
        fake_directory,
        business_name="Kule Sapanca",
        handle="@Kule.Sapanca",
        phone="0532 123 45 67",
        website="kulesapanca.com",
        city="Sakarya",
    )

    result = _approve(fake_directory, application.id, cache)

    business = result.business
    assert result.created is True
    assert result.updated is False
    assert business.slug == "kule-sapanca"
    assert business.handle == "kule.sapanca"
    assert business.phone == "+905321234567"
    assert business.website_host == "kulesapanca.com"
    assert business.city == "Sakarya"
    assert business.verified is True
    assert business.status is BusinessStatus.APPROVED
    assert business.created_at == NOW
    assert application.status is ApplicationStatus.APPROVED
    assert application.business_id == business.id
    assert application.reviewed_at == NOW
    assert fake_directory.businesses.get(business.id) is business
    assert cache.clears == 1


def test_approve_is_idempotent(fake_directory: FakeDirectory) -> None:
    cache = RecordingCache()
    application = _submitted(fake_directory, handle="kule.sapanca")

    first = _approve(fake_directory, application.id, cache)
    second = _approve(fake_directory, application.id, cache)

    assert second.business is first.business
    assert second.created is False
    assert second.updated is False
    assert len(fake_directory.businesses.items) == 1
    assert cache.clears == 1


def test_namesake_gets_next_numbered_slug(fake_directory: FakeDirectory) -> None:
    namesake = make_business("Kule Sapanca", handle="baska.kule", phone="0533 111 22 33")
    fake_directory.businesses.add(namesake)
    application = _submitted(fake_directory, handle="kule.sapanca", phone="0532 123 45 67")

    result = _approve(fake_directory, application.id)

    assert result.created is True
    assert result.business.slug == "kule-sapanca-2"
    assert namesake.handle == "baska.kule"


def test_slug_family_gaps_continue_from_highest_suffix(fake_directory: FakeDirectory) -> None:
    fake_directory.businesses.add(make_business("Kule Sapanca", handle="a"))
    fake_directory.businesses.add(make_business("Kule Sapanca", slug="kule-sapanca-3", handle="b"))
    application = _submitted(fake_directory, handle="c")

    assert _approve(fake_directory, application.id).business.slug == "kule-sapanca-4"


def test_matching_handle_merges_into_existing_business(fake_directory: FakeDirectory) -> None:
    existing = make_business(
        "Kule Bungalov",
        handle="kule.sapanca",
        email="info@kule.com",
        verified=False,
    )
    fake_directory.businesses.add(existing)
    application = _submitted(
        fake_directory,
        business_name="Kule Sapanca",
        handle="https://instagram.com/kule.sapanca",
        address="Kırkpınar Mah.",
    )

    result = _approve(fake_directory, application.id)

    assert result.business is existing
    assert result.created is False
    assert result.updated is True
    assert existing.name == "Kule Sapanca"
    assert existing.slug == "kule-bungalov"
    assert existing.address == "Kırkpınar Mah."
    assert existing.email == "info@kule.com"
    assert existing.verified is True
    assert existing.updated_at == NOW
    assert application.business_id == existing.id
    assert len(fake_directory.businesses.items) == 1


def test_matching_phone_merges_into_existing_business(fake_directory: FakeDirectory) -> None:
    existing = make_business("Göl Evi", phone="+90 532 123 45 67")
    fake_directory.businesses.add(existing)
    application = _submitted(fake_directory, business_name="Göl Evi Sapanca", phone="05321234567")

    result = _approve(fake_directory, application.id)

    assert result.business is existing
    assert result.updated is True


def test_slug_match_with_same_identity_merges(fake_directory: FakeDirectory) -> None:
    existing = make_business("Kule Sapanca", handle="kule.sapanca")
    fake_directory.businesses.add(existing)
    application = _submitted(fake_directory, handle="@kule.sapanca")

    assert _approve(fake_directory, application.id).business is existing


def test_blacklisted_identity_cannot_be_approved(fake_directory: FakeDirectory) -> None:
    entry = make_blacklist_entry(phone="0532 123 45 67")
    fake_directory.blacklist.add(entry)
    application = _submitted(fake_directory, phone="+90 532 123 45 67")

    with pytest.raises(IdentityConflictError) as excinfo:
        _approve(fake_directory, application.id)

    assert excinfo.value.existing_kind is RecordKind.BLACKLIST
    assert excinfo.value.existing_id == entry.id
    assert application.status is ApplicationStatus.PENDING
    assert application.business_id is None
    assert fake_directory.businesses.items == {}


def test_lost_approval_race_returns_winner(
    fake_directory: FakeDirectory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    application = _submitted(fake_directory, handle="kule.sapanca")
    winner = make_business("Kule Sapanca", handle="kule.sapanca")
    mark_approved = fake_directory.applications.mark_approved
    raced: list[bool] = []

    def racing_mark_approved(
        target: Application,
        business_id: UUID,
        reviewed_at: datetime,
        *,
        replacing: UUID | None = None,
    ) -> bool:
        if not raced:
            raced.append(True)
            fake_directory.businesses.add(winner)
            mark_approved(target, winner.id, reviewed_at, replacing=replacing)
            return False
        return mark_approved(target, business_id, reviewed_at, replacing=replacing)

    monkeypatch.setattr(fake_directory.applications, "mark_approved", racing_mark_approved)

    result = _approve(fake_directory, application.id)

    assert result.business is winner
    assert result.created is False
    assert list(fake_directory.businesses.items) == [winner.id]
    assert fake_directory.rollbacks == 1


def test_losing_the_retry_raises_conflict(
    fake_directory: FakeDirectory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    application = _submitted(fake_directory, handle="kule.sapanca")
    monkeypatch.setattr(
        fake_directory.applications,
        "mark_approved",
        lambda *_args, **_kwargs: False,
    )

    with pytest.raises(ConflictError):
        _approve(fake_directory, application.id)

    assert fake_directory.rollbacks == 2
    assert fake_directory.businesses.items == {}


def test_approve_unknown_application(fake_directory: FakeDirectory) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        _approve(fake_directory, uuid4())

    assert excinfo.value.kind is RecordKind.APPLICATION


def test_reject_pending_application(fake_directory: FakeDirectory) -> None:
    application = _submitted(fake_directory)

    rejected = reject_application(
        application.id,
        "  Eksik belge  ",
        unit_of_work_factory=fake_directory.unit_of_work_factory,
        clock=lambda: NOW,
    )

    assert rejected is application
    assert application.status is ApplicationStatus.REJECTED
    assert application.reject_reason == "Eksik belge"
    assert application.reviewed_at == NOW


def test_reject_is_idempotent_and_blocks_approval(fake_directory: FakeDirectory) -> None:
    application = _submitted(fake_directory)
    reject_application(application.id, unit_of_work_factory=fake_directory.unit_of_work_factory)
    commits = fake_directory.commits

    reject_application(application.id, unit_of_work_factory=fake_directory.unit_of_work_factory)

    assert fake_directory.commits == commits
    with pytest.raises(InvalidTransitionError):
        _approve(fake_directory, application.id)
    assert fake_directory.businesses.items == {}


def test_approved_application_cannot_be_rejected(fake_directory: FakeDirectory) -> None:
    application = _submitted(fake_directory)
    _approve(fake_directory, application.id)

    with pytest.raises(InvalidTransitionError):
        reject_application(
            application.id,
            unit_of_work_factory=fake_directory.unit_of_work_factory,
        )
    assert application.status is ApplicationStatus.APPROVED


def test_application_phones_are_merged_into_business(fake_directory: FakeDirectory) -> None:
    existing = make_business("Göl Evi", handle="gol.evi", phones=["0264 111 22 33"])
    fake_directory.businesses.add(existing)
    application = _submitted(
        fake_directory,
        business_name="Göl Evi",
        handle="gol.evi",
        phone="0532 123 45 67",
        phones=["0532 123 45 67", "0264 222 33 44"],
    )

    result = _approve(fake_directory, application.id)

    assert result.business is existing
    assert existing.phone == "+905321234567"
    assert existing.phones == [
        "+905321234567",
        canonical_phone("0264 111 22 33"),
        canonical_phone("0264 222 33 44"),
    ]


def test_listed_fixed_line_finds_existing_business(fake_directory: FakeDirectory) -> None:
    existing = make_business("Göl Evi", phone="0532 123 45 67", phones=["0264 111 22 33"])
    fake_directory.businesses.add(existing)
    application = _submitted(
        fake_directory,
        business_name="Göl Evi Sapanca",
        phone="0533 999 88 77",
        phones=["0533 999 88 77", "(0264) 111 22 33"],
    )

    result = _approve(fake_directory, application.id)

    assert result.business is existing
    assert result.updated is True
    assert "+905339998877" in existing.phones
    assert len(fake_directory.businesses.items) == 1


def test_approved_application_with_deleted_business_is_promoted_again(
    fake_directory: FakeDirectory,
    caplog: pytest.LogCaptureFixture,
) -> None:
    application = _submitted(fake_directory, handle="kule.sapanca")
    first = _approve(fake_directory, application.id).business
    del fake_directory.businesses.items[first.id]

    with caplog.at_level("WARNING", logger="dogrula.domain.promotion"):
        second = _approve(fake_directory, application.id)

    assert second.created is True
    assert second.business is not first
    assert second.business.slug == "kule-sapanca"
    assert application.status is ApplicationStatus.APPROVED
    assert application.business_id == second.business.id
    assert list(fake_directory.businesses.items) == [second.business.id]
    assert fake_directory.rollbacks == 0
    assert "promoting again" in caplog.text

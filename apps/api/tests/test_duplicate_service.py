"""Tests for connect card duplicate detection."""

from datetime import datetime, timedelta, timezone

from app.db.models import VisitorCard
from app.schemas.intake import DuplicateCheckRequest
from app.services import duplicate_service
from app.utils.normalization import normalize_name_key, normalize_phone


def _card(db, org, name, email=None, phone=None, scanned_at=None):
    card = VisitorCard(
        organization_id=org.id,
        name=name,
        name_normalized=normalize_name_key(name),
        email=email,
        phone=normalize_phone(phone),
        scanned_at=scanned_at or datetime.now(timezone.utc),
    )
    db.add(card)
    db.flush()
    return card


def test_match_on_name_and_email_case_insensitive(db, test_org):
    existing = _card(db, test_org, "John Smith", email="john@example.com")

    match = duplicate_service.find_duplicate(db, test_org.id, "john smith", email="John@Example.com")

    assert match is not None
    assert match.id == existing.id


def test_match_on_name_and_phone_across_formats(db, test_org):
    existing = _card(db, test_org, "John Smith", phone="5551234567")

    match = duplicate_service.find_duplicate(db, test_org.id, "John Smith", phone="(555) 123-4567")

    assert match is not None
    assert match.id == existing.id


def test_same_email_different_name_is_not_duplicate(db, test_org):
    _card(db, test_org, "John Smith", email="family@example.com")

    assert duplicate_service.find_duplicate(db, test_org.id, "Jane Smith", email="family@example.com") is None


def test_name_alone_is_never_enough(db, test_org):
    _card(db, test_org, "John Smith", email="john@example.com")

    assert duplicate_service.find_duplicate(db, test_org.id, "John Smith") is None
    assert duplicate_service.find_duplicate(db, test_org.id, None, email="john@example.com") is None


def test_other_organizations_are_invisible(db, test_org, other_org):
    _card(db, other_org, "John Smith", email="john@example.com")

    assert duplicate_service.find_duplicate(db, test_org.id, "John Smith", email="john@example.com") is None


def test_most_recent_match_wins_and_exclude_id(db, test_org):
    now = datetime.now(timezone.utc)
    older = _card(db, test_org, "John Smith", email="john@example.com", scanned_at=now - timedelta(days=7))
    newer = _card(db, test_org, "John Smith", phone="555-123-4567", scanned_at=now)

    match = duplicate_service.find_duplicate(
        db, test_org.id, "John Smith", email="john@example.com", phone="5551234567"
    )
    assert match.id == newer.id

    match = duplicate_service.find_duplicate(
        db, test_org.id, "John Smith", email="john@example.com", phone="5551234567", exclude_id=newer.id
    )
    assert match.id == older.id


def test_check_duplicate_response_shape(db, test_org):
    existing = _card(db, test_org, "John Smith", email="john@example.com")

    result = duplicate_service.check_duplicate(
        db, test_org.id, DuplicateCheckRequest(name="John Smith", email="john@example.com")
    )

    assert result.is_duplicate is True
    assert result.existing_card.id == existing.id

    miss = duplicate_service.check_duplicate(db, test_org.id, DuplicateCheckRequest(name="Nobody", email="n@x.com"))
    assert miss.is_duplicate is False
    assert miss.existing_card is None

"""Tests for saving scanned cards and staff review."""

from datetime import timedelta

import pytest

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.db.enums import PrayerStatus, VisitorCardStatus
from app.db.models import IntakeBatch, PrayerRequest, VisitorCard
from app.schemas.intake import ExtractedRecord
from app.schemas.visitor_card import VisitorCardCreate, VisitorCardUpdate
from app.services import visitor_card_service
from app.services.visitor_card_service import DuplicateCardError


def _create(image_key=None, allow_duplicate=False, **fields):
    extracted = {
        "name": "John  Smith",
        "email": "John@Example.com",
        "phone": "555.123.4567",
        "visit_status": "first time here",
        "interests": ["Serving on a team", "small groups"],
        **fields,
    }
    return VisitorCardCreate(
        image_key=image_key,
        extracted=ExtractedRecord.model_validate(extracted),
        allow_duplicate=allow_duplicate,
    )


class TestSaveCard:
    def test_save_normalizes_and_fills_active_batch(self, db, staff_session, main_campus):
        card, prayer = visitor_card_service.save_card(db, staff_session, _create())

        assert card.name == "John Smith"
        assert card.name_normalized == "john smith"
        assert card.email == "john@example.com"
        assert card.phone == "(555) 123-4567"
        assert card.visit_status == "First Visit"
        assert card.interests == ["Volunteering", "Small Groups"]
        assert card.status == VisitorCardStatus.NEW.value
        assert card.location_id == main_campus.id
        assert card.scanned_by_user_id == staff_session.user_id
        assert prayer is None

        batch = db.get(IntakeBatch, card.batch_id)
        assert batch.card_count == 1
        assert batch.created_by_user_id == staff_session.user_id

    def test_prayer_text_creates_prayer_request(self, db, staff_session):
        card, prayer = visitor_card_service.save_card(
            db, staff_session, _create(prayer_request="My dad was just diagnosed with cancer")
        )

        assert card.is_urgent is True
        assert prayer is not None
        assert prayer.visitor_card_id == card.id
        assert prayer.submitted_by == "John Smith"
        assert prayer.submitter_email == "john@example.com"
        assert prayer.status == PrayerStatus.PENDING.value
        assert prayer.is_urgent is True
        assert prayer.category == "Health"

    def test_sensitive_prayer_text_marks_card_private(self, db, staff_session):
        card, prayer = visitor_card_service.save_card(
            db, staff_session, _create(prayer_request="Please keep this private, struggling with debt")
        )

        assert card.is_private is True
        assert prayer.is_private is True

    def test_incomplete_card_records_validation_issues(self, db, staff_session):
        card, _ = visitor_card_service.save_card(
            db, staff_session, _create(name="J", email=None, phone="555123456")
        )

        fields = {issue["field"] for issue in card.validation_issues}
        assert fields == {"name", "phone", "email"}

    def test_duplicate_is_rejected_with_existing_card(self, db, staff_session):
        first, _ = visitor_card_service.save_card(db, staff_session, _create())

        with pytest.raises(DuplicateCardError) as exc_info:
            visitor_card_service.save_card(
                db, staff_session, _create(name="john smith", email=None)
            )

        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.data["existing_card"]["id"] == str(first.id)
        assert db.query(VisitorCard).count() == 1

    def test_allow_duplicate_saves_with_duplicate_status(self, db, staff_session):
        visitor_card_service.save_card(db, staff_session, _create())

        card, _ = visitor_card_service.save_card(db, staff_session, _create(allow_duplicate=True))

        assert card.status == VisitorCardStatus.DUPLICATE.value
        assert db.get(IntakeBatch, card.batch_id).card_count == 2

    def test_same_name_different_contact_is_not_duplicate(self, db, staff_session):
        visitor_card_service.save_card(db, staff_session, _create())

        card, _ = visitor_card_service.save_card(
            db, staff_session, _create(email="other@example.com", phone="555-999-0000")
        )

        assert card.status == VisitorCardStatus.NEW.value

    def test_image_key_must_be_under_org_prefix(self, db, staff_session, other_org):
        foreign_key = f"organizations/{other_org.slug}/connect-cards/card.jpg"

        with pytest.raises(ValidationError):
            visitor_card_service.save_card(db, staff_session, _create(image_key=foreign_key))

    def test_owned_image_key_is_stored(self, db, staff_session):
        key = f"organizations/{staff_session.org_slug}/connect-cards/card.jpg"

        card, _ = visitor_card_service.save_card(db, staff_session, _create(image_key=key))

        assert card.image_key == key


class TestReview:
    def test_update_marks_reviewed(self, db, staff_session):
        card, _ = visitor_card_service.save_card(db, staff_session, _create())

        updated, prayer = visitor_card_service.update_card(
            db, staff_session, card.id, VisitorCardUpdate(phone="5559876543")
        )

        assert updated.phone == "(555) 987-6543"
        assert updated.status == VisitorCardStatus.REVIEWED.value
        assert updated.reviewed_at is not None
        assert updated.email == "john@example.com"
        assert prayer is None

    def test_update_adding_prayer_text_creates_request(self, db, staff_session):
        card, _ = visitor_card_service.save_card(db, staff_session, _create())

        _, prayer = visitor_card_service.update_card(
            db, staff_session, card.id, VisitorCardUpdate(prayer_request="Pray for my new job search")
        )

        assert prayer is not None
        assert prayer.visitor_card_id == card.id
        assert db.query(PrayerRequest).count() == 1

    def test_update_matching_another_card_marks_duplicate(self, db, staff_session):
        visitor_card_service.save_card(db, staff_session, _create())
        second, _ = visitor_card_service.save_card(
            db, staff_session, _create(name="Jane Doe", email="jane@example.com", phone=None)
        )

        updated, _ = visitor_card_service.update_card(
            db, staff_session, second.id,
            VisitorCardUpdate(name="John Smith", email="john@example.com"),
        )

        assert updated.status == VisitorCardStatus.DUPLICATE.value

    def test_card_outside_location_scope_is_not_found(self, db, admin_session, staff_session, north_campus):
        card, _ = visitor_card_service.save_card(db, admin_session, _create())
        card.location_id = north_campus.id
        db.flush()

        with pytest.raises(NotFoundError):
            visitor_card_service.get_card(db, staff_session, card.id)


class TestDelete:
    def test_delete_unreviewed_card_decrements_batch(self, db, staff_session):
        key = f"organizations/{staff_session.org_slug}/connect-cards/card.jpg"
        card, _ = visitor_card_service.save_card(db, staff_session, _create(image_key=key))
        batch_id = card.batch_id

        image_key = visitor_card_service.delete_card(db, staff_session, card.id)

        assert image_key == key
        assert db.query(VisitorCard).count() == 0
        batch = db.get(IntakeBatch, batch_id)
        db.refresh(batch)
        assert batch.card_count == 0

    def test_reviewed_card_cannot_be_deleted(self, db, staff_session):
        card, _ = visitor_card_service.save_card(db, staff_session, _create())
        visitor_card_service.update_card(db, staff_session, card.id, VisitorCardUpdate(address="1 Main St"))

        with pytest.raises(ConflictError):
            visitor_card_service.delete_card(db, staff_session, card.id)


def test_list_batch_cards_in_scan_order(db, staff_session):
    first, _ = visitor_card_service.save_card(db, staff_session, _create())
    second, _ = visitor_card_service.save_card(
        db, staff_session, _create(name="Mary Jones", email="mary@example.com", phone=None)
    )
    second.scanned_at = first.scanned_at + timedelta(seconds=1)
    db.flush()

    cards = visitor_card_service.list_batch_cards(db, staff_session, first.batch_id)

    assert [c.id for c in cards] == [first.id, second.id]

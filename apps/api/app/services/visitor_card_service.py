"""
Visitor card persistence and staff review.

save_card is the end of the scanner flow: standardized extraction output is
checked for duplicates, stored in the collector's active batch, and its
prayer text is routed into prayer triage.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.data_scope import can_access_location, default_location_for_new_records
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.org_context import resolve_org_context
from app.db.enums import VisitorCardStatus
from app.db.models import IntakeBatch, PrayerRequest, VisitorCard
from app.schemas.auth import UserSession
from app.schemas.intake import ExistingCardSummary
from app.schemas.visitor_card import VisitorCardCreate, VisitorCardUpdate
from app.services import batch_service, duplicate_service, prayer_priority, prayer_request_service
from app.services.card_image_service import is_owned_key
from app.services.extraction_service import standardize_fields, validate_card_data
from app.utils.normalization import (
    normalize_email,
    normalize_interests,
    normalize_keywords,
    normalize_name,
    normalize_name_key,
    normalize_phone,
    normalize_visit_status,
)

logger = logging.getLogger(__name__)


class CardNotFoundError(NotFoundError):
    def __init__(self, message: str = "Card not found", **kwargs):
        super().__init__(message, **kwargs)


class DuplicateCardError(ConflictError):
    """An earlier card in the organization has the same name and email or phone."""

    def __init__(self, message: str = "This visitor has already been scanned", **kwargs):
        super().__init__(message, **kwargs)


def get_card(db: Session, session: UserSession, card_id: UUID) -> VisitorCard:
    """Card in the actor's org and location scope, or CardNotFoundError."""
    card = (
        db.query(VisitorCard)
        .filter(VisitorCard.id == card_id, VisitorCard.organization_id == session.org_id)
        .first()
    )
    if not card or not can_access_location(session.data_scope, card.location_id):
        raise CardNotFoundError()
    return card


def save_card(
    db: Session,
    session: UserSession,
    data: VisitorCardCreate,
) -> tuple[VisitorCard, PrayerRequest | None]:
    """
    Store one scanned card in the actor's active batch.

    Raises DuplicateCardError (with the existing card in data) unless the
    caller explicitly keeps the duplicate, in which case the card is saved
    with status DUPLICATE.
    """
    record = standardize_fields(data.extracted)

    if data.image_key:
        context = resolve_org_context(session.org_slug)
        if not is_owned_key(context, data.image_key):
            raise ValidationError("Invalid image key")

    name = normalize_name(record.name)
    email = normalize_email(record.email)
    phone = normalize_phone(record.phone)

    existing = duplicate_service.find_duplicate(db, session.org_id, name, email, phone)
    if existing and not data.allow_duplicate:
        raise DuplicateCardError(
            data={"existing_card": ExistingCardSummary.model_validate(existing).model_dump(mode="json")}
        )

    validation = validate_card_data(record)
    batch = batch_service.get_or_create_active_batch(db, session.user_id, session.org_id)

    location_id = batch.location_id or default_location_for_new_records(
        session.data_scope, session.default_location_id
    )

    prayer_text = (record.prayer_request or "").strip() or None
    card = VisitorCard(
        organization_id=session.org_id,
        location_id=location_id,
        batch_id=batch.id,
        image_key=data.image_key,
        extracted_data=data.extracted.model_dump(mode="json"),
        name=name,
        name_normalized=normalize_name_key(name),
        email=email,
        phone=phone,
        address=record.address,
        prayer_request=prayer_text,
        visit_status=record.visit_status,
        interests=record.interests or [],
        keywords=record.keywords or [],
        age_group=record.age_group,
        family_info=record.family_info,
        additional_notes=record.additional_notes,
        validation_issues=[issue.model_dump() for issue in validation.issues] or None,
        is_private=prayer_priority.has_sensitive_keywords(prayer_text),
        is_urgent=prayer_priority.is_critical(prayer_text),
        status=(VisitorCardStatus.DUPLICATE if existing else VisitorCardStatus.NEW).value,
        scanned_by_user_id=session.user_id,
    )
    db.add(card)
    db.flush()

    batch_service.increment_card_count(db, batch)
    prayer = prayer_request_service.create_from_card(db, card, session.user_id)

    logger.info(
        f"Saved visitor card card={card.id} batch={batch.id} "
        f"duplicate={bool(existing)} needs_review={validation.needs_review}"
    )
    return card, prayer


def update_card(
    db: Session,
    session: UserSession,
    card_id: UUID,
    data: VisitorCardUpdate,
) -> tuple[VisitorCard, PrayerRequest | None]:
    """
    Apply staff review edits and mark the card reviewed.

    A card whose edited identity matches another card is marked DUPLICATE.
    A prayer request is created when the card gains prayer text and has
    none linked yet.
    """
    card = get_card(db, session, card_id)
    fields_set = data.model_fields_set

    for field in fields_set:
        value = getattr(data, field)
        if field == "name":
            value = normalize_name(value)
            card.name_normalized = normalize_name_key(value)
        elif field == "email":
            value = normalize_email(value)
        elif field == "phone":
            value = normalize_phone(value)
        elif field == "visit_status":
            value = normalize_visit_status(value)
        elif field == "interests":
            value = normalize_interests(value)
        elif field == "keywords":
            value = normalize_keywords(value)
        elif field == "prayer_request":
            value = (value or "").strip() or None
        elif field in ("is_private", "is_urgent") and value is None:
            continue
        setattr(card, field, value)

    if "prayer_request" in fields_set:
        if "is_private" not in fields_set:
            card.is_private = card.is_private or prayer_priority.has_sensitive_keywords(card.prayer_request)
        if "is_urgent" not in fields_set:
            card.is_urgent = card.is_urgent or prayer_priority.is_critical(card.prayer_request)

    duplicate = duplicate_service.find_duplicate(
        db, session.org_id, card.name, card.email, card.phone, exclude_id=card.id
    )
    card.status = (VisitorCardStatus.DUPLICATE if duplicate else VisitorCardStatus.REVIEWED).value
    card.reviewed_at = datetime.now(timezone.utc)
    db.flush()

    prayer = (
        db.query(PrayerRequest)
        .filter(PrayerRequest.visitor_card_id == card.id)
        .first()
    )
    if prayer is None and card.prayer_request:
        prayer = prayer_request_service.create_from_card(db, card, session.user_id)

    return card, prayer


def delete_card(db: Session, session: UserSession, card_id: UUID) -> str | None:
    """
    Delete a card that has not been reviewed yet.

    Returns the card's image key for post-commit cleanup.
    """
    card = get_card(db, session, card_id)
    if card.status == VisitorCardStatus.REVIEWED.value:
        raise ConflictError("Reviewed cards cannot be deleted")

    image_key = card.image_key
    if card.batch_id:
        db.execute(
            update(IntakeBatch)
            .where(IntakeBatch.id == card.batch_id, IntakeBatch.card_count > 0)
            .values(card_count=IntakeBatch.card_count - 1)
        )
    db.delete(card)
    db.flush()

    logger.info(f"Deleted visitor card card={card_id}")
    return image_key


def list_batch_cards(
    db: Session,
    session: UserSession,
    batch_id: UUID,
    status: VisitorCardStatus | None = None,
) -> list[VisitorCard]:
    """Cards of one batch in scan order."""
    batch = batch_service.get_batch_detail(db, session.org_id, batch_id, session.data_scope)
    query = db.query(VisitorCard).filter(
        VisitorCard.batch_id == batch.id,
        VisitorCard.organization_id == session.org_id,
    )
    if status:
        query = query.filter(VisitorCard.status == status.value)
    return query.order_by(VisitorCard.scanned_at.asc(), VisitorCard.created_at.asc()).all()


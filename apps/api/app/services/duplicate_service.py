"""
Duplicate detection for scanned connect cards.

High-precision matcher: a card duplicates an earlier card in the same
organization when the names are equal (case-insensitive) AND the email or
the phone is equal. No fuzzy matching; a missed duplicate is cheaper than
merging two different visitors.
"""

import logging
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.db.models import VisitorCard
from app.schemas.intake import (
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    ExistingCardSummary,
)
from app.utils.normalization import normalize_email, normalize_name_key, normalize_phone

logger = logging.getLogger(__name__)


def find_duplicate(
    db: Session,
    org_id: UUID,
    name: str | None,
    email: str | None = None,
    phone: str | None = None,
    exclude_id: UUID | None = None,
) -> VisitorCard | None:
    """
    Find the most recently scanned card this candidate duplicates.

    Returns None when the name is missing or neither email nor phone is given.
    """
    name_key = normalize_name_key(name)
    if not name_key:
        return None

    clean_email = normalize_email(email)
    clean_phone = normalize_phone(phone)

    identity_matches = []
    if clean_email:
        identity_matches.append(func.lower(VisitorCard.email) == clean_email)
    if clean_phone:
        identity_matches.append(VisitorCard.phone == clean_phone)
    if not identity_matches:
        return None

    query = db.query(VisitorCard).filter(
        VisitorCard.organization_id == org_id,
        VisitorCard.name_normalized == name_key,
        or_(*identity_matches),
    )
    if exclude_id:
        query = query.filter(VisitorCard.id != exclude_id)

    return query.order_by(VisitorCard.scanned_at.desc()).first()


def check_duplicate(
    db: Session,
    org_id: UUID,
    data: DuplicateCheckRequest,
) -> DuplicateCheckResponse:
    """Duplicate check result shape for callers (scanner UI, review screen)."""
    existing = find_duplicate(
        db,
        org_id,
        name=data.name,
        email=data.email,
        phone=data.phone,
        exclude_id=data.exclude_id,
    )
    if not existing:
        return DuplicateCheckResponse(is_duplicate=False)

    logger.info(f"Duplicate card match org={org_id} existing={existing.id}")
    return DuplicateCheckResponse(
        is_duplicate=True,
        existing_card=ExistingCardSummary.model_validate(existing),
    )

"""Cards router - connect card extraction, duplicate checks, save and review."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import (
    get_current_session,
    get_db,
    get_intake_actor,
    require_csrf_header,
    require_org_match,
)
from app.core.org_context import resolve_org_context
from app.core.results import ActionResult
from app.db.enums import VisitorCardStatus
from app.schemas.auth import UserSession
from app.schemas.intake import (
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    ExtractRequest,
    ExtractResponse,
)
from app.schemas.visitor_card import (
    CardSaveResponse,
    VisitorCardCreate,
    VisitorCardRead,
    VisitorCardUpdate,
)
from app.services import duplicate_service, extraction_service, visitor_card_service
from app.services.card_image_service import delete_card_images
from app.services.vision_provider import VisionProvider, get_vision_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/intake/{org_id}", tags=["cards"])


@router.post(
    "/extract",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
async def extract_card(
    org_id: UUID,
    data: ExtractRequest,
    session: UserSession = Depends(get_intake_actor),
    provider: VisionProvider = Depends(get_vision_provider),
    db: Session = Depends(get_db),
):
    """Extract a card photo without saving: normalize, validate, check duplicates."""
    raw = await provider.extract(data.image_base64, data.media_type)
    record = extraction_service.standardize_fields(extraction_service.normalize_extraction(raw))
    validation = extraction_service.validate_card_data(record)
    duplicate = duplicate_service.check_duplicate(
        db,
        org_id,
        DuplicateCheckRequest(name=record.name, email=record.email, phone=record.phone),
    )
    return ActionResult.ok(
        "Card extracted",
        ExtractResponse(
            extracted=record,
            validation=validation,
            summary=extraction_service.format_validation_summary(validation),
            duplicate=duplicate,
        ),
    )


@router.post(
    "/cards/check-duplicate",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def check_duplicate(
    org_id: UUID,
    data: DuplicateCheckRequest,
    session: UserSession = Depends(get_intake_actor),
    db: Session = Depends(get_db),
):
    """Check whether a visitor was already scanned."""
    result: DuplicateCheckResponse = duplicate_service.check_duplicate(db, org_id, data)
    message = "Duplicate found" if result.is_duplicate else "No duplicate found"
    return ActionResult.ok(message, result)


@router.post(
    "/cards",
    response_model=ActionResult,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def save_card(
    org_id: UUID,
    data: VisitorCardCreate,
    session: UserSession = Depends(get_intake_actor),
    db: Session = Depends(get_db),
):
    """Save a scanned card into the caller's active batch."""
    card, prayer = visitor_card_service.save_card(db, session, data)
    db.commit()
    db.refresh(card)
    return ActionResult.ok(
        "Card saved",
        CardSaveResponse(
            card=VisitorCardRead.model_validate(card),
            prayer_request_id=prayer.id if prayer else None,
            batch_id=card.batch_id,
        ),
    )


@router.get("/batches/{batch_id}/cards", response_model=ActionResult)
def list_batch_cards(
    org_id: UUID,
    batch_id: UUID,
    status: VisitorCardStatus | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Cards in a batch, in scan order."""
    require_org_match(org_id, session)
    cards = visitor_card_service.list_batch_cards(db, session, batch_id, status)
    return ActionResult.ok("Cards loaded", [VisitorCardRead.model_validate(c) for c in cards])


@router.patch(
    "/cards/{card_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def update_card(
    org_id: UUID,
    card_id: UUID,
    data: VisitorCardUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Apply review edits to a card."""
    require_org_match(org_id, session)
    card, prayer = visitor_card_service.update_card(db, session, card_id, data)
    db.commit()
    db.refresh(card)
    message = "Card marked as duplicate" if card.status == VisitorCardStatus.DUPLICATE.value else "Card reviewed"
    return ActionResult.ok(
        message,
        CardSaveResponse(
            card=VisitorCardRead.model_validate(card),
            prayer_request_id=prayer.id if prayer else None,
            batch_id=card.batch_id,
        ),
    )


@router.delete(
    "/cards/{card_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def delete_card(
    org_id: UUID,
    card_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete an unreviewed card; its image is removed after commit."""
    require_org_match(org_id, session)
    image_key = visitor_card_service.delete_card(db, session, card_id)
    db.commit()

    report = delete_card_images([image_key], resolve_org_context(session.org_slug))
    return ActionResult.ok("Card deleted", {"card_id": str(card_id), "image_cleanup": report.as_dict()})

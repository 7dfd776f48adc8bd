"""Batches router - connect card batch lifecycle and review queue."""

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
from app.core.errors import AccessDenied
from app.core.org_context import resolve_org_context
from app.core.results import ActionResult
from app.schemas.auth import UserSession
from app.schemas.intake import StartNewBatchResponse
from app.schemas.visitor_card import BatchDetail
from app.services import batch_service
from app.services.card_image_service import delete_card_images

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/intake/{org_id}/batches", tags=["batches"])


@router.post(
    "/active",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def get_or_create_active_batch(
    org_id: UUID,
    session: UserSession = Depends(get_intake_actor),
    db: Session = Depends(get_db),
):
    """Get the caller's active batch, creating it on first scan."""
    batch = batch_service.get_or_create_active_batch(db, session.user_id, org_id)
    db.commit()
    return ActionResult.ok("Active batch ready", batch_service.to_summary(batch))


@router.post(
    "/{batch_id}/complete",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def complete_batch(
    org_id: UUID,
    batch_id: UUID,
    session: UserSession = Depends(get_intake_actor),
    db: Session = Depends(get_db),
):
    """Mark a batch completed."""
    batch = batch_service.complete_batch(db, org_id, batch_id)
    db.commit()
    return ActionResult.ok("Batch completed", batch_service.to_summary(batch))


@router.post(
    "/{batch_id}/start-new",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def start_new_batch(
    org_id: UUID,
    batch_id: UUID,
    session: UserSession = Depends(get_intake_actor),
    db: Session = Depends(get_db),
):
    """Complete the current batch and open a fresh one."""
    completed_id, batch = batch_service.start_new_batch(db, session.user_id, org_id, batch_id)
    db.commit()
    return ActionResult.ok(
        "New batch started",
        StartNewBatchResponse(
            completed_batch_id=completed_id,
            batch=batch_service.to_summary(batch),
        ),
    )


@router.delete(
    "/{batch_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def delete_batch(
    org_id: UUID,
    batch_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a batch and its cards; images are removed after commit."""
    require_org_match(org_id, session)
    if not session.data_scope.can_delete_data:
        raise AccessDenied("You don't have permission to delete batches")

    deletion = batch_service.delete_batch(db, org_id, batch_id)
    db.commit()

    report = delete_card_images(deletion.image_keys, resolve_org_context(session.org_slug))
    if report.errors:
        logger.warning(f"Batch delete left {report.errors} card images behind batch={batch_id}")

    return ActionResult.ok(
        "Batch deleted",
        {
            "batch_id": str(deletion.batch_id),
            "deleted_cards": len(deletion.deleted_card_ids),
            "image_cleanup": report.as_dict(),
        },
    )


@router.get("", response_model=ActionResult)
def list_batches(
    org_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Batches for the review queue, newest first."""
    require_org_match(org_id, session)
    items = batch_service.list_batches_for_review(db, org_id, session.data_scope)
    return ActionResult.ok("Batches loaded", items)


@router.get("/stats", response_model=ActionResult)
def get_batch_stats(
    org_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Pending / completed batch counts."""
    require_org_match(org_id, session)
    return ActionResult.ok("Batch stats loaded", batch_service.get_batch_stats(db, org_id, session.data_scope))


@router.get("/{batch_id}", response_model=ActionResult)
def get_batch(
    org_id: UUID,
    batch_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Batch detail with its cards."""
    require_org_match(org_id, session)
    batch = batch_service.get_batch_detail(db, org_id, batch_id, session.data_scope)
    return ActionResult.ok("Batch loaded", BatchDetail.model_validate(batch))

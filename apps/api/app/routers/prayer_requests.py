"""Prayer requests router - triage, assignment, and prayer sessions."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_session, get_db, require_csrf_header
from app.core.results import ActionResult
from app.db.enums import PrayerStatus
from app.schemas.auth import UserSession
from app.schemas.prayer_request import (
    PrayerAssign,
    PrayerMarkAnswered,
    PrayerPrivacyUpdate,
    PrayerRequestCreate,
    PrayerRequestUpdate,
)
from app.services import prayer_request_service
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter(prefix="/prayer-requests", tags=["prayer-requests"])


@router.get("", response_model=ActionResult)
def list_prayer_requests(
    status: PrayerStatus | None = None,
    category: str | None = None,
    assigned_to: UUID | None = None,
    is_private: bool | None = None,
    q: str | None = Query(None, max_length=100),
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List prayer requests (urgent first, then status, then newest)."""
    page = prayer_request_service.list_prayer_requests(
        db,
        session,
        pagination,
        status=status,
        category=category,
        assigned_to_user_id=assigned_to,
        is_private=is_private,
        search=q,
    )
    return ActionResult.ok("Prayer requests loaded", page)


@router.post(
    "",
    response_model=ActionResult,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_prayer_request(
    data: PrayerRequestCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Manually enter a prayer request."""
    prayer = prayer_request_service.create_prayer_request(db, session, data)
    db.commit()
    db.refresh(prayer)
    return ActionResult.ok("Prayer request created", prayer_request_service.to_read(prayer, session))


@router.get("/stats", response_model=ActionResult)
def get_stats(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Counts by status plus private and urgent totals."""
    return ActionResult.ok("Prayer stats loaded", prayer_request_service.get_prayer_request_stats(db, session))


@router.get("/session", response_model=ActionResult)
def get_prayer_session(
    include_answered: bool = True,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Prayer requests grouped for a prayer session."""
    result = prayer_request_service.get_prayer_session(db, session, include_answered=include_answered)
    return ActionResult.ok("Prayer session loaded", result)


@router.get("/{prayer_id}", response_model=ActionResult)
def get_prayer_request(
    prayer_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return ActionResult.ok(
        "Prayer request loaded",
        prayer_request_service.get_prayer_request(db, session, prayer_id),
    )


@router.patch(
    "/{prayer_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def update_prayer_request(
    prayer_id: UUID,
    data: PrayerRequestUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    prayer = prayer_request_service.update_prayer_request(db, session, prayer_id, data)
    db.commit()
    db.refresh(prayer)
    return ActionResult.ok("Prayer request updated", prayer_request_service.to_read(prayer, session))


@router.delete(
    "/{prayer_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def delete_prayer_request(
    prayer_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a prayer request (admins only)."""
    prayer_request_service.delete_prayer_request(db, session, prayer_id)
    db.commit()
    return ActionResult.ok("Prayer request deleted", {"id": str(prayer_id)})


@router.post(
    "/{prayer_id}/assign",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def assign_prayer_request(
    prayer_id: UUID,
    data: PrayerAssign,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    prayer = prayer_request_service.assign(db, session, prayer_id, data.assignee_id)
    db.commit()
    db.refresh(prayer)
    return ActionResult.ok("Prayer request assigned successfully", prayer_request_service.to_read(prayer, session))


@router.post(
    "/{prayer_id}/answered",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def mark_answered(
    prayer_id: UUID,
    data: PrayerMarkAnswered,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    prayer = prayer_request_service.mark_answered(db, session, prayer_id, data.answered_notes)
    db.commit()
    db.refresh(prayer)
    return ActionResult.ok("Prayer request marked as answered", prayer_request_service.to_read(prayer, session))


@router.post(
    "/{prayer_id}/privacy",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def set_privacy(
    prayer_id: UUID,
    data: PrayerPrivacyUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Mark a prayer request private or public (admins only)."""
    prayer = prayer_request_service.set_privacy(db, session, prayer_id, data.is_private)
    db.commit()
    db.refresh(prayer)
    label = "private" if prayer.is_private else "public"
    return ActionResult.ok(f"Prayer request marked as {label}", prayer_request_service.to_read(prayer, session))

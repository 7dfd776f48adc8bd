"""Scan router - QR code tokens and phone scan sessions."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import (
    SCAN_COOKIE_NAME,
    get_current_session,
    get_db,
    require_csrf_header,
)
from app.core.errors import AccessDenied
from app.core.results import ActionResult
from app.core.security import verify_scan_session
from app.db.models import Organization, User
from app.schemas.auth import UserSession
from app.schemas.scan import ScanCleanupResult, ScanSessionRead, ScanSessionStart
from app.services import scan_session_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scan", tags=["scan"])

INVALID_TOKEN_MESSAGE = "This QR code is invalid or has expired. Please generate a new one."


@router.post(
    "/tokens",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def issue_scan_token(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Issue a one-time QR code token for the phone scanner."""
    issued = scan_session_service.issue_scan_token(db, session.user_id, session.org_id, session.org_slug)
    db.commit()
    return ActionResult.ok("Scan token issued", issued)


@router.post(
    "/session",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def start_scan_session(
    data: ScanSessionStart,
    response: Response,
    db: Session = Depends(get_db),
):
    """Consume a QR code token and set the scan session cookie."""
    consumed = scan_session_service.validate_scan_token(db, data.token)
    # Expired tokens are deleted during validation
    db.commit()
    if consumed is None:
        raise HTTPException(status_code=401, detail=INVALID_TOKEN_MESSAGE)

    user_id, org_id = consumed
    user = db.query(User).filter(User.id == user_id).first()
    org = db.query(Organization).filter(Organization.id == org_id).first()
    if not user or not user.is_active or not org:
        raise HTTPException(status_code=401, detail=INVALID_TOKEN_MESSAGE)

    cookie_value, payload = scan_session_service.create_scan_cookie_value(user_id, org_id, org.slug)
    response.set_cookie(
        key=SCAN_COOKIE_NAME,
        value=cookie_value,
        max_age=settings.SCAN_SESSION_EXPIRY_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    logger.info(f"Scan session started user={user_id} org={org_id}")
    return ActionResult.ok(
        "Scan session started",
        ScanSessionRead(
            user_id=payload.user_id,
            organization_id=payload.org_id,
            slug=payload.slug,
            expires_at=payload.expires_at,
        ),
    )


@router.get("/session", response_model=ActionResult)
def get_scan_session(request: Request):
    """Current scan session from the cookie."""
    payload = verify_scan_session(request.cookies.get(SCAN_COOKIE_NAME, ""))
    if payload is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return ActionResult.ok(
        "Scan session active",
        ScanSessionRead(
            user_id=payload.user_id,
            organization_id=payload.org_id,
            slug=payload.slug,
            expires_at=payload.expires_at,
        ),
    )


@router.delete(
    "/session",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def end_scan_session(response: Response):
    """Clear the scan session cookie."""
    response.delete_cookie(SCAN_COOKIE_NAME, path="/")
    return ActionResult.ok("Scan session ended")


@router.post(
    "/tokens/cleanup",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def cleanup_scan_tokens(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete expired scan tokens (admins only)."""
    if not session.is_admin:
        raise AccessDenied("Only admins can clean up scan tokens")
    deleted = scan_session_service.cleanup_expired_tokens(db)
    db.commit()
    return ActionResult.ok("Expired scan tokens cleaned up", ScanCleanupResult(deleted=deleted))

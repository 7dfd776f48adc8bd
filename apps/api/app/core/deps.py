"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.core.data_scope import build_data_scope
from app.core.security import decode_session_token, verify_scan_session
from app.db.session import SessionLocal


# Cookie and header names
COOKIE_NAME = "intake_session"
SCAN_COOKIE_NAME = "scan_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _session_payload(request: Request):
    """Decode the staff session cookie or raise 401."""
    from app.schemas.auth import TokenPayload

    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return TokenPayload.model_validate(decode_session_token(token))
    except (jwt.InvalidTokenError, PydanticValidationError):
        raise HTTPException(status_code=401, detail="Invalid session")


def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Get authenticated user from session cookie.

    Validates:
    - Session cookie exists
    - JWT is valid and not expired
    - User exists and is active
    - Token version matches (for revocation support)

    Raises:
        HTTPException 401: Authentication failed
    """
    # Import here to avoid circular imports
    from app.db.models import User

    payload = _session_payload(request)

    user = db.query(User).filter(User.id == payload.sub).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account disabled")

    # Token version check (revocation support)
    if user.token_version != payload.token_version:
        raise HTTPException(status_code=401, detail="Session revoked")

    return user


def _build_session(db: Session, user, org_id: UUID | None, *, via_scan_session: bool = False):
    """Resolve membership + data scope for a user into a UserSession."""
    from app.db.enums import Role
    from app.db.models import Membership, Organization
    from app.schemas.auth import UserSession

    query = db.query(Membership).filter(
        Membership.user_id == user.id,
        Membership.is_active.is_(True),
    )
    if org_id is not None:
        query = query.filter(Membership.organization_id == org_id)
    membership = query.first()

    if not membership:
        raise HTTPException(status_code=403, detail="No organization membership")

    # Validate role is a known enum value - return 403 not 500
    if not Role.has_value(membership.role):
        raise HTTPException(
            status_code=403,
            detail=f"Unknown role '{membership.role}'. Contact administrator."
        )

    role = Role(membership.role)
    org = db.query(Organization).filter(Organization.id == membership.organization_id).first()

    return UserSession(
        user_id=user.id,
        org_id=membership.organization_id,
        org_slug=org.slug if org else "",
        role=role,
        email=user.email,
        display_name=user.display_name,
        default_location_id=user.default_location_id,
        data_scope=build_data_scope(
            role=role,
            platform_role=user.platform_role,
            default_location_id=user.default_location_id,
            can_see_all_locations=user.can_see_all_locations,
        ),
        via_scan_session=via_scan_session,
    )


def get_current_session(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Get full session context: user, org, role, data scope.

    This is the PRIMARY auth dependency for staff endpoints.

    Raises:
        HTTPException 401: Not authenticated
        HTTPException 403: No membership or unknown role
    """
    user = get_current_user(request, db)
    return _build_session(db, user, _session_payload(request).org_id)


def get_intake_actor(
    org_id: UUID,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Actor for intake endpoints: staff session or phone scan session.

    A staff cookie wins when present. Otherwise a valid scan cookie whose
    organization matches the path org is accepted.

    Raises:
        HTTPException 401: Neither credential is valid
        HTTPException 404: Credential belongs to another organization
    """
    from app.db.models import User

    if request.cookies.get(COOKIE_NAME):
        session = get_current_session(request, db)
        if session.org_id != org_id:
            raise HTTPException(status_code=404, detail="Organization not found")
        return session

    payload = verify_scan_session(request.cookies.get(SCAN_COOKIE_NAME, ""))
    if payload is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if payload.org_id != org_id:
        raise HTTPException(status_code=404, detail="Organization not found")

    user = db.query(User).filter(User.id == payload.user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")

    return _build_session(db, user, payload.org_id, via_scan_session=True)


def require_csrf_header(request: Request) -> None:
    """
    Verify CSRF header on mutations.

    Apply to state-changing endpoints (POST, PATCH, DELETE).

    Raises:
        HTTPException 403: Missing or invalid CSRF header
    """
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'"
        )


def require_org_match(org_id: UUID, session) -> None:
    """Reject path org ids that differ from the session org (as not found)."""
    if session.org_id != org_id:
        raise HTTPException(status_code=404, detail="Organization not found")

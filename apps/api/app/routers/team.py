"""Team router - member roles and location settings."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_current_session, get_db, require_csrf_header
from app.core.errors import AccessDenied
from app.core.results import ActionResult
from app.schemas.auth import UserSession
from app.schemas.team import MemberUpdate
from app.services import membership_service

router = APIRouter(prefix="/team", tags=["team"])


@router.get("/members", response_model=ActionResult)
def list_members(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Active members of the caller's organization."""
    if not session.is_admin:
        raise AccessDenied("Only admins can manage team members")
    return ActionResult.ok("Team loaded", membership_service.list_members(db, session.org_id))


@router.patch(
    "/members/{user_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_csrf_header)],
)
def update_member(
    user_id: UUID,
    data: MemberUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Change a member's role and location settings."""
    member = membership_service.update_member_role(db, session, user_id, data)
    db.commit()
    return ActionResult.ok("Team member updated", member)

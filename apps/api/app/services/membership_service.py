"""Membership service - organization membership lookups and role changes."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import AccessDenied, NotFoundError, ValidationError
from app.db.enums import MEMBERSHIP_TO_PLATFORM_ROLE, PlatformRole, Role
from app.db.models import Location, Membership, User
from app.schemas.auth import UserSession
from app.schemas.team import MemberRead, MemberUpdate


logger = logging.getLogger(__name__)


def get_membership_for_org(db: Session, org_id: UUID, user_id: UUID) -> Membership | None:
    """Get membership scoped to an organization."""
    return (
        db.query(Membership)
        .filter(
            Membership.organization_id == org_id,
            Membership.user_id == user_id,
            Membership.is_active.is_(True),
        )
        .first()
    )


def to_member_read(user: User, membership: Membership) -> MemberRead:
    return MemberRead(
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        role=Role(membership.role),
        platform_role=user.platform_role,
        default_location_id=user.default_location_id,
        can_see_all_locations=user.can_see_all_locations,
    )


def list_members(db: Session, org_id: UUID) -> list[MemberRead]:
    rows = (
        db.query(User, Membership)
        .join(Membership, Membership.user_id == User.id)
        .filter(Membership.organization_id == org_id, Membership.is_active.is_(True))
        .order_by(User.display_name)
        .all()
    )
    return [to_member_read(user, membership) for user, membership in rows]


def update_member_role(
    db: Session,
    session: UserSession,
    user_id: UUID,
    data: MemberUpdate,
) -> MemberRead:
    """
    Update a member's role and location settings.

    The membership role and the user's platform role change together.
    Rejects edits to platform administrators and an admin demoting
    themselves to member.
    """
    if not session.is_admin:
        raise AccessDenied("Only admins can manage team members")

    membership = get_membership_for_org(db, session.org_id, user_id)
    if not membership:
        raise NotFoundError("User not found")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    if user.platform_role == PlatformRole.PLATFORM_ADMIN.value:
        raise AccessDenied("Platform administrators cannot be edited here")

    if data.role is not None:
        if user_id == session.user_id and data.role == Role.MEMBER:
            raise ValidationError("You cannot remove your own admin access")
        old_role = membership.role
        membership.role = data.role.value
        user.platform_role = MEMBERSHIP_TO_PLATFORM_ROLE[data.role].value
        if old_role != membership.role:
            # Outstanding sessions carry the old role
            user.token_version += 1
            logger.info(f"Role changed user={user_id} org={session.org_id} {old_role}->{membership.role}")

    fields_set = data.model_fields_set
    if "default_location_id" in fields_set:
        if data.default_location_id is not None:
            location = (
                db.query(Location)
                .filter(
                    Location.id == data.default_location_id,
                    Location.organization_id == session.org_id,
                )
                .first()
            )
            if not location:
                raise ValidationError("Location does not belong to this organization")
        user.default_location_id = data.default_location_id

    if data.can_see_all_locations is not None:
        user.can_see_all_locations = data.can_see_all_locations

    db.flush()
    return to_member_read(user, membership)

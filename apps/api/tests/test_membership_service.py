"""Tests for team member role and location management."""

import pytest

from app.core.errors import AccessDenied, NotFoundError, ValidationError
from app.db.enums import PlatformRole, Role
from app.db.models import Location
from app.schemas.team import MemberUpdate
from app.services import membership_service


def test_list_members_sorted_by_name(db, test_org, admin_user, staff_user):
    members = membership_service.list_members(db, test_org.id)

    assert [m.display_name for m in members] == ["Alice Admin", "Sam Staff"]
    assert members[0].role == Role.ADMIN


def test_promote_member_syncs_platform_role_and_revokes_sessions(db, admin_session, staff_user):
    old_version = staff_user.token_version

    member = membership_service.update_member_role(
        db, admin_session, staff_user.id, MemberUpdate(role=Role.ADMIN)
    )

    assert member.role == Role.ADMIN
    assert member.platform_role == PlatformRole.CHURCH_ADMIN.value
    assert staff_user.token_version == old_version + 1


def test_same_role_keeps_sessions(db, admin_session, staff_user):
    old_version = staff_user.token_version

    membership_service.update_member_role(db, admin_session, staff_user.id, MemberUpdate(role=Role.MEMBER))

    assert staff_user.token_version == old_version


def test_admin_cannot_demote_self(db, admin_session, admin_user):
    with pytest.raises(ValidationError):
        membership_service.update_member_role(
            db, admin_session, admin_user.id, MemberUpdate(role=Role.MEMBER)
        )


def test_staff_cannot_manage_members(db, staff_session, other_staff_user):
    with pytest.raises(AccessDenied):
        membership_service.update_member_role(
            db, staff_session, other_staff_user.id, MemberUpdate(role=Role.ADMIN)
        )


def test_platform_admin_cannot_be_edited(db, admin_session, staff_user):
    staff_user.platform_role = PlatformRole.PLATFORM_ADMIN.value
    db.flush()

    with pytest.raises(AccessDenied):
        membership_service.update_member_role(
            db, admin_session, staff_user.id, MemberUpdate(can_see_all_locations=True)
        )


def test_member_of_other_org_is_not_found(db, admin_session, other_org, member_factory):
    outsider = member_factory(Role.MEMBER, "Out Sider", org=other_org)

    with pytest.raises(NotFoundError):
        membership_service.update_member_role(db, admin_session, outsider.id, MemberUpdate())


def test_default_location_must_belong_to_org(db, admin_session, staff_user, north_campus, other_org):
    foreign = Location(organization_id=other_org.id, name="Elsewhere", slug="elsewhere")
    db.add(foreign)
    db.flush()

    with pytest.raises(ValidationError):
        membership_service.update_member_role(
            db, admin_session, staff_user.id, MemberUpdate(default_location_id=foreign.id)
        )

    member = membership_service.update_member_role(
        db, admin_session, staff_user.id, MemberUpdate(default_location_id=north_campus.id)
    )
    assert member.default_location_id == north_campus.id

"""
Location-based data scoping.

A DataScope is computed once per request from the user and membership and
answers "which locations may this actor see, and what may they do". Every
list/detail query over intake entities is filtered through it.

Two variants:
- PlatformScope: platform administrators (every location, full permissions)
- AgencyScope: organization members, resolved from membership role
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Query

from app.db.enums import PlatformRole, Role, ROLES_CAN_MANAGE_USERS


@dataclass(frozen=True)
class PlatformScope:
    can_see_all_locations: bool = True
    location_id: UUID | None = None
    can_edit_data: bool = True
    can_delete_data: bool = True
    can_export_data: bool = True
    can_manage_users: bool = True

    kind = "platform"


@dataclass(frozen=True)
class AgencyScope:
    can_see_all_locations: bool
    location_id: UUID | None
    can_edit_data: bool
    can_delete_data: bool
    can_export_data: bool
    can_manage_users: bool

    kind = "agency"


DataScope = Union[PlatformScope, AgencyScope]


def build_data_scope(
    *,
    role: Role,
    platform_role: str | None,
    default_location_id: UUID | None,
    can_see_all_locations: bool = False,
) -> DataScope:
    """
    Resolve the data scope for a member.

    - Owners see every location
    - Admins see every location only with can_see_all_locations, otherwise
      their default location
    - Members see their default location and cannot manage users or delete
    """
    if platform_role == PlatformRole.PLATFORM_ADMIN.value:
        return PlatformScope()

    if role == Role.OWNER:
        return AgencyScope(
            can_see_all_locations=True,
            location_id=None,
            can_edit_data=True,
            can_delete_data=True,
            can_export_data=True,
            can_manage_users=True,
        )

    if role == Role.ADMIN:
        return AgencyScope(
            can_see_all_locations=can_see_all_locations,
            location_id=None if can_see_all_locations else default_location_id,
            can_edit_data=True,
            can_delete_data=True,
            can_export_data=True,
            can_manage_users=role in ROLES_CAN_MANAGE_USERS,
        )

    return AgencyScope(
        can_see_all_locations=False,
        location_id=default_location_id,
        can_edit_data=True,
        can_delete_data=False,
        can_export_data=False,
        can_manage_users=False,
    )


def can_access_location(scope: DataScope, location_id: UUID | None) -> bool:
    """Check whether the scope permits a record at location_id (None = org-wide)."""
    if scope.can_see_all_locations or location_id is None:
        return True
    return scope.location_id == location_id


def apply_location_filter(query: Query, column, scope: DataScope) -> Query:
    """
    Restrict a query to the scope's location.

    Org-wide rows (NULL location) stay visible to everyone in the org.
    A restricted scope without a location only sees org-wide rows.
    """
    if scope.can_see_all_locations:
        return query
    if scope.location_id is None:
        return query.filter(column.is_(None))
    return query.filter(or_(column == scope.location_id, column.is_(None)))


def default_location_for_new_records(
    scope: DataScope,
    default_location_id: UUID | None = None,
) -> UUID | None:
    """
    Location stamped on records created under this scope.

    Restricted scopes always write to their own location; unrestricted
    scopes use the actor's default location (None = org-wide).
    """
    if scope.location_id is not None:
        return scope.location_id
    return default_location_id

"""Pydantic schemas for team member management."""

from uuid import UUID

from pydantic import BaseModel

from app.db.enums import Role


class MemberUpdate(BaseModel):
    """Change a member's role and/or default location (partial)."""
    role: Role | None = None
    default_location_id: UUID | None = None
    can_see_all_locations: bool | None = None


class MemberRead(BaseModel):
    user_id: UUID
    email: str
    display_name: str
    role: Role
    platform_role: str
    default_location_id: UUID | None
    can_see_all_locations: bool

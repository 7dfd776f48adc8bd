"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.core.data_scope import DataScope
from app.db.enums import Role


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: UUID  # user_id
    org_id: UUID
    role: str
    token_version: int


class UserSession(BaseModel):
    """
    Full session context for authenticated requests.

    This is returned by get_current_session (staff cookie) and
    get_intake_actor (staff cookie or phone scan cookie) and contains all
    information needed for authorization.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    user_id: UUID
    org_id: UUID
    org_slug: str = ""
    role: Role  # Validated enum
    email: str
    display_name: str
    default_location_id: UUID | None = None
    data_scope: DataScope
    via_scan_session: bool = False

    @property
    def is_admin(self) -> bool:
        """Admin-equivalent: owners, admins, and platform administrators."""
        return self.data_scope.can_manage_users

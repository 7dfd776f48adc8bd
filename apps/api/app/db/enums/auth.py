"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    Organization membership roles.

    - OWNER: Account owner, always sees every location
    - ADMIN: Church admin (multi-campus only with can_see_all_locations)
    - MEMBER: Staff, restricted to their default location
    """

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class PlatformRole(str, Enum):
    """Global user role kept in sync with the membership role."""

    PLATFORM_ADMIN = "platform_admin"
    CHURCH_OWNER = "church_owner"
    CHURCH_ADMIN = "church_admin"
    USER = "user"


# Membership role -> global user role
MEMBERSHIP_TO_PLATFORM_ROLE = {
    Role.OWNER: PlatformRole.CHURCH_OWNER,
    Role.ADMIN: PlatformRole.CHURCH_ADMIN,
    Role.MEMBER: PlatformRole.USER,
}

"""Enum definitions for application constants."""

from app.db.enums.auth import MEMBERSHIP_TO_PLATFORM_ROLE, PlatformRole, Role
from app.db.enums.intake import BatchStatus, VisitorCardStatus
from app.db.enums.prayer import (
    DISPLAY_CATEGORY_LABELS,
    DISPLAY_CATEGORY_ORDER,
    DisplayCategory,
    PrayerCategory,
    PrayerStatus,
)

# Membership roles with admin-equivalent permissions
ROLES_CAN_MANAGE_USERS = {Role.OWNER, Role.ADMIN}

__all__ = [
    "BatchStatus",
    "DISPLAY_CATEGORY_LABELS",
    "DISPLAY_CATEGORY_ORDER",
    "DisplayCategory",
    "MEMBERSHIP_TO_PLATFORM_ROLE",
    "PlatformRole",
    "PrayerCategory",
    "PrayerStatus",
    "ROLES_CAN_MANAGE_USERS",
    "Role",
    "VisitorCardStatus",
]

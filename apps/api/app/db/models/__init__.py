"""SQLAlchemy ORM models."""

from app.db.models.auth import Location, Membership, Organization, User, utc_now
from app.db.models.intake import IntakeBatch, ScanToken, VisitorCard
from app.db.models.prayer import PrayerRequest

__all__ = [
    "IntakeBatch",
    "Location",
    "Membership",
    "Organization",
    "PrayerRequest",
    "ScanToken",
    "User",
    "VisitorCard",
    "utc_now",
]

"""Pydantic schemas for API request/response models."""

from app.schemas.auth import TokenPayload, UserSession
from app.schemas.intake import (
    BatchListItem,
    BatchStats,
    BatchSummary,
    CardValidationResult,
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    ExistingCardSummary,
    ExtractedRecord,
    ValidationIssue,
)
from app.schemas.prayer_request import (
    PrayerRequestCreate,
    PrayerRequestRead,
    PrayerRequestStats,
    PrayerRequestUpdate,
    PrayerSession,
)
from app.schemas.scan import ScanSessionRead, ScanTokenIssued
from app.schemas.team import MemberRead, MemberUpdate
from app.schemas.visitor_card import (
    BatchDetail,
    VisitorCardCreate,
    VisitorCardRead,
    VisitorCardUpdate,
)

__all__ = [
    # Auth
    "TokenPayload",
    "UserSession",
    # Intake
    "BatchDetail",
    "BatchListItem",
    "BatchStats",
    "BatchSummary",
    "CardValidationResult",
    "DuplicateCheckRequest",
    "DuplicateCheckResponse",
    "ExistingCardSummary",
    "ExtractedRecord",
    "ValidationIssue",
    "VisitorCardCreate",
    "VisitorCardRead",
    "VisitorCardUpdate",
    # Prayer
    "PrayerRequestCreate",
    "PrayerRequestRead",
    "PrayerRequestStats",
    "PrayerRequestUpdate",
    "PrayerSession",
    # Scan
    "ScanSessionRead",
    "ScanTokenIssued",
    # Team
    "MemberRead",
    "MemberUpdate",
]

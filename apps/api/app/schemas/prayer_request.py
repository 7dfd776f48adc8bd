"""Pydantic schemas for prayer requests."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.db.enums import DisplayCategory, PrayerCategory, PrayerStatus


class PrayerRequestCreate(BaseModel):
    """Manual prayer request entry."""
    request: str = Field(..., min_length=1, max_length=5000)
    category: PrayerCategory | None = None
    is_private: bool = False
    is_urgent: bool = False
    location_id: UUID | None = None
    submitted_by: str | None = Field(None, max_length=255)
    submitter_email: str | None = Field(None, max_length=255)
    submitter_phone: str | None = Field(None, max_length=50)


class PrayerRequestUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""
    request: str | None = Field(None, min_length=1, max_length=5000)
    category: PrayerCategory | None = None
    status: PrayerStatus | None = None
    is_urgent: bool | None = None
    location_id: UUID | None = None
    submitted_by: str | None = Field(None, max_length=255)
    submitter_email: str | None = Field(None, max_length=255)
    submitter_phone: str | None = Field(None, max_length=50)
    follow_up_date: datetime | None = None
    answered_notes: str | None = Field(None, max_length=5000)


class PrayerAssign(BaseModel):
    assignee_id: UUID


class PrayerPrivacyUpdate(BaseModel):
    is_private: bool


class PrayerMarkAnswered(BaseModel):
    answered_notes: str | None = Field(None, max_length=5000)


class PrayerRequestRead(BaseModel):
    """
    Prayer request as shown to a viewer.

    Submitter fields are None on private items when the viewer is neither
    an admin nor the assignee.
    """
    id: UUID
    organization_id: UUID
    location_id: UUID | None
    visitor_card_id: UUID | None
    request: str
    category: str | None
    display_category: DisplayCategory
    status: PrayerStatus
    is_private: bool
    is_urgent: bool
    submitted_by: str | None
    submitter_email: str | None
    submitter_phone: str | None
    assigned_to_user_id: UUID | None
    assigned_to_name: str | None
    follow_up_date: datetime | None
    answered_date: datetime | None
    answered_notes: str | None
    created_at: datetime
    updated_at: datetime
    is_redacted: bool = False


class PrayerRequestStats(BaseModel):
    total: int
    pending: int
    assigned: int
    praying: int
    answered: int
    private: int
    urgent: int


class PrayerSessionStats(BaseModel):
    total: int
    critical: int
    answered: int
    remaining: int


class PrayerSessionGroup(BaseModel):
    category: DisplayCategory
    label: str
    items: list[PrayerRequestRead]


class PrayerSession(BaseModel):
    """Prayer requests bucketed for a prayer session, critical first, private last."""
    taxonomy_version: str
    stats: PrayerSessionStats
    groups: list[PrayerSessionGroup]

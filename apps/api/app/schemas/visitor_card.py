"""Pydantic schemas for visitor (connect) cards."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.intake import ExtractedRecord, ValidationIssue


class VisitorCardCreate(BaseModel):
    """Persist an extracted card into the active batch."""
    image_key: str | None = Field(None, max_length=500)
    extracted: ExtractedRecord
    allow_duplicate: bool = False


class VisitorCardUpdate(BaseModel):
    """Staff review edits (partial)."""
    name: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = None
    prayer_request: str | None = None
    visit_status: str | None = Field(None, max_length=100)
    interests: list[str] | None = None
    keywords: list[str] | None = None
    age_group: str | None = Field(None, max_length=100)
    family_info: str | None = None
    additional_notes: str | None = None
    is_private: bool | None = None
    is_urgent: bool | None = None


class VisitorCardRead(BaseModel):
    id: UUID
    organization_id: UUID
    location_id: UUID | None
    batch_id: UUID | None
    image_key: str | None
    name: str | None
    email: str | None
    phone: str | None
    address: str | None
    prayer_request: str | None
    visit_status: str | None
    interests: list[str]
    keywords: list[str]
    age_group: str | None
    family_info: str | None
    additional_notes: str | None
    validation_issues: list[ValidationIssue] | None
    is_private: bool
    is_urgent: bool
    status: str
    assigned_to_user_id: UUID | None
    assigned_to_name: str | None
    scanned_by_user_id: UUID | None
    scanned_at: datetime
    reviewed_at: datetime | None

    model_config = {"from_attributes": True}


class BatchDetail(BaseModel):
    id: UUID
    name: str
    status: str
    location_id: UUID | None
    card_count: int
    created_at: datetime
    cards: list[VisitorCardRead]

    model_config = {"from_attributes": True}


class CardSaveResponse(BaseModel):
    card: VisitorCardRead
    prayer_request_id: UUID | None = None
    batch_id: UUID | None = None

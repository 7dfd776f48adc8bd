"""Pydantic schemas for connect card intake (extraction, batches, duplicates)."""

import json
from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


# =============================================================================
# Extraction (untrusted vision output → typed record)
# =============================================================================

def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _bool_or_none(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _str_list_or_none(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def _notes_or_none(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


LooseStr = Annotated[str | None, BeforeValidator(_str_or_none)]
LooseBool = Annotated[bool | None, BeforeValidator(_bool_or_none)]
LooseStrList = Annotated[list[str] | None, BeforeValidator(_str_list_or_none)]
LooseNotes = Annotated[str | None, BeforeValidator(_notes_or_none)]


class ExtractedRecord(BaseModel):
    """
    Connect card fields as returned by vision extraction.

    Every field is independently shape-checked: a value of the wrong type
    becomes None instead of failing the whole record. Unknown keys are ignored.
    """
    model_config = ConfigDict(extra="ignore")

    name: LooseStr = None
    email: LooseStr = None
    phone: LooseStr = None
    prayer_request: LooseStr = None
    visit_status: LooseStr = None
    first_time_visitor: LooseBool = None
    interests: LooseStrList = None
    keywords: LooseStrList = None
    address: LooseStr = None
    age_group: LooseStr = None
    family_info: LooseStr = None
    additional_notes: LooseNotes = None


class ValidationIssue(BaseModel):
    field: str
    message: str
    severity: Literal["error", "warning"] = "error"


class CardValidationResult(BaseModel):
    """Data-quality verdict on an extracted card."""
    is_valid: bool
    issues: list[ValidationIssue]
    needs_review: bool


# =============================================================================
# Duplicates
# =============================================================================

class DuplicateCheckRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    exclude_id: UUID | None = None


class ExistingCardSummary(BaseModel):
    id: UUID
    name: str | None
    email: str | None
    phone: str | None
    scanned_at: datetime
    status: str

    model_config = {"from_attributes": True}


class DuplicateCheckResponse(BaseModel):
    is_duplicate: bool
    existing_card: ExistingCardSummary | None = None


# =============================================================================
# Batches
# =============================================================================

class BatchSummary(BaseModel):
    """Active batch handed to the scanner UI."""
    id: UUID
    name: str
    location_id: UUID | None
    card_count: int
    status: str

    model_config = {"from_attributes": True}


class BatchListItem(BaseModel):
    """Batch row for the review queue."""
    id: UUID
    name: str
    status: str
    location_id: UUID | None
    location_name: str | None = None
    card_count: int
    new_card_count: int = 0
    created_by_user_id: UUID
    created_at: datetime
    updated_at: datetime


class BatchStats(BaseModel):
    pending: int
    completed: int
    total: int


class StartNewBatchResponse(BaseModel):
    completed_batch_id: UUID | None
    batch: BatchSummary


# =============================================================================
# Extraction endpoint
# =============================================================================

class ExtractRequest(BaseModel):
    """Base64 image payload for vision extraction."""
    image_base64: str = Field(..., min_length=1)
    media_type: Literal["image/jpeg", "image/png", "image/webp", "image/gif"] = "image/jpeg"


class ExtractResponse(BaseModel):
    extracted: ExtractedRecord
    validation: CardValidationResult
    summary: str
    duplicate: DuplicateCheckResponse

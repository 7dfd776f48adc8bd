"""Pydantic schemas for the phone scan (QR code) flow."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ScanTokenIssued(BaseModel):
    token: str
    scan_url: str
    expires_at: datetime


class ScanSessionStart(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)


class ScanSessionRead(BaseModel):
    user_id: UUID
    organization_id: UUID
    slug: str
    expires_at: datetime


class ScanCleanupResult(BaseModel):
    deleted: int

"""SQLAlchemy ORM models for prayer request triage."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.enums import PrayerStatus
from app.db.models.auth import utc_now


class PrayerRequest(Base):
    """
    Prayer request routed from a connect card or entered by staff.

    Permissions:
    - Public: visible to all staff within their location scope
    - Private: visible/editable only by admins and the current assignee

    assigned_to_name caches the assignee's display name for list renders.
    It is recomputed on every assignment and is never used for permission
    checks.
    """

    __tablename__ = "prayer_requests"
    __table_args__ = (
        Index("idx_prayer_requests_org_status", "organization_id", "status"),
        Index("idx_prayer_requests_org_created", "organization_id", "created_at"),
        Index("idx_prayer_requests_org_assignee", "organization_id", "assigned_to_user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    location_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True,
    )
    visitor_card_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("visitor_cards.id", ondelete="SET NULL"),
        nullable=True,
    )

    request: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=PrayerStatus.PENDING.value, nullable=False
    )
    is_private: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    is_urgent: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )

    # Submitter (redacted on private items for non-admin viewers)
    submitted_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    submitter_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    submitter_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    assigned_to_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_to_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    follow_up_date: Mapped[datetime | None] = mapped_column(nullable=True)
    answered_date: Mapped[datetime | None] = mapped_column(nullable=True)
    answered_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False
    )

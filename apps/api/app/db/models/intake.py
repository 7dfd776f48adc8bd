"""SQLAlchemy ORM models for connect card intake."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    JSON,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import BatchStatus, VisitorCardStatus
from app.db.models.auth import utc_now

if TYPE_CHECKING:
    from app.db.models.auth import Location


class IntakeBatch(Base):
    """
    Cards scanned in one working session (collector + day + location).

    At most one PENDING batch exists per (user, organization); the partial
    unique index below enforces it under concurrent first scans.
    """

    __tablename__ = "intake_batches"
    __table_args__ = (
        Index(
            "uq_intake_batches_active",
            "created_by_user_id",
            "organization_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
        Index("idx_intake_batches_org_created", "organization_id", "created_at"),
        Index("idx_intake_batches_org_status", "organization_id", "status"),
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
    created_by_user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=BatchStatus.PENDING.value, nullable=False
    )
    card_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False
    )

    # No cascade: cards are deleted explicitly inside the batch delete transaction
    cards: Mapped[list["VisitorCard"]] = relationship(
        back_populates="batch",
        order_by="VisitorCard.created_at",
        passive_deletes=True,
    )
    location: Mapped["Location | None"] = relationship()


class VisitorCard(Base):
    """
    One scanned connect card.

    Created from normalized vision output; mutated by staff review.
    assigned_to_name is a display cache recomputed on every assignment change.
    """

    __tablename__ = "visitor_cards"
    __table_args__ = (
        Index("idx_visitor_cards_org_name", "organization_id", "name_normalized"),
        Index("idx_visitor_cards_org_scanned", "organization_id", "scanned_at"),
        Index("idx_visitor_cards_batch", "batch_id"),
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
    batch_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("intake_batches.id"),
        nullable=True,
    )
    image_key: Mapped[str | None] = mapped_column(String(500), nullable=True)
    extracted_data: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)

    # Identity
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name_normalized: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Card content
    prayer_request: Mapped[str | None] = mapped_column(Text, nullable=True)
    visit_status: Mapped[str | None] = mapped_column(String(100), nullable=True)
    interests: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    keywords: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    age_group: Mapped[str | None] = mapped_column(String(100), nullable=True)
    family_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    additional_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    validation_issues: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)

    is_private: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    is_urgent: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=VisitorCardStatus.NEW.value, nullable=False
    )

    # Assignment (name is a denormalized display cache)
    assigned_to_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_to_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    scanned_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    scanned_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    followed_up_at: Mapped[datetime | None] = mapped_column(nullable=True)
    answered_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False
    )

    batch: Mapped["IntakeBatch | None"] = relationship(back_populates="cards")


class ScanToken(Base):
    """
    One-time QR code token that bootstraps a phone scan session.

    ISSUED -> CONSUMED (used_at set) or ISSUED -> EXPIRED (row deleted).
    """

    __tablename__ = "scan_tokens"
    __table_args__ = (
        Index("idx_scan_tokens_user_org", "user_id", "organization_id"),
        Index("idx_scan_tokens_expires", "expires_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )

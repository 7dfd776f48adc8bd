"""
Connect card batch lifecycle.

A batch groups the cards one collector scans in a working session. Each
(user, organization) pair has at most one PENDING ("active") batch; it is
found or created lazily on the first scan and completed explicitly.

Transactions: functions flush, callers commit. Image cleanup after a delete
must run only after the commit succeeds.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.data_scope import DataScope, apply_location_filter, can_access_location
from app.core.errors import ConflictError, NotFoundError
from app.db.enums import BatchStatus, VisitorCardStatus
from app.db.models import IntakeBatch, Organization, User, VisitorCard
from app.schemas.intake import BatchListItem, BatchStats, BatchSummary

logger = logging.getLogger(__name__)

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class BatchNotFoundError(NotFoundError):
    """Batch absent or in another organization."""

    def __init__(self, message: str = "Batch not found", **kwargs):
        super().__init__(message, **kwargs)


class BatchDeleteBlockedError(ConflictError):
    """Completed batch still holds cards."""

    def __init__(
        self,
        message: str = "Cannot delete completed batch with cards. Archive it instead.",
        **kwargs,
    ):
        super().__init__(message, **kwargs)


@dataclass
class BatchDeletion:
    """What a batch delete removed (image keys feed post-commit cleanup)."""

    batch_id: UUID
    deleted_card_ids: list[UUID] = field(default_factory=list)
    image_keys: list[str] = field(default_factory=list)


def format_batch_name(location_name: str, when: datetime) -> str:
    """'{Location} - {Mon D, YYYY}', e.g. 'Main Campus - Mar 9, 2025'."""
    month = MONTH_ABBREVIATIONS[when.month - 1]
    return f"{location_name} - {month} {when.day}, {when.year}"


def to_summary(batch: IntakeBatch) -> BatchSummary:
    return BatchSummary.model_validate(batch)


def _find_active_batch(db: Session, user_id: UUID, org_id: UUID) -> IntakeBatch | None:
    return (
        db.query(IntakeBatch)
        .filter(
            IntakeBatch.created_by_user_id == user_id,
            IntakeBatch.organization_id == org_id,
            IntakeBatch.status == BatchStatus.PENDING.value,
        )
        .first()
    )


def get_batch(db: Session, org_id: UUID, batch_id: UUID) -> IntakeBatch:
    """Load a batch in the caller's organization or raise BatchNotFoundError."""
    batch = (
        db.query(IntakeBatch)
        .filter(IntakeBatch.id == batch_id, IntakeBatch.organization_id == org_id)
        .first()
    )
    if not batch:
        raise BatchNotFoundError()
    return batch


# =============================================================================
# Lifecycle
# =============================================================================

def get_or_create_active_batch(
    db: Session,
    user_id: UUID,
    org_id: UUID,
    now: datetime | None = None,
) -> IntakeBatch:
    """
    Return the user's PENDING batch in this org, creating it if needed.

    Concurrent first scans race on the uq_intake_batches_active partial
    index; the loser's insert fails inside a SAVEPOINT and it reads the
    winner's batch instead.
    """
    existing = _find_active_batch(db, user_id, org_id)
    if existing:
        return existing

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    location = user.default_location
    if location is not None and location.organization_id != org_id:
        location = None

    if location is not None:
        label = location.name
    else:
        org = db.query(Organization).filter(Organization.id == org_id).first()
        if not org:
            raise NotFoundError("Organization not found")
        label = org.name

    batch = IntakeBatch(
        organization_id=org_id,
        location_id=location.id if location else None,
        created_by_user_id=user_id,
        name=format_batch_name(label, now or datetime.now(timezone.utc)),
        status=BatchStatus.PENDING.value,
        card_count=0,
    )
    try:
        with db.begin_nested():
            db.add(batch)
            db.flush()
    except IntegrityError:
        logger.info(f"Active batch race lost user={user_id} org={org_id}; reusing winner")
        winner = _find_active_batch(db, user_id, org_id)
        if winner is None:
            raise
        return winner

    logger.info(f"Created intake batch batch={batch.id} org={org_id}")
    return batch


def complete_batch(db: Session, org_id: UUID, batch_id: UUID) -> IntakeBatch:
    """Mark a batch COMPLETED. Completing a completed batch is a no-op."""
    batch = get_batch(db, org_id, batch_id)
    if batch.status != BatchStatus.COMPLETED.value:
        batch.status = BatchStatus.COMPLETED.value
        db.flush()
    return batch


def start_new_batch(
    db: Session,
    user_id: UUID,
    org_id: UUID,
    current_batch_id: UUID | None = None,
) -> tuple[UUID | None, IntakeBatch]:
    """
    Complete the current batch (if any) and get-or-create a fresh one.

    Returns (completed batch id, new active batch).
    """
    completed_id = None
    if current_batch_id is not None:
        completed_id = complete_batch(db, org_id, current_batch_id).id
    return completed_id, get_or_create_active_batch(db, user_id, org_id)


def delete_batch(db: Session, org_id: UUID, batch_id: UUID) -> BatchDeletion:
    """
    Delete a batch and its cards in one unit of work.

    Blocked when the batch is COMPLETED and still holds cards.
    """
    batch = get_batch(db, org_id, batch_id)
    cards = db.query(VisitorCard.id, VisitorCard.image_key).filter(
        VisitorCard.batch_id == batch.id
    ).all()

    if cards and batch.status == BatchStatus.COMPLETED.value:
        raise BatchDeleteBlockedError(data={"card_count": len(cards)})

    deletion = BatchDeletion(
        batch_id=batch.id,
        deleted_card_ids=[card_id for card_id, _ in cards],
        image_keys=[key for _, key in cards if key],
    )

    if cards:
        db.query(VisitorCard).filter(VisitorCard.batch_id == batch.id).delete(
            synchronize_session="fetch"
        )
    # Cards are gone; keep the ORM from nullifying a stale collection
    db.expire(batch, ["cards"])
    db.delete(batch)
    db.flush()

    logger.info(f"Deleted intake batch batch={batch_id} cards={len(cards)}")
    return deletion


def increment_card_count(db: Session, batch: IntakeBatch) -> None:
    """Atomically bump the cached card count."""
    db.execute(
        update(IntakeBatch)
        .where(IntakeBatch.id == batch.id)
        .values(card_count=IntakeBatch.card_count + 1)
    )
    db.refresh(batch)


# =============================================================================
# Review side
# =============================================================================

def list_batches_for_review(
    db: Session,
    org_id: UUID,
    scope: DataScope,
) -> list[BatchListItem]:
    """Location-scoped batches, newest first, with counts of cards awaiting review."""
    new_counts = dict(
        db.query(VisitorCard.batch_id, func.count(VisitorCard.id))
        .filter(
            VisitorCard.organization_id == org_id,
            VisitorCard.status == VisitorCardStatus.NEW.value,
        )
        .group_by(VisitorCard.batch_id)
        .all()
    )

    query = (
        db.query(IntakeBatch)
        .options(selectinload(IntakeBatch.location))
        .filter(IntakeBatch.organization_id == org_id)
    )
    query = apply_location_filter(query, IntakeBatch.location_id, scope)
    batches = query.order_by(IntakeBatch.created_at.desc()).all()

    return [
        BatchListItem(
            id=b.id,
            name=b.name,
            status=b.status,
            location_id=b.location_id,
            location_name=b.location.name if b.location else None,
            card_count=b.card_count,
            new_card_count=new_counts.get(b.id, 0),
            created_by_user_id=b.created_by_user_id,
            created_at=b.created_at,
            updated_at=b.updated_at,
        )
        for b in batches
    ]


def get_batch_detail(
    db: Session,
    org_id: UUID,
    batch_id: UUID,
    scope: DataScope,
) -> IntakeBatch:
    """Batch with its cards; batches outside the scope's location read as not found."""
    batch = get_batch(db, org_id, batch_id)
    if not can_access_location(scope, batch.location_id):
        raise BatchNotFoundError()
    return batch


def get_batch_stats(db: Session, org_id: UUID, scope: DataScope) -> BatchStats:
    query = db.query(IntakeBatch.status, func.count(IntakeBatch.id)).filter(
        IntakeBatch.organization_id == org_id
    )
    query = apply_location_filter(query, IntakeBatch.location_id, scope)
    counts = dict(query.group_by(IntakeBatch.status).all())

    pending = counts.get(BatchStatus.PENDING.value, 0)
    completed = counts.get(BatchStatus.COMPLETED.value, 0)
    return BatchStats(pending=pending, completed=completed, total=pending + completed)

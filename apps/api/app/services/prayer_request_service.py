"""
Prayer request service: creation, assignment, triage views.

Visibility rules:
- Everything is scoped to the actor's organization and location scope
- Private requests are visible/editable only by admins and the current
  assignee; staff may only assign a private request to themselves
- assigned_to_name is a display cache rewritten on every assignment;
  permission checks always use assigned_to_user_id

Requests outside the organization read as not found; requests in the
organization but outside the actor's location scope are access denied.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from app.core.data_scope import (
    apply_location_filter,
    can_access_location,
    default_location_for_new_records,
)
from app.core.errors import AccessDenied, NotFoundError
from app.core.prayer_taxonomy import PrayerTaxonomy, get_taxonomy
from app.db.enums import (
    DISPLAY_CATEGORY_LABELS,
    PrayerStatus,
)
from app.db.models import Location, Membership, PrayerRequest, User, VisitorCard
from app.schemas.auth import UserSession
from app.schemas.prayer_request import (
    PrayerRequestCreate,
    PrayerRequestRead,
    PrayerRequestStats,
    PrayerRequestUpdate,
    PrayerSession,
    PrayerSessionGroup,
    PrayerSessionStats,
)
from app.services import prayer_priority
from app.utils.pagination import Page, PaginationParams, paginate_query

logger = logging.getLogger(__name__)


class PrayerRequestNotFoundError(NotFoundError):
    def __init__(self, message: str = "Prayer request not found", **kwargs):
        super().__init__(message, **kwargs)


class AssigneeNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found", **kwargs):
        super().__init__(message, **kwargs)


class PrayerAccessDenied(AccessDenied):
    def __init__(self, message: str = "Access denied", **kwargs):
        super().__init__(message, **kwargs)


# Sort: urgent first, then status (PENDING first), then newest
_STATUS_SORT = {
    PrayerStatus.PENDING.value: 0,
    PrayerStatus.ASSIGNED.value: 1,
    PrayerStatus.PRAYING.value: 2,
    PrayerStatus.ANSWERED.value: 3,
}

# Columns that cannot hold NULL; an explicit null in a PATCH leaves them as-is
_NON_NULLABLE_FIELDS = frozenset({"request", "status", "is_urgent"})


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Access helpers
# =============================================================================

def _get_in_org(db: Session, org_id: UUID, prayer_id: UUID) -> PrayerRequest:
    prayer = (
        db.query(PrayerRequest)
        .filter(PrayerRequest.id == prayer_id, PrayerRequest.organization_id == org_id)
        .first()
    )
    if not prayer:
        raise PrayerRequestNotFoundError()
    return prayer


def _load_for_action(db: Session, session: UserSession, prayer_id: UUID) -> PrayerRequest:
    """Org check (not found) then location check (access denied)."""
    prayer = _get_in_org(db, session.org_id, prayer_id)
    if prayer.location_id and not can_access_location(session.data_scope, prayer.location_id):
        raise PrayerAccessDenied()
    return prayer


def _is_assignee(session: UserSession, prayer: PrayerRequest) -> bool:
    return prayer.assigned_to_user_id is not None and prayer.assigned_to_user_id == session.user_id


def can_view_private_details(session: UserSession, prayer: PrayerRequest) -> bool:
    return session.is_admin or _is_assignee(session, prayer)


def _validate_location(db: Session, session: UserSession, location_id: UUID) -> None:
    location = (
        db.query(Location)
        .filter(Location.id == location_id, Location.organization_id == session.org_id)
        .first()
    )
    if not location:
        raise NotFoundError("Location not found")
    if not can_access_location(session.data_scope, location_id):
        raise PrayerAccessDenied()


def _find_org_member(db: Session, org_id: UUID, user_id: UUID) -> User | None:
    return (
        db.query(User)
        .join(Membership, Membership.user_id == User.id)
        .filter(
            User.id == user_id,
            User.is_active.is_(True),
            Membership.organization_id == org_id,
            Membership.is_active.is_(True),
        )
        .first()
    )


def to_read(
    prayer: PrayerRequest,
    session: UserSession,
    taxonomy: PrayerTaxonomy | None = None,
) -> PrayerRequestRead:
    """Serialize for a viewer, hiding submitter identity on private items they may not see."""
    redact = prayer.is_private and not can_view_private_details(session, prayer)
    return PrayerRequestRead(
        id=prayer.id,
        organization_id=prayer.organization_id,
        location_id=prayer.location_id,
        visitor_card_id=None if redact else prayer.visitor_card_id,
        request=prayer.request,
        category=prayer.category,
        display_category=prayer_priority.get_display_category(prayer, taxonomy),
        status=PrayerStatus(prayer.status),
        is_private=prayer.is_private,
        is_urgent=prayer.is_urgent,
        submitted_by=None if redact else prayer.submitted_by,
        submitter_email=None if redact else prayer.submitter_email,
        submitter_phone=None if redact else prayer.submitter_phone,
        assigned_to_user_id=prayer.assigned_to_user_id,
        assigned_to_name=prayer.assigned_to_name,
        follow_up_date=prayer.follow_up_date,
        answered_date=prayer.answered_date,
        answered_notes=None if redact else prayer.answered_notes,
        created_at=prayer.created_at,
        updated_at=prayer.updated_at,
        is_redacted=redact,
    )


# =============================================================================
# Create
# =============================================================================

def create_prayer_request(
    db: Session,
    session: UserSession,
    data: PrayerRequestCreate,
    taxonomy: PrayerTaxonomy | None = None,
) -> PrayerRequest:
    """
    Manual entry. Privacy, category and urgency are suggested from the text
    when the caller did not set them.
    """
    taxonomy = taxonomy or get_taxonomy()

    if data.location_id:
        _validate_location(db, session, data.location_id)
        location_id = data.location_id
    else:
        location_id = default_location_for_new_records(
            session.data_scope, session.default_location_id
        )

    prayer = PrayerRequest(
        organization_id=session.org_id,
        location_id=location_id,
        request=data.request.strip(),
        category=(
            data.category.value if data.category
            else prayer_priority.detect_category(data.request, taxonomy)
        ),
        is_private=data.is_private or prayer_priority.has_sensitive_keywords(data.request, taxonomy),
        is_urgent=data.is_urgent or prayer_priority.is_critical(data.request, taxonomy),
        submitted_by=data.submitted_by,
        submitter_email=data.submitter_email,
        submitter_phone=data.submitter_phone,
        status=PrayerStatus.PENDING.value,
        created_by_user_id=session.user_id,
    )
    db.add(prayer)
    db.flush()
    logger.info(f"Created prayer request id={prayer.id} org={session.org_id}")
    return prayer


def create_from_card(
    db: Session,
    card: VisitorCard,
    created_by_user_id: UUID | None,
    taxonomy: PrayerTaxonomy | None = None,
) -> PrayerRequest | None:
    """Route a card's prayer text into triage. Returns None when the card has none."""
    text = (card.prayer_request or "").strip()
    if not text:
        return None
    taxonomy = taxonomy or get_taxonomy()

    prayer = PrayerRequest(
        organization_id=card.organization_id,
        location_id=card.location_id,
        visitor_card_id=card.id,
        request=text,
        category=prayer_priority.detect_category(text, taxonomy),
        is_private=card.is_private or prayer_priority.has_sensitive_keywords(text, taxonomy),
        is_urgent=card.is_urgent or prayer_priority.is_critical(text, taxonomy),
        submitted_by=card.name,
        submitter_email=card.email,
        submitter_phone=card.phone,
        status=PrayerStatus.PENDING.value,
        created_by_user_id=created_by_user_id,
    )
    db.add(prayer)
    db.flush()
    return prayer


# =============================================================================
# Mutations
# =============================================================================

def assign(
    db: Session,
    session: UserSession,
    prayer_id: UUID,
    assignee_id: UUID,
) -> PrayerRequest:
    """
    Assign a prayer request.

    Checks in order: exists in org, location scope, private-item rule
    (non-admins may only assign to themselves), assignee in org.
    """
    prayer = _load_for_action(db, session, prayer_id)

    if prayer.is_private and not session.is_admin and assignee_id != session.user_id:
        raise PrayerAccessDenied()

    assignee = _find_org_member(db, session.org_id, assignee_id)
    if not assignee:
        raise AssigneeNotFoundError()

    prayer.assigned_to_user_id = assignee.id
    prayer.assigned_to_name = assignee.display_name
    prayer.status = PrayerStatus.ASSIGNED.value
    db.flush()

    logger.info(f"Assigned prayer request id={prayer.id} assignee={assignee.id}")
    return prayer


def update_prayer_request(
    db: Session,
    session: UserSession,
    prayer_id: UUID,
    data: PrayerRequestUpdate,
) -> PrayerRequest:
    """Partial update. Private items: admins or the current assignee only."""
    prayer = _load_for_action(db, session, prayer_id)

    if prayer.is_private and not can_view_private_details(session, prayer):
        raise PrayerAccessDenied()

    fields_set = data.model_fields_set
    if "location_id" in fields_set and data.location_id is not None:
        _validate_location(db, session, data.location_id)

    for field in fields_set:
        value = getattr(data, field)
        if value is None and field in _NON_NULLABLE_FIELDS:
            continue
        if field in ("category", "status") and value is not None:
            value = value.value
        setattr(prayer, field, value)

    if "status" in fields_set:
        if prayer.status == PrayerStatus.ANSWERED.value:
            if not prayer.answered_date:
                prayer.answered_date = _utc_now()
        else:
            prayer.answered_date = None

    db.flush()
    return prayer


def mark_answered(
    db: Session,
    session: UserSession,
    prayer_id: UUID,
    answered_notes: str | None = None,
) -> PrayerRequest:
    """Admins or the current assignee."""
    prayer = _load_for_action(db, session, prayer_id)

    if not can_view_private_details(session, prayer):
        raise PrayerAccessDenied()

    prayer.status = PrayerStatus.ANSWERED.value
    prayer.answered_date = _utc_now()
    if answered_notes is not None:
        prayer.answered_notes = answered_notes
    db.flush()
    return prayer


def set_privacy(
    db: Session,
    session: UserSession,
    prayer_id: UUID,
    is_private: bool,
) -> PrayerRequest:
    """Admins only."""
    if not session.is_admin:
        raise AccessDenied("You don't have permission to change privacy settings")
    prayer = _load_for_action(db, session, prayer_id)
    prayer.is_private = is_private
    db.flush()
    logger.info(f"Prayer request privacy changed id={prayer.id} private={is_private}")
    return prayer


def delete_prayer_request(db: Session, session: UserSession, prayer_id: UUID) -> None:
    """Admins only."""
    if not session.is_admin:
        raise AccessDenied("You don't have permission to delete prayer requests")
    prayer = _load_for_action(db, session, prayer_id)
    db.delete(prayer)
    db.flush()
    logger.info(f"Deleted prayer request id={prayer_id}")


# =============================================================================
# Reads
# =============================================================================

def _scoped_query(db: Session, session: UserSession):
    query = db.query(PrayerRequest).filter(PrayerRequest.organization_id == session.org_id)
    return apply_location_filter(query, PrayerRequest.location_id, session.data_scope)


def _privacy_filter(query, session: UserSession):
    """Staff see public requests and the private ones assigned to them."""
    if session.is_admin:
        return query
    return query.filter(
        or_(
            PrayerRequest.is_private.is_(False),
            PrayerRequest.assigned_to_user_id == session.user_id,
        )
    )


def list_prayer_requests(
    db: Session,
    session: UserSession,
    pagination: PaginationParams,
    *,
    status: PrayerStatus | None = None,
    category: str | None = None,
    assigned_to_user_id: UUID | None = None,
    is_private: bool | None = None,
    search: str | None = None,
    taxonomy: PrayerTaxonomy | None = None,
) -> Page[PrayerRequestRead]:
    query = _privacy_filter(_scoped_query(db, session), session)

    if status:
        query = query.filter(PrayerRequest.status == status.value)
    if category:
        query = query.filter(PrayerRequest.category == category)
    if assigned_to_user_id:
        query = query.filter(PrayerRequest.assigned_to_user_id == assigned_to_user_id)
    if is_private is not None:
        query = query.filter(PrayerRequest.is_private.is_(is_private))
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(PrayerRequest.request).like(pattern),
                func.lower(PrayerRequest.submitted_by).like(pattern),
            )
        )

    status_rank = _status_rank_expression()
    query = query.order_by(
        PrayerRequest.is_urgent.desc(),
        status_rank.asc(),
        PrayerRequest.created_at.desc(),
    )
    items, total = paginate_query(query, pagination)
    taxonomy = taxonomy or get_taxonomy()
    return Page[PrayerRequestRead].build(
        [to_read(p, session, taxonomy) for p in items], total, pagination
    )


def _status_rank_expression():
    return case(
        {status: rank for status, rank in _STATUS_SORT.items()},
        value=PrayerRequest.status,
        else_=len(_STATUS_SORT),
    )


def get_prayer_request(db: Session, session: UserSession, prayer_id: UUID) -> PrayerRequestRead:
    """Private requests the viewer may not see read as not found."""
    prayer = _get_in_org(db, session.org_id, prayer_id)
    if prayer.location_id and not can_access_location(session.data_scope, prayer.location_id):
        raise PrayerRequestNotFoundError()
    if prayer.is_private and not can_view_private_details(session, prayer):
        raise PrayerRequestNotFoundError()
    return to_read(prayer, session)


def get_prayer_request_stats(db: Session, session: UserSession) -> PrayerRequestStats:
    query = _privacy_filter(_scoped_query(db, session), session)
    status_counts = dict(
        query.with_entities(PrayerRequest.status, func.count(PrayerRequest.id))
        .group_by(PrayerRequest.status)
        .all()
    )
    private = query.filter(PrayerRequest.is_private.is_(True)).count()
    urgent = query.filter(PrayerRequest.is_urgent.is_(True)).count()

    return PrayerRequestStats(
        total=sum(status_counts.values()),
        pending=status_counts.get(PrayerStatus.PENDING.value, 0),
        assigned=status_counts.get(PrayerStatus.ASSIGNED.value, 0),
        praying=status_counts.get(PrayerStatus.PRAYING.value, 0),
        answered=status_counts.get(PrayerStatus.ANSWERED.value, 0),
        private=private,
        urgent=urgent,
    )


def get_prayer_session(
    db: Session,
    session: UserSession,
    *,
    include_answered: bool = True,
    taxonomy: PrayerTaxonomy | None = None,
) -> PrayerSession:
    """
    Everything in the actor's location scope, bucketed for a prayer session.

    Private requests are included in the PRIVATE bucket so the team can pray
    for them; submitter identity is redacted for viewers who are neither
    admin nor assignee.
    """
    taxonomy = taxonomy or get_taxonomy()
    query = _scoped_query(db, session)
    if not include_answered:
        query = query.filter(PrayerRequest.status != PrayerStatus.ANSWERED.value)
    prayers = query.order_by(PrayerRequest.created_at.desc()).all()

    groups = prayer_priority.group_by_display_category(prayers, taxonomy)
    stats = prayer_priority.get_prayer_stats(prayers, taxonomy)

    return PrayerSession(
        taxonomy_version=taxonomy.version,
        stats=PrayerSessionStats(**stats),
        groups=[
            PrayerSessionGroup(
                category=category,
                label=DISPLAY_CATEGORY_LABELS[category],
                items=[to_read(p, session, taxonomy) for p in items],
            )
            for category, items in groups.items()
        ],
    )

"""
Phone scan sessions (QR code flow).

A staff member on a desktop issues a one-time token, shown as a QR code.
The phone opens the scan URL, the token is consumed exactly once, and the
phone receives a short-lived signed scan cookie for subsequent requests.

Token states: ISSUED -> CONSUMED (used_at set) or ISSUED -> EXPIRED (row
deleted). Expired and stale tokens are purged lazily; no background job
is required, though cleanup_expired_tokens is exposed for cron.
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import (
    ScanSessionPayload,
    generate_scan_token,
    sign_scan_session,
)
from app.db.models import ScanToken
from app.schemas.scan import ScanTokenIssued

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    """SQLite returns naive datetimes; stored values are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def build_scan_url(slug: str, token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/church/{slug}/scan?token={token}"


def issue_scan_token(
    db: Session,
    user_id: UUID,
    org_id: UUID,
    slug: str,
    now: datetime | None = None,
) -> ScanTokenIssued:
    """
    Issue a one-time scan token for this user and organization.

    The caller's earlier tokens that are unused or expired are purged first,
    so at most one live QR code exists per user and organization.
    """
    now = now or _utc_now()

    purged = (
        db.query(ScanToken)
        .filter(
            ScanToken.user_id == user_id,
            ScanToken.organization_id == org_id,
            or_(ScanToken.used_at.is_(None), ScanToken.expires_at < now),
        )
        .delete(synchronize_session=False)
    )
    if purged:
        logger.debug(f"Purged {purged} stale scan tokens user={user_id} org={org_id}")

    token = generate_scan_token()
    expires_at = now + timedelta(minutes=settings.SCAN_TOKEN_EXPIRY_MINUTES)
    db.add(
        ScanToken(
            token=token,
            user_id=user_id,
            organization_id=org_id,
            expires_at=expires_at,
        )
    )
    db.flush()

    logger.info(f"Issued scan token user={user_id} org={org_id}")
    return ScanTokenIssued(
        token=token,
        scan_url=build_scan_url(slug, token),
        expires_at=expires_at,
    )


def validate_scan_token(
    db: Session,
    token: str,
    now: datetime | None = None,
) -> tuple[UUID, UUID] | None:
    """
    Consume a scan token. Returns (user_id, org_id) or None.

    Expired tokens are deleted. Consumption is a conditional update on
    used_at IS NULL, so concurrent callers cannot both succeed.
    """
    if not token:
        return None
    now = now or _utc_now()

    row = db.query(ScanToken).filter(ScanToken.token == token).first()
    if row is None:
        return None

    if now >= _as_aware(row.expires_at):
        db.delete(row)
        db.flush()
        logger.info(f"Rejected expired scan token user={row.user_id}")
        return None

    if row.used_at is not None:
        logger.warning(f"Rejected reused scan token user={row.user_id}")
        return None

    result = db.execute(
        update(ScanToken)
        .where(ScanToken.id == row.id, ScanToken.used_at.is_(None))
        .values(used_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(f"Scan token consumed concurrently user={row.user_id}")
        return None

    return row.user_id, row.organization_id


def create_scan_cookie_value(
    user_id: UUID,
    org_id: UUID,
    slug: str,
    now: datetime | None = None,
) -> tuple[str, ScanSessionPayload]:
    """Signed scan cookie value plus the payload it carries."""
    now = now or _utc_now()
    payload = ScanSessionPayload(
        user_id=user_id,
        org_id=org_id,
        slug=slug,
        expires_at=now + timedelta(minutes=settings.SCAN_SESSION_EXPIRY_MINUTES),
    )
    return sign_scan_session(payload), payload


def cleanup_expired_tokens(db: Session, now: datetime | None = None) -> int:
    """Delete expired tokens across all organizations. Safe to run repeatedly."""
    now = now or _utc_now()
    deleted = (
        db.query(ScanToken)
        .filter(ScanToken.expires_at < now)
        .delete(synchronize_session=False)
    )
    db.flush()
    if deleted:
        logger.info(f"Cleaned up {deleted} expired scan tokens")
    return deleted

"""Tests for one-time scan tokens and the signed scan session cookie."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import event, update

from app.core.security import verify_scan_session
from app.db.models import ScanToken
from app.services import scan_session_service


NOW = datetime(2025, 3, 2, 9, 0, tzinfo=timezone.utc)


class TestScanTokens:
    def test_issue_returns_scan_url(self, db, staff_user, test_org):
        issued = scan_session_service.issue_scan_token(db, staff_user.id, test_org.id, test_org.slug, now=NOW)

        assert len(issued.token) == 64
        assert issued.scan_url.endswith(f"/church/{test_org.slug}/scan?token={issued.token}")
        assert issued.expires_at == NOW + timedelta(minutes=15)

    def test_token_is_single_use(self, db, staff_user, test_org):
        issued = scan_session_service.issue_scan_token(db, staff_user.id, test_org.id, test_org.slug, now=NOW)

        first = scan_session_service.validate_scan_token(db, issued.token, now=NOW + timedelta(minutes=1))
        second = scan_session_service.validate_scan_token(db, issued.token, now=NOW + timedelta(minutes=2))

        assert first == (staff_user.id, test_org.id)
        assert second is None

    def test_concurrent_consumption_has_one_winner(self, db, staff_user, test_org):
        issued = scan_session_service.issue_scan_token(db, staff_user.id, test_org.id, test_org.slug, now=NOW)
        competitor_used_at = NOW + timedelta(seconds=30)
        raced = []

        def consume_first(orm_execute_state):
            # Another request consumes the token after our read, before our update
            if orm_execute_state.is_update and not raced:
                raced.append(True)
                orm_execute_state.session.connection().execute(
                    update(ScanToken)
                    .where(ScanToken.token == issued.token)
                    .values(used_at=competitor_used_at)
                )

        event.listen(db, "do_orm_execute", consume_first)
        try:
            result = scan_session_service.validate_scan_token(db, issued.token, now=NOW + timedelta(minutes=1))
        finally:
            event.remove(db, "do_orm_execute", consume_first)

        assert raced == [True]
        assert result is None
        db.expire_all()
        row = db.query(ScanToken).filter(ScanToken.token == issued.token).one()
        assert row.used_at.replace(tzinfo=timezone.utc) == competitor_used_at

    def test_expired_token_is_rejected_and_deleted(self, db, staff_user, test_org):
        issued = scan_session_service.issue_scan_token(db, staff_user.id, test_org.id, test_org.slug, now=NOW)

        result = scan_session_service.validate_scan_token(db, issued.token, now=NOW + timedelta(minutes=15))

        assert result is None
        assert db.query(ScanToken).filter(ScanToken.token == issued.token).count() == 0

    def test_unknown_token_is_rejected(self, db):
        assert scan_session_service.validate_scan_token(db, "not-a-token") is None
        assert scan_session_service.validate_scan_token(db, "") is None

    def test_reissue_purges_unused_tokens(self, db, staff_user, test_org):
        old = scan_session_service.issue_scan_token(db, staff_user.id, test_org.id, test_org.slug, now=NOW)
        new = scan_session_service.issue_scan_token(db, staff_user.id, test_org.id, test_org.slug, now=NOW)

        tokens = [row.token for row in db.query(ScanToken).all()]
        assert tokens == [new.token]
        assert scan_session_service.validate_scan_token(db, old.token, now=NOW) is None

    def test_reissue_keeps_consumed_tokens(self, db, staff_user, test_org):
        used = scan_session_service.issue_scan_token(db, staff_user.id, test_org.id, test_org.slug, now=NOW)
        scan_session_service.validate_scan_token(db, used.token, now=NOW)

        scan_session_service.issue_scan_token(db, staff_user.id, test_org.id, test_org.slug, now=NOW)

        assert db.query(ScanToken).count() == 2

    def test_cleanup_is_idempotent(self, db, staff_user, admin_user, test_org):
        scan_session_service.issue_scan_token(db, staff_user.id, test_org.id, test_org.slug, now=NOW)
        scan_session_service.issue_scan_token(db, admin_user.id, test_org.id, test_org.slug, now=NOW)
        later = NOW + timedelta(hours=1)

        assert scan_session_service.cleanup_expired_tokens(db, now=NOW) == 0
        assert scan_session_service.cleanup_expired_tokens(db, now=later) == 2
        assert scan_session_service.cleanup_expired_tokens(db, now=later) == 0


class TestScanCookie:
    def test_round_trip(self, staff_user, test_org):
        value, payload = scan_session_service.create_scan_cookie_value(
            staff_user.id, test_org.id, test_org.slug, now=NOW
        )

        verified = verify_scan_session(value, now=NOW + timedelta(minutes=5))

        assert verified == payload
        assert verified.expires_at == NOW + timedelta(minutes=15)

    def test_tampered_payload_is_rejected(self, staff_user, test_org):
        value, _ = scan_session_service.create_scan_cookie_value(
            staff_user.id, test_org.id, test_org.slug, now=NOW
        )
        encoded, _, signature = value.rpartition(".")
        forged = f"{encoded[:-4]}AAAA.{signature}"

        assert verify_scan_session(forged, now=NOW) is None

    def test_wrong_secret_is_rejected(self, staff_user, test_org):
        value, _ = scan_session_service.create_scan_cookie_value(
            staff_user.id, test_org.id, test_org.slug, now=NOW
        )

        assert verify_scan_session(value, secret="another-secret", now=NOW) is None

    def test_expired_cookie_is_rejected(self, staff_user, test_org):
        value, _ = scan_session_service.create_scan_cookie_value(
            staff_user.id, test_org.id, test_org.slug, now=NOW
        )

        assert verify_scan_session(value, now=NOW + timedelta(minutes=15)) is None

    def test_malformed_values_are_rejected(self):
        assert verify_scan_session("") is None
        assert verify_scan_session("no-signature") is None

"""Security utilities for JWT session tokens and scan session cookies."""

import base64
import binascii
import hashlib
import hmac
import json
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from app.core.config import settings


# =============================================================================
# Session Token (JWT in cookie)
# =============================================================================

def create_session_token(
    user_id: UUID,
    org_id: UUID,
    role: str,
    token_version: int
) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (JWT_SECRET).
    Token contains user identity, org context, and revocation version.
    """
    payload = {
        "sub": str(user_id),
        "org_id": str(org_id),
        "role": role,
        "token_version": token_version,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore


# =============================================================================
# Scan Tokens (one-time QR code credential)
# =============================================================================

def generate_scan_token() -> str:
    """Generate an opaque scan token (32 random bytes, hex)."""
    return secrets.token_hex(32)


# =============================================================================
# Scan Session Cookie (base64(json) + "." + hex(hmac-sha256))
# =============================================================================

@dataclass(frozen=True)
class ScanSessionPayload:
    """Identity carried by a phone scan session cookie."""

    user_id: UUID
    org_id: UUID
    slug: str
    expires_at: datetime

    def to_wire(self) -> dict:
        return {
            "userId": str(self.user_id),
            "organizationId": str(self.org_id),
            "slug": self.slug,
            "expiresAt": int(self.expires_at.timestamp() * 1000),
        }

    @classmethod
    def from_wire(cls, data: dict) -> "ScanSessionPayload":
        return cls(
            user_id=UUID(str(data["userId"])),
            org_id=UUID(str(data["organizationId"])),
            slug=str(data["slug"]),
            expires_at=datetime.fromtimestamp(int(data["expiresAt"]) / 1000, tz=timezone.utc),
        )


def _scan_signature(encoded: str, secret: str) -> str:
    return hmac.new(secret.encode(), encoded.encode(), hashlib.sha256).hexdigest()


def sign_scan_session(payload: ScanSessionPayload, secret: str | None = None) -> str:
    """Serialize and sign a scan session payload for the scan cookie."""
    key = secret or settings.scan_session_secret
    raw = json.dumps(payload.to_wire(), separators=(",", ":"))
    encoded = base64.b64encode(raw.encode()).decode()
    return f"{encoded}.{_scan_signature(encoded, key)}"


def verify_scan_session(
    cookie_value: str,
    secret: str | None = None,
    now: datetime | None = None,
) -> ScanSessionPayload | None:
    """
    Verify a scan session cookie.

    Returns the payload, or None when the value is malformed, the signature
    does not match, or the embedded expiry has passed.
    """
    if not cookie_value or "." not in cookie_value:
        return None

    key = secret or settings.scan_session_secret
    encoded, _, signature = cookie_value.rpartition(".")
    expected = _scan_signature(encoded, key)
    if not hmac.compare_digest(signature.encode(), expected.encode()):
        return None

    try:
        data = json.loads(base64.b64decode(encoded, validate=True))
        payload = ScanSessionPayload.from_wire(data)
    except (binascii.Error, ValueError, KeyError, TypeError):
        return None

    current = now or datetime.now(timezone.utc)
    if current >= payload.expires_at:
        return None
    return payload

"""Service layer modules."""

# Import service modules (not individual functions) for cleaner access
from app.services import batch_service
from app.services import duplicate_service
from app.services import extraction_service
from app.services import membership_service
from app.services import prayer_priority
from app.services import prayer_request_service
from app.services import scan_session_service
from app.services import visitor_card_service

__all__ = [
    "batch_service",
    "duplicate_service",
    "extraction_service",
    "membership_service",
    "prayer_priority",
    "prayer_request_service",
    "scan_session_service",
    "visitor_card_service",
]

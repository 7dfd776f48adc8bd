"""API routers."""

from app.routers.batches import router as batches_router
from app.routers.cards import router as cards_router
from app.routers.prayer_requests import router as prayer_requests_router
from app.routers.scan import router as scan_router
from app.routers.team import router as team_router

__all__ = [
    "batches_router",
    "cards_router",
    "prayer_requests_router",
    "scan_router",
    "team_router",
]

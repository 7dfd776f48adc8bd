"""
Prayer request triage: urgency, display category, grouping, and stats.

All functions are pure. The keyword taxonomy is passed in (defaults to the
configured one) so a new taxonomy version needs no code change.
"""

from typing import Iterable, Protocol, TypeVar

from app.core.prayer_taxonomy import PrayerTaxonomy, get_taxonomy
from app.db.enums import (
    DISPLAY_CATEGORY_ORDER,
    DisplayCategory,
    PrayerCategory,
    PrayerStatus,
)


class Triageable(Protocol):
    request: str
    category: str | None
    is_private: bool


T = TypeVar("T", bound=Triageable)


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    lower = text.lower()
    return any(keyword in lower for keyword in keywords)


def is_critical(request_text: str | None, taxonomy: PrayerTaxonomy | None = None) -> bool:
    """Case-insensitive substring match against the critical keyword groups."""
    if not request_text:
        return False
    taxonomy = taxonomy or get_taxonomy()
    return _contains_any(request_text, taxonomy.all_critical_keywords)


def classify(
    request_text: str | None,
    is_private: bool,
    category: str | None = None,
    taxonomy: PrayerTaxonomy | None = None,
) -> DisplayCategory:
    """
    Display category, first match wins:

    1. not private and critical keywords → CRITICAL
    2. private → PRIVATE
    3. stored category when it is a known category
    4. Other
    """
    if not is_private and is_critical(request_text, taxonomy):
        return DisplayCategory.CRITICAL
    if is_private:
        return DisplayCategory.PRIVATE
    if PrayerCategory.has_value(category):
        return DisplayCategory(category)
    return DisplayCategory.OTHER


def get_display_category(prayer: Triageable, taxonomy: PrayerTaxonomy | None = None) -> DisplayCategory:
    return classify(prayer.request, prayer.is_private, prayer.category, taxonomy)


def group_by_display_category(
    prayers: Iterable[T],
    taxonomy: PrayerTaxonomy | None = None,
) -> dict[DisplayCategory, list[T]]:
    """Bucket prayers in display order (critical first, private last); every bucket present."""
    taxonomy = taxonomy or get_taxonomy()
    groups: dict[DisplayCategory, list[T]] = {key: [] for key in DISPLAY_CATEGORY_ORDER}
    for prayer in prayers:
        groups[get_display_category(prayer, taxonomy)].append(prayer)
    return groups


def get_prayer_stats(prayers: Iterable, taxonomy: PrayerTaxonomy | None = None) -> dict[str, int]:
    """
    Session stats. Critical is re-derived from text, never read from storage.

    Items need request, is_private and status.
    """
    taxonomy = taxonomy or get_taxonomy()
    items = list(prayers)
    critical = sum(
        1 for p in items if not p.is_private and is_critical(p.request, taxonomy)
    )
    answered = sum(1 for p in items if p.status == PrayerStatus.ANSWERED.value)
    return {
        "total": len(items),
        "critical": critical,
        "answered": answered,
        "remaining": len(items) - answered,
    }


def detect_category(request_text: str | None, taxonomy: PrayerTaxonomy | None = None) -> str | None:
    """First category whose keywords appear in the text, or None."""
    if not request_text:
        return None
    taxonomy = taxonomy or get_taxonomy()
    for category, keywords in taxonomy.category_keywords.items():
        if _contains_any(request_text, keywords):
            return category
    return None


def has_sensitive_keywords(request_text: str | None, taxonomy: PrayerTaxonomy | None = None) -> bool:
    """Suggest privacy when the text reads as confidential."""
    if not request_text:
        return False
    taxonomy = taxonomy or get_taxonomy()
    return _contains_any(request_text, taxonomy.sensitive_keywords)

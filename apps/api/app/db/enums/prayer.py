"""Prayer request enums."""

from enum import Enum


class PrayerStatus(str, Enum):
    """Prayer request lifecycle: PENDING -> ASSIGNED -> PRAYING -> ANSWERED."""

    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    PRAYING = "PRAYING"
    ANSWERED = "ANSWERED"


class PrayerCategory(str, Enum):
    """Stored prayer request categories."""

    HEALTH = "Health"
    FAMILY = "Family"
    SALVATION = "Salvation"
    FINANCIAL = "Financial"
    RELATIONSHIPS = "Relationships"
    SPIRITUAL_GROWTH = "Spiritual Growth"
    WORK_CAREER = "Work/Career"
    OTHER = "Other"

    @classmethod
    def has_value(cls, value: str | None) -> bool:
        return value is not None and value in cls._value2member_map_


class DisplayCategory(str, Enum):
    """Triage bucket a prayer request renders under (derived at read time)."""

    CRITICAL = "CRITICAL"
    HEALTH = "Health"
    FAMILY = "Family"
    SALVATION = "Salvation"
    FINANCIAL = "Financial"
    WORK_CAREER = "Work/Career"
    RELATIONSHIPS = "Relationships"
    SPIRITUAL_GROWTH = "Spiritual Growth"
    OTHER = "Other"
    PRIVATE = "PRIVATE"


# Critical first, private last
DISPLAY_CATEGORY_ORDER: tuple[DisplayCategory, ...] = (
    DisplayCategory.CRITICAL,
    DisplayCategory.HEALTH,
    DisplayCategory.FAMILY,
    DisplayCategory.SALVATION,
    DisplayCategory.FINANCIAL,
    DisplayCategory.WORK_CAREER,
    DisplayCategory.RELATIONSHIPS,
    DisplayCategory.SPIRITUAL_GROWTH,
    DisplayCategory.OTHER,
    DisplayCategory.PRIVATE,
)

DISPLAY_CATEGORY_LABELS: dict[DisplayCategory, str] = {
    DisplayCategory.CRITICAL: "Critical",
    DisplayCategory.HEALTH: "Health",
    DisplayCategory.FAMILY: "Family",
    DisplayCategory.SALVATION: "Salvation",
    DisplayCategory.FINANCIAL: "Financial",
    DisplayCategory.WORK_CAREER: "Work & Career",
    DisplayCategory.RELATIONSHIPS: "Relationships",
    DisplayCategory.SPIRITUAL_GROWTH: "Spiritual Growth",
    DisplayCategory.OTHER: "Other Requests",
    DisplayCategory.PRIVATE: "Private (Do Not Share)",
}

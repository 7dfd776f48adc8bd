"""
Keyword taxonomy for prayer request triage.

The taxonomy is configuration data: a default version ships here and a JSON
file named by PRAYER_TAXONOMY_PATH replaces it without a code change.

JSON layout:
    {
        "version": "2025-01",
        "critical_keywords": {"life_threatening": ["cancer", ...], ...},
        "category_keywords": {"Health": ["surgery", ...], ...},
        "sensitive_keywords": ["confidential", ...]
    }

category_keywords is ordered: the first category with a matching keyword wins.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from app.core.config import settings
from app.db.enums import PrayerCategory

logger = logging.getLogger(__name__)


Keywords = tuple[str, ...]


def _lowered(keywords: Keywords) -> Keywords:
    return tuple(keyword.strip().lower() for keyword in keywords if keyword.strip())


class PrayerTaxonomy(BaseModel):
    """Versioned keyword lists; invalid JSON raises pydantic.ValidationError."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str
    critical_keywords: dict[str, Keywords]
    category_keywords: dict[str, Keywords]
    sensitive_keywords: Keywords = ()

    @field_validator("critical_keywords")
    @classmethod
    def _lower_critical(cls, groups: dict[str, Keywords]) -> dict[str, Keywords]:
        return {group: _lowered(keywords) for group, keywords in groups.items()}

    @field_validator("category_keywords")
    @classmethod
    def _known_categories(cls, categories: dict[str, Keywords]) -> dict[str, Keywords]:
        unknown = [name for name in categories if not PrayerCategory.has_value(name)]
        if unknown:
            raise ValueError(f"unknown categories {unknown}")
        return {name: _lowered(keywords) for name, keywords in categories.items()}

    @field_validator("sensitive_keywords")
    @classmethod
    def _lower_sensitive(cls, keywords: Keywords) -> Keywords:
        return _lowered(keywords)

    @property
    def all_critical_keywords(self) -> Keywords:
        return tuple(
            keyword
            for group in self.critical_keywords.values()
            for keyword in group
        )


DEFAULT_TAXONOMY = PrayerTaxonomy(
    version="2025-01",
    critical_keywords={
        "life_threatening": (
            "cancer", "tumor", "terminal", "hospice", "dying", "life support",
            "intensive care", "icu", "stage 4", "stage four", "metastatic",
            "palliative",
        ),
        "death_and_grief": (
            "passed away", "death", "died", "funeral", "passing", "lost my",
            "lost her", "lost his", "grieving",
        ),
        "emergency": (
            "emergency", "critical condition", "accident", "crash", "trauma",
            "surgery today", "surgery tomorrow", "urgent surgery",
        ),
        "mental_health_crisis": (
            "suicide", "suicidal", "self-harm", "overdose", "crisis",
        ),
        "violence_and_abuse": (
            "abuse", "assault", "violence", "attacked",
        ),
    },
    category_keywords={
        PrayerCategory.HEALTH.value: (
            "surgery", "doctor", "hospital", "cancer", "disease", "illness",
            "sick", "pain", "healing", "health", "medical", "treatment",
            "diagnosis", "recovery", "chronic", "mental health", "depression",
            "anxiety", "addiction",
        ),
        PrayerCategory.SALVATION.value: (
            "salvation", "saved", "accept christ", "accept jesus", "gospel",
            "born again", "unsaved", "non-believer", "doesn't know jesus",
            "doesnt know jesus", "not a christian", "come to christ",
            "come to faith",
        ),
        PrayerCategory.FAMILY.value: (
            "child", "children", "kids", "son", "daughter", "parent", "mother",
            "father", "mom", "dad", "family", "marriage", "husband", "wife",
            "spouse", "sibling", "brother", "sister", "grandparent",
            "grandmother", "grandfather",
        ),
        PrayerCategory.FINANCIAL.value: (
            "financial", "money", "job", "employment", "laid off", "unemployed",
            "debt", "bills", "provision", "finances", "income", "paycheck",
        ),
        PrayerCategory.WORK_CAREER.value: (
            "work", "career", "job search", "interview", "business", "promotion",
            "coworker", "workplace", "boss",
        ),
        PrayerCategory.RELATIONSHIPS.value: (
            "relationship", "dating", "boyfriend", "girlfriend", "fiance",
            "engaged", "marriage counseling", "separation", "divorce", "affair",
            "friendship",
        ),
        PrayerCategory.SPIRITUAL_GROWTH.value: (
            "faith", "doubt", "spiritual", "bible study", "prayer", "worship",
            "ministry", "calling", "purpose", "discipleship", "grow",
            "closer to god",
        ),
    },
    sensitive_keywords=(
        "confidential", "private", "don't share", "dont share", "between us",
        "secret", "personal", "sensitive", "abuse", "addiction", "affair",
        "divorce", "depression", "suicide", "mental health", "legal", "court",
    ),
)


def load_taxonomy(path: str | Path) -> PrayerTaxonomy:
    """Load a taxonomy from a JSON file."""
    return PrayerTaxonomy.model_validate_json(Path(path).read_text(encoding="utf-8"))


@lru_cache(maxsize=1)
def get_taxonomy() -> PrayerTaxonomy:
    """Active taxonomy: PRAYER_TAXONOMY_PATH override or the default."""
    if settings.PRAYER_TAXONOMY_PATH:
        taxonomy = load_taxonomy(settings.PRAYER_TAXONOMY_PATH)
        logger.info(f"Loaded prayer taxonomy version={taxonomy.version}")
        return taxonomy
    return DEFAULT_TAXONOMY

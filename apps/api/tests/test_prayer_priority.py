"""Tests for prayer request triage (urgency, display category, grouping)."""

from dataclasses import dataclass

import json

import pytest
from pydantic import ValidationError

from app.core.prayer_taxonomy import DEFAULT_TAXONOMY, PrayerTaxonomy, load_taxonomy
from app.db.enums import DISPLAY_CATEGORY_ORDER, DisplayCategory, PrayerStatus
from app.services import prayer_priority


@dataclass
class Item:
    request: str
    is_private: bool = False
    category: str | None = None
    status: str = PrayerStatus.PENDING.value


class TestClassify:
    def test_critical_overrides_category(self):
        assert prayer_priority.classify(
            "Please pray for my father, he has stage 4 cancer", False, "Family"
        ) == DisplayCategory.CRITICAL

    def test_private_overrides_critical(self):
        assert prayer_priority.classify(
            "Please pray for my father, he has stage 4 cancer", True, "Family"
        ) == DisplayCategory.PRIVATE

    def test_stored_category_used_when_not_critical(self):
        assert prayer_priority.classify("New job search", False, "Work/Career") == DisplayCategory.WORK_CAREER

    @pytest.mark.parametrize("category", [None, "", "Gardening"])
    def test_unknown_category_is_other(self, category):
        assert prayer_priority.classify("Thankful for my week", False, category) == DisplayCategory.OTHER

    def test_matching_is_case_insensitive_substring(self):
        assert prayer_priority.is_critical("My aunt is in HOSPICE care")
        assert not prayer_priority.is_critical("Pray for good weather")
        assert not prayer_priority.is_critical(None)


def test_grouping_keeps_every_bucket_in_order():
    items = [
        Item("Uncle in the ICU after an accident"),
        Item("Struggling with my marriage", category="Family"),
        Item("Confidential matter", is_private=True),
    ]

    groups = prayer_priority.group_by_display_category(items)

    assert list(groups) == list(DISPLAY_CATEGORY_ORDER)
    assert list(groups)[0] == DisplayCategory.CRITICAL
    assert list(groups)[-1] == DisplayCategory.PRIVATE
    assert [i.request for i in groups[DisplayCategory.CRITICAL]] == ["Uncle in the ICU after an accident"]
    assert len(groups[DisplayCategory.FAMILY]) == 1
    assert len(groups[DisplayCategory.PRIVATE]) == 1
    assert groups[DisplayCategory.HEALTH] == []


def test_stats_recompute_critical_from_text():
    items = [
        Item("Friend passed away last week"),
        Item("Friend passed away last week", is_private=True),
        Item("Healing from surgery", status=PrayerStatus.ANSWERED.value),
        Item("Job interview Monday"),
    ]

    stats = prayer_priority.get_prayer_stats(items)

    assert stats == {"total": 4, "critical": 1, "answered": 1, "remaining": 3}


def test_detect_category_first_match_wins():
    assert prayer_priority.detect_category("Surgery for my mom on Friday") == "Health"
    assert prayer_priority.detect_category("My son is far from God") == "Family"
    assert prayer_priority.detect_category("Thankful") is None


def test_sensitive_keywords_suggest_privacy():
    assert prayer_priority.has_sensitive_keywords("Please keep this confidential")
    assert not prayer_priority.has_sensitive_keywords("Pray for our mission trip")


def test_custom_taxonomy_changes_classification():
    taxonomy = PrayerTaxonomy.model_validate(
        {
            "version": "test-1",
            "critical_keywords": {"weather": ["hurricane"]},
            "category_keywords": {"Financial": ["rent"]},
            "sensitive_keywords": [],
        }
    )

    assert prayer_priority.classify("Hurricane coming", False, taxonomy=taxonomy) == DisplayCategory.CRITICAL
    assert prayer_priority.classify("Cancer diagnosis", False, taxonomy=taxonomy) == DisplayCategory.OTHER
    assert prayer_priority.detect_category("Rent is due", taxonomy) == "Financial"
    assert DEFAULT_TAXONOMY.version != taxonomy.version


def test_taxonomy_rejects_unknown_categories():
    with pytest.raises(ValidationError, match="Gardening"):
        PrayerTaxonomy.model_validate(
            {
                "version": "bad",
                "critical_keywords": {},
                "category_keywords": {"Gardening": ["roses"]},
                "sensitive_keywords": [],
            }
        )


def test_taxonomy_rejects_wrong_shapes():
    with pytest.raises(ValidationError):
        PrayerTaxonomy.model_validate(
            {
                "version": "bad",
                "critical_keywords": [],
                "category_keywords": {},
                "sensitive_keywords": [],
            }
        )
    with pytest.raises(ValidationError):
        PrayerTaxonomy.model_validate({"version": "bad", "category_keywords": {}})


def test_load_taxonomy_from_file(tmp_path):
    path = tmp_path / "taxonomy.json"
    path.write_text(
        json.dumps(
            {
                "version": "2025-06",
                "critical_keywords": {"emergency": [" Flood "]},
                "category_keywords": {"Work/Career": ["Layoff"], "Health": ["clinic"]},
                "sensitive_keywords": ["Private"],
            }
        ),
        encoding="utf-8",
    )

    taxonomy = load_taxonomy(path)

    assert taxonomy.version == "2025-06"
    assert taxonomy.all_critical_keywords == ("flood",)
    assert list(taxonomy.category_keywords) == ["Work/Career", "Health"]
    assert taxonomy.sensitive_keywords == ("private",)

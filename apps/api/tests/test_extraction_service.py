"""Tests for extraction normalization and data-quality validation."""

import json

from app.services.extraction_service import (
    format_validation_summary,
    normalize_extraction,
    standardize_fields,
    validate_card_data,
)
from app.services.vision_provider import parse_json_object
from app.schemas.intake import ExtractedRecord


class TestNormalizeExtraction:
    def test_wrong_types_become_none_independently(self):
        record = normalize_extraction(
            {
                "name": "John",
                "email": 42,
                "phone": None,
                "first_time_visitor": "yes",
                "interests": "music",
                "keywords": ["next steps", 7],
            }
        )
        assert record.name == "John"
        assert record.email is None
        assert record.phone is None
        assert record.first_time_visitor is None
        assert record.interests is None
        assert record.keywords == ["next steps"]

    def test_additional_notes_objects_are_serialized(self):
        record = normalize_extraction({"additional_notes": {"kids": 2}})
        assert json.loads(record.additional_notes) == {"kids": 2}

    def test_non_object_input_yields_empty_record(self):
        for raw in (None, "garbage", 12, ["name"]):
            assert normalize_extraction(raw) == ExtractedRecord()

    def test_unknown_keys_ignored(self):
        record = normalize_extraction({"name": "Ann", "church_logo": "x"})
        assert record.name == "Ann"
        assert not hasattr(record, "church_logo")


def test_standardize_fields_uses_first_time_flag():
    record = standardize_fields(
        ExtractedRecord(first_time_visitor=True, interests=["youth group"], keywords=[" BAPTISM "])
    )
    assert record.visit_status == "First Visit"
    assert record.interests == ["Youth Ministry"]
    assert record.keywords == ["baptism"]


class TestValidateCardData:
    def test_clean_card_is_valid(self):
        result = validate_card_data(
            ExtractedRecord(name="John Smith", email="john@example.com", phone="555-123-4567")
        )
        assert result.is_valid
        assert not result.needs_review
        assert format_validation_summary(result) == "No issues detected - ready to save"

    def test_nine_digit_phone_is_flagged(self):
        result = validate_card_data(
            ExtractedRecord(name="John Smith", email="john@example.com", phone="555-123-456")
        )
        assert [i.message for i in result.issues] == ["Phone number has only 9 digits (expected 10)"]

    def test_repeated_digit_phone_is_flagged(self):
        result = validate_card_data(
            ExtractedRecord(name="John Smith", email="john@example.com", phone="1111111111")
        )
        assert result.issues[0].message == "Phone number is all the same digit"

    def test_missing_everything(self):
        result = validate_card_data(ExtractedRecord(name="J", email="john.example.com"))
        fields = [i.field for i in result.issues]
        assert fields == ["name", "phone", "email"]
        assert result.needs_review
        assert format_validation_summary(result) == "3 issues detected - needs review"


def test_parse_json_object_handles_code_fences():
    text = 'Here you go:\n```json\n{"name": "Ann", "email": null}\n```'
    assert parse_json_object(text) == {"name": "Ann", "email": None}


def test_parse_json_object_rejects_non_objects():
    assert parse_json_object("no json here") is None
    assert parse_json_object("[1, 2]") is None

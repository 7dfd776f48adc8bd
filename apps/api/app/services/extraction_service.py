"""
Connect card extraction: normalization and data-quality checks.

Vision output is untrusted. normalize_extraction is the trust boundary: it
is pure and total, and every field falls back to None independently.
"""

from typing import Any

from app.schemas.intake import CardValidationResult, ExtractedRecord, ValidationIssue
from app.utils.normalization import (
    extract_phone_digits,
    normalize_interests,
    normalize_keywords,
    normalize_visit_status,
)


def normalize_extraction(raw: Any) -> ExtractedRecord:
    """
    Convert raw vision output into an ExtractedRecord.

    Non-object input yields an empty record; wrong-typed fields become None.
    """
    if not isinstance(raw, dict):
        return ExtractedRecord()
    return ExtractedRecord.model_validate(raw)


def standardize_fields(record: ExtractedRecord) -> ExtractedRecord:
    """Map visit status / interests / keywords onto the church's standard options."""
    visit_status = normalize_visit_status(record.visit_status)
    if visit_status is None and record.first_time_visitor:
        visit_status = normalize_visit_status("first")
    return record.model_copy(
        update={
            "visit_status": visit_status,
            "interests": normalize_interests(record.interests),
            "keywords": normalize_keywords(record.keywords),
        }
    )


def validate_card_data(record: ExtractedRecord) -> CardValidationResult:
    """
    Flag the common extraction mistakes that need a human look.

    - name missing or shorter than 2 chars
    - phone missing, 9 digits (dropped digit), fewer than 9, or one repeated digit
    - email missing or without @
    """
    issues: list[ValidationIssue] = []

    if not record.name or len(record.name.strip()) < 2:
        issues.append(ValidationIssue(field="name", message="Name is missing or too short"))

    if record.phone and record.phone.strip():
        digits = extract_phone_digits(record.phone)
        if len(digits) == 9:
            issues.append(
                ValidationIssue(field="phone", message="Phone number has only 9 digits (expected 10)")
            )
        elif 0 < len(digits) < 9:
            issues.append(
                ValidationIssue(field="phone", message=f"Phone number has only {len(digits)} digits")
            )
        elif len(digits) >= 10 and len(set(digits)) == 1:
            issues.append(
                ValidationIssue(field="phone", message="Phone number is all the same digit")
            )
    else:
        issues.append(ValidationIssue(field="phone", message="Phone number is missing"))

    if record.email and record.email.strip():
        if "@" not in record.email:
            issues.append(ValidationIssue(field="email", message="Email is missing @ symbol"))
    else:
        issues.append(ValidationIssue(field="email", message="Email is missing"))

    needs_review = bool(issues)
    return CardValidationResult(
        is_valid=not needs_review,
        issues=issues,
        needs_review=needs_review,
    )


def format_validation_summary(result: CardValidationResult) -> str:
    """One-line summary for the review UI."""
    if result.is_valid:
        return "No issues detected - ready to save"
    error_count = sum(1 for issue in result.issues if issue.severity == "error")
    plural = "" if error_count == 1 else "s"
    return f"{error_count} issue{plural} detected - needs review"

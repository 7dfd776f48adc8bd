"""Data normalization utilities for consistent data quality."""

import re
from typing import Optional


# =============================================================================
# Identity fields (used by duplicate matching)
# =============================================================================

def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize phone to display format ((555) 123-4567).

    Accepts:
    - 10 digits: 5551234567 → (555) 123-4567
    - 11 digits starting with 1: 15551234567 → (555) 123-4567
    - Already formatted: (555) 123-4567 → (555) 123-4567

    Anything else (international, partial, letters only) is returned
    trimmed but otherwise unchanged; staff fix it during review.

    Args:
        phone: Raw phone input

    Returns:
        Formatted phone, pass-through value, or None if empty
    """
    if not phone:
        return None

    cleaned = phone.strip()
    if not cleaned:
        return None

    digits = re.sub(r"\D", "", cleaned)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"

    return cleaned


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Args:
        email: Raw email input

    Returns:
        Lowercased email or None if empty
    """
    if not email:
        return None
    return email.strip().lower() or None


def normalize_name(name: Optional[str]) -> Optional[str]:
    """
    Normalize name by stripping whitespace and collapsing multiple spaces.

    Args:
        name: Raw name input

    Returns:
        Cleaned name or None if empty
    """
    if not name:
        return None
    return " ".join(name.split()) or None


def normalize_name_key(name: Optional[str]) -> Optional[str]:
    """Lowercased, trimmed name used for case-insensitive duplicate matching."""
    if not name:
        return None
    return name.strip().lower() or None


def extract_phone_digits(phone: Optional[str]) -> str:
    """Digits only (empty string when none)."""
    if not phone:
        return ""
    return re.sub(r"\D", "", phone)


# =============================================================================
# Connect card fields (vision output → standard options)
# =============================================================================

VISIT_FIRST = "First Visit"
VISIT_SECOND = "Second Visit"
VISIT_REGULAR = "Regular attendee"

# (standard label, substrings) in match order
INTEREST_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Volunteering", ("volunteer", "serve", "serving", "get involved", "help out")),
    ("Small Groups", ("small group", "life group", "connect group", "community group", "bible study")),
    ("Youth Ministry", ("youth", "student", "teen")),
    ("Kids Ministry", ("kid", "child", "nursery")),
    ("Worship", ("worship", "music", "band", "choir")),
    ("Missions", ("mission", "outreach")),
)


def normalize_visit_status(visit_status: Optional[str]) -> Optional[str]:
    """
    Map checkbox text to First Visit / Second Visit / Regular attendee.

    Unrecognized text is kept as written for staff to correct.
    """
    if not visit_status:
        return None

    text = visit_status.lower().strip()

    if (
        "first" in text
        or "i'm new" in text
        or "im new" in text
        or "new here" in text
        or "new guest" in text
        or ("guest" in text and "return" not in text)
    ):
        return VISIT_FIRST

    if "second" in text or "2nd" in text:
        return VISIT_SECOND

    if any(word in text for word in ("regular", "member", "returning", "frequent", "attend")):
        return VISIT_REGULAR

    return visit_status


def normalize_interests(interests: Optional[list[str]]) -> list[str]:
    """Map interest labels to standard options, de-duplicated, order kept."""
    if not interests:
        return []

    normalized: list[str] = []
    for interest in interests:
        lower = interest.lower().strip()
        label = interest
        for standard, patterns in INTEREST_PATTERNS:
            if any(p in lower for p in patterns):
                label = standard
                break
        if label not in normalized:
            normalized.append(label)
    return normalized


def normalize_keywords(keywords: Optional[list[str]]) -> list[str]:
    """Lowercase, trim, and drop empty campaign keywords."""
    if not keywords:
        return []
    return [k for k in (k.lower().strip() for k in keywords) if k]

"""Utility modules."""

from app.utils.normalization import (
    normalize_email,
    normalize_interests,
    normalize_keywords,
    normalize_name,
    normalize_phone,
    normalize_visit_status,
)
from app.utils.pagination import (
    Page,
    PaginationParams,
    get_pagination,
    paginate_query,
)

__all__ = [
    # Normalization
    "normalize_email",
    "normalize_interests",
    "normalize_keywords",
    "normalize_name",
    "normalize_phone",
    "normalize_visit_status",
    # Pagination
    "Page",
    "PaginationParams",
    "get_pagination",
    "paginate_query",
]

"""
Organization context for storage-key and deletion flows.

Card images are stored under a prefix that depends on whether the work
happens at platform level or inside a church. The context is resolved once
and every consumer dispatches on it through the helpers below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class PlatformContext:
    pass


@dataclass(frozen=True)
class AgencyContext:
    slug: str


OrgContext = Union[PlatformContext, AgencyContext]


def resolve_org_context(slug: str | None) -> OrgContext:
    """Platform context when no organization slug is present."""
    if not slug:
        return PlatformContext()
    return AgencyContext(slug=slug)


def storage_prefix(context: OrgContext) -> str:
    """Object storage prefix for card images under a context."""
    if isinstance(context, AgencyContext):
        return f"organizations/{context.slug}/connect-cards"
    return "platform/connect-cards"


def describe(context: OrgContext) -> str:
    """Short label for log lines (no tenant names)."""
    if isinstance(context, AgencyContext):
        return "agency"
    return "platform"

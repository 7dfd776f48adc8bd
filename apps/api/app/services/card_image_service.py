"""
Connect card image storage cleanup.

Deleting cards or batches removes the database rows first; the images are
removed afterwards on a best-effort basis. Storage failures are logged and
counted in a CleanupReport and never undo the database deletion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.org_context import OrgContext, describe, storage_prefix
from app.services.storage_client import get_s3_client

logger = logging.getLogger(__name__)

# S3 DeleteObjects limit
DELETE_BATCH_SIZE = 1000


@dataclass
class CleanupReport:
    deleted: int = 0
    errors: int = 0
    error_keys: list[str] = field(default_factory=list)

    def record_errors(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        self.errors += len(keys)
        self.error_keys.extend(keys)

    def as_dict(self) -> dict:
        return {"deleted": self.deleted, "errors": self.errors, "error_keys": self.error_keys}


def is_owned_key(context: OrgContext, key: str) -> bool:
    """True when the key lives under the context's storage prefix."""
    return key.startswith(f"{storage_prefix(context)}/")


def delete_card_images(
    keys: Iterable[str | None],
    context: OrgContext,
    client: BaseClient | None = None,
) -> CleanupReport:
    """
    Delete card images under the context's prefix.

    Keys outside the prefix are never deleted and are reported as errors.
    """
    report = CleanupReport()
    candidates = [k for k in keys if k]
    owned = [k for k in candidates if is_owned_key(context, k)]
    foreign = [k for k in candidates if not is_owned_key(context, k)]
    if foreign:
        logger.warning(f"Skipped {len(foreign)} image keys outside {describe(context)} prefix")
        report.record_errors(foreign)
    if not owned:
        return report

    s3 = client or get_s3_client()
    for start in range(0, len(owned), DELETE_BATCH_SIZE):
        batch = owned[start:start + DELETE_BATCH_SIZE]
        try:
            response = s3.delete_objects(
                Bucket=settings.S3_BUCKET,
                Delete={"Objects": [{"Key": k} for k in batch], "Quiet": False},
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"Card image cleanup failed for {len(batch)} keys: {type(e).__name__}")
            report.record_errors(batch)
            continue

        report.deleted += len(response.get("Deleted", []))
        failed = [err.get("Key", "unknown") for err in response.get("Errors", [])]
        if failed:
            logger.warning(f"Card image cleanup reported {len(failed)} errors")
            report.record_errors(failed)

    return report

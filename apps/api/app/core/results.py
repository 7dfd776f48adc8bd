"""Uniform success/error result shape returned by intake operations."""

from __future__ import annotations

import logging
from typing import Any, Callable, Literal

from pydantic import BaseModel

from app.core.errors import IntakeError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."

# error_type for framework-raised HTTP errors (auth, CSRF, routing, bad payloads)
HTTP_ERROR_TYPES = {
    401: "not_authenticated",
    403: "access_denied",
    404: "not_found",
    409: "conflict",
    422: "validation_error",
}


class ActionResult(BaseModel):
    """Result envelope shared by every pipeline operation."""

    status: Literal["success", "error"]
    message: str
    error_type: str | None = None
    data: Any = None

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "ActionResult":
        return cls(status="success", message=message, data=data)

    @classmethod
    def from_error(cls, exc: IntakeError) -> "ActionResult":
        return cls(
            status="error",
            message=exc.message,
            error_type=exc.error_type,
            data=exc.data,
        )

    @classmethod
    def from_http(cls, status_code: int, message: str, data: Any = None) -> "ActionResult":
        return cls(
            status="error",
            message=message,
            error_type=HTTP_ERROR_TYPES.get(status_code, "http_error"),
            data=data,
        )

    @classmethod
    def unexpected(cls) -> "ActionResult":
        return cls(status="error", message=GENERIC_ERROR_MESSAGE, error_type="internal_error")

    @property
    def is_success(self) -> bool:
        return self.status == "success"


def run_action(
    fn: Callable[..., Any],
    *args: Any,
    success_message: str,
    **kwargs: Any,
) -> ActionResult:
    """
    Run a service call and convert its outcome into an ActionResult.

    Used by callers outside the HTTP layer (CLI, jobs). Known errors keep
    their message; anything else is logged and reported generically.
    """
    try:
        data = fn(*args, **kwargs)
    except IntakeError as exc:
        return ActionResult.from_error(exc)
    except Exception:
        logger.exception(f"Unexpected error in {getattr(fn, '__name__', 'action')}")
        return ActionResult.unexpected()
    return ActionResult.ok(success_message, data)

"""Error taxonomy for intake pipeline operations.

Services raise these; routers and ``run_action`` turn them into
``ActionResult`` error payloads.
"""


class IntakeError(Exception):
    """Base exception for intake pipeline errors."""

    error_type = "error"
    status_code = 400

    def __init__(self, message: str, *, data: dict | None = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(IntakeError):
    """Malformed input. Never retried, surfaced verbatim."""

    error_type = "validation_error"
    status_code = 422


class NotFoundError(IntakeError):
    """Entity absent or outside the caller's organization."""

    error_type = "not_found"
    status_code = 404


class AccessDenied(IntakeError):
    """Authenticated but insufficient permission."""

    error_type = "access_denied"
    status_code = 403


class ConflictError(IntakeError):
    """Blocked by a business rule (duplicate card, completed batch delete)."""

    error_type = "conflict"
    status_code = 409


class TransientError(IntakeError):
    """Upstream failure. Safe for the caller to retry."""

    error_type = "transient_error"
    status_code = 503

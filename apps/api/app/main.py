"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import IntakeError
from app.core.results import ActionResult
from app.core.structured_logging import build_log_context
from app.db.session import engine

logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Visitor cards and prayer text never leave the app
    )
    logging.info("Sentry initialized for error tracking")


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Visitor Intake API",
    description="Connect card intake, review, and prayer triage API",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    expose_headers=["X-Request-ID"],
)


# ============================================================================
# Error Handling
# ============================================================================

def _request_log_context(request: Request) -> dict:
    return build_log_context(
        org_id=request.path_params.get("org_id"),
        batch_id=request.path_params.get("batch_id"),
        request_id=request.headers.get("X-Request-ID"),
        route=request.url.path,
        method=request.method,
    )


@app.exception_handler(IntakeError)
async def intake_error_handler(request: Request, exc: IntakeError):
    """Known pipeline errors keep their message and map to their status code."""
    logger.info(
        f"Intake error {exc.error_type}: {exc.message}",
        extra=_request_log_context(request),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ActionResult.from_error(exc).model_dump(mode="json"),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Auth, CSRF and routing errors use the same envelope as service errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ActionResult.from_http(exc.status_code, str(exc.detail)).model_dump(mode="json"),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=ActionResult.from_http(
            422,
            "Invalid request",
            data={"errors": jsonable_encoder(exc.errors())},
        ).model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Anything else is logged with context and reported generically."""
    logger.exception(
        f"Unhandled error on {request.method} {request.url.path}",
        extra=_request_log_context(request),
    )
    return JSONResponse(
        status_code=500,
        content=ActionResult.unexpected().model_dump(mode="json"),
    )


# ============================================================================
# Routers
# ============================================================================

from app.routers import batches, cards, prayer_requests, scan, team

# Intake (scanner + review); scan sessions are accepted here
app.include_router(batches.router)
app.include_router(cards.router)

# Prayer triage
app.include_router(prayer_requests.router)

# QR code scan sessions
app.include_router(scan.router)

# Team management (admins)
app.include_router(team.router)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}

"""FastAPI application entry point."""
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from flashvote.config import settings
from flashvote.context import REQUEST_ID_HEADER, RequestContext
from flashvote.database import Base, engine
from flashvote.dependencies import get_request_context
from flashvote.errors import ApiError, Conflict, InternalError, NotFound, Unauthorized, ValidationError
from flashvote.services.token_authority import TokenAuthority

# Import routers
from flashvote.routers import host_rooms, host_questions, guest

# Import all models so Base.metadata knows about them
from flashvote.models.room import Room                # noqa: F401
from flashvote.models.question import Question        # noqa: F401
from flashvote.models.option import Option            # noqa: F401
from flashvote.models.participant import Participant  # noqa: F401
from flashvote.models.response import Response        # noqa: F401
from flashvote.models.audit_log import AuditLog       # noqa: F401

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app = FastAPI(
    title="Flash Vote",
    description="Live polling rooms: hosts publish questions, guests respond",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Attach a RequestContext, echo its id in the response and log one completion line."""
    ctx = RequestContext.from_header(request.headers.get(REQUEST_ID_HEADER))
    request.state.context = ctx
    try:
        response = await call_next(request)
    except Exception:
        logger.info("%s %s -> 500 (%.1fms) [%s]", request.method, request.url.path, ctx.elapsed_ms(), ctx.request_id)
        raise
    response.headers[REQUEST_ID_HEADER] = ctx.request_id
    logger.info(
        "%s %s -> %d (%.1fms) [%s]",
        request.method, request.url.path, response.status_code, ctx.elapsed_ms(), ctx.request_id,
    )
    return response


# ── Error envelope ─────────────────────────────────────────────────


def _error_response(request: Request, error: ApiError) -> JSONResponse:
    ctx = get_request_context(request)
    details: dict[str, Any] = {**error.details, "requestId": ctx.request_id}
    return JSONResponse(
        status_code=error.status_code,
        content={"error": {"code": error.code, "message": error.message, "details": details}},
        headers={REQUEST_ID_HEADER: ctx.request_id},
    )


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return _error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    field_errors: dict[str, list[str]] = {}
    form_errors: list[str] = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err.get("loc", ())[1:])
        if path and err.get("type") != "json_invalid":
            field_errors.setdefault(path, []).append(err.get("msg", "Invalid value"))
        else:
            form_errors.append(err.get("msg", "Invalid request body"))
    error = ValidationError(details={"fieldErrors": field_errors, "formErrors": form_errors})
    return _error_response(request, error)


# Wrong method on a known path reads as an unknown route.
_HTTP_ERRORS = {
    400: ValidationError,
    401: Unauthorized,
    404: NotFound,
    405: NotFound,
    409: Conflict,
}


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Framework-raised errors (unknown route, wrong method) use the same envelope."""
    error_cls = _HTTP_ERRORS.get(exc.status_code)
    if error_cls is None:
        error_cls = ValidationError if exc.status_code < 500 else InternalError
    error = error_cls(str(exc.detail))
    response = _error_response(request, error)
    if error.status_code == exc.status_code:
        for name, value in (exc.headers or {}).items():
            response.headers[name] = value
    return response


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    ctx = get_request_context(request)
    logger.exception("Unhandled error [%s]", ctx.request_id)
    return _error_response(request, InternalError())


# Register routers
app.include_router(host_rooms.router, prefix="/api/host/rooms", tags=["HostRooms"])
app.include_router(host_questions.router, prefix="/api/host/questions", tags=["HostQuestions"])
app.include_router(guest.router, prefix="/api/rooms", tags=["Guest"])


@app.on_event("startup")
def on_startup():
    """Build the token authority (fatal without a pepper) and create tables for SQLite dev mode."""
    configure_logging(settings.LOG_LEVEL)
    app.state.token_authority = TokenAuthority(settings.HOST_TOKEN_PEPPER)
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    logger.info("Flash Vote API ready (web base %s)", settings.WEB_BASE_URL)


@app.get("/api/health")
def health_check():
    return {"ok": True}

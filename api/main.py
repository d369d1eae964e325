"""
api/main.py -- FastAPI application entry point for the members portal.

Owns the application object, its lifespan, logging, request middleware, the
JSON error envelope, and the small JSON surface (/api/v1/health, /api/v1/me).
The HTML routes live in web/routes.py and are mounted by asgi.py.

Run with:      python main.py serve
               uvicorn asgi:app --reload

Lifespan handles startup (stores, auth service, purge task) and shutdown
(cancel purge task, dispose engines) symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse, MeResponse
from auth.dependencies import get_current_identity
from auth.errors import StoreUnavailableError
from auth.models import Identity
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import UserStore
from core.config import get_settings

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("portal.api")

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI, interval: int) -> None:
    """Delete expired session rows every `interval` seconds.

    Housekeeping only: SessionStore.get() already ignores expired rows, so a
    failed or skipped sweep never lets an expired session through. A store
    outage is logged and the loop carries on with the next sweep.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            removed = app.state.session_store.purge_expired()
        except StoreUnavailableError:
            logger.warning("Session purge skipped: store unavailable")
            continue
        if removed:
            logger.info("Purged %d expired sessions", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters: both stores must exist before the auth service is
    built, and the purge task references app.state.session_store.
    """
    settings = get_settings()
    logger.info("Portal starting up")
    app.state.user_store = UserStore(settings.database_url)
    app.state.session_store = SessionStore(settings.database_url, ttl=settings.session_ttl_seconds)
    app.state.auth_service = AuthService(app.state.user_store, app.state.session_store)
    logger.info("Stores initialized (session_ttl=%ds)", settings.session_ttl_seconds)
    app.state.purge_task = asyncio.create_task(_purge_loop(app, settings.session_purge_interval_seconds))

    yield

    app.state.purge_task.cancel()
    app.state.session_store.close()
    app.state.user_store.close()
    logger.info("Portal shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Members Portal",
    description="Sign up, log in, and visit the members area.",
    version=__version__,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
)

# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Wall-clock time is captured around call_next to report latency.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Exception handlers (JSON envelope)
#
# asgi.py wraps these so /api/ paths keep the JSON envelope while HTML pages
# get rendered error pages. Registered here too so the API app works alone.
# ---------------------------------------------------------------------------


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=f"http_{exc.status_code}", message=str(exc.detail)),
        ).model_dump(),
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    """Return 503 when a store fault escapes a route. Not retried."""
    logger.error("Store unavailable on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=503,
        content=ErrorResponse(
            error=ErrorDetail(code="store_unavailable", message="Service temporarily unavailable."),
        ).model_dump(),
    )


def log_unhandled_exception(request: Request) -> None:
    """Log the exception being handled. Call from inside an exception handler."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    log_unhandled_exception(request)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(code="internal_error", message="An unexpected error occurred."),
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# JSON endpoints
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and a database round-trip check. No auth required."""
    database_ok = request.app.state.user_store.ping()
    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        version=__version__,
        components={"app": "ok", "database": "ok" if database_ok else "error"},
    )


@app.get("/api/v1/me", tags=["Auth"])
def me(identity: Identity = Depends(get_current_identity)) -> MeResponse:
    """Return the identity bound to the session cookie (401 without one)."""
    return MeResponse.from_identity(identity)

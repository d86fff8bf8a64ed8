"""
api/main.py -- FastAPI application factory for the film library.

create_app(settings) builds a fully wired app from an explicit Settings
object. Nothing here reads the environment; asgi.py does that once via
get_settings() and the test suite passes its own Settings.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces the rate limits of app.state.limiter

Lifespan builds the stores, token codec, authenticator, query engine and
mutator on startup, parks them on app.state, and closes the stores on
shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException

from api.limiter import build_limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.auth import build_auth_router
from api.routes.catalog import admin_router, build_query_router
from auth.authenticator import Authenticator
from auth.dependencies import require_admin, require_user
from auth.store import CredentialStore
from auth.tokens import TokenCodec
from catalog.mutator import CatalogMutator
from catalog.query import QueryEngine
from catalog.store import CatalogStore
from core.config import Settings
from core.errors import AppError, StoreError

VERSION = "0.1.0"
PREFIX = "/filmlibrary"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("filmlibrary.api")


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Wall-clock time is captured before and after call_next so latency
# is reported on every response.
# ---------------------------------------------------------------------------


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
# Exception handlers
#
# All handlers return the same {"error": "<message>"} envelope so API clients
# can parse errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render the domain error taxonomy (core/errors.py).

    StoreError is the one place store failures are logged. The client gets
    the generic message; the chained driver exception stays in the log.
    """
    if isinstance(exc, StoreError):
        logger.error(
            "Store failure on %s %s: %s",
            request.method,
            request.url.path,
            exc.__cause__ or exc,
            exc_info=exc,
        )
    return _error(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with the first problem when the body or params fail validation."""
    errors = exc.errors()
    if not errors:
        return _error(400, "Invalid request.")
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid value")
    return _error(400, f"{loc}: {message}" if loc else message)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when a rate limit is exceeded.

    Retry-After tells clients how many seconds to wait before retrying.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "Too many requests.")
    response.headers["Retry-After"] = str(retry_after)
    return response


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Framework-raised HTTP errors (404 for unknown paths, 405, ...)."""
    return _error(exc.status_code, str(exc.detail))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# No auth and no rate limit -- load balancers and monitoring must reach it.
# ---------------------------------------------------------------------------


def health(request: Request) -> HealthResponse:
    """Return liveness, version, and whether both databases answer."""
    try:
        db_ok = request.app.state.credential_store.ping() and request.app.state.catalog_store.ping()
    except StoreError:
        logger.warning("Health check: database unavailable")
        db_ok = False
    return HealthResponse(
        version=VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings) -> FastAPI:
    """Build the application around an explicit Settings object."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Construct every collaborator from settings; tear the stores down on exit.

        Order: stores first, then the codec, then the services that take
        them as constructor arguments.
        """
        logger.info("Film library API starting up")
        credential_store = CredentialStore(settings.auth_db_url)
        catalog_store = CatalogStore(settings.catalog_db_url)
        codec = TokenCodec(settings.secret_key, settings.token_expire_seconds)

        app.state.settings = settings
        app.state.credential_store = credential_store
        app.state.catalog_store = catalog_store
        app.state.token_codec = codec
        app.state.authenticator = Authenticator(credential_store, codec)
        app.state.query_engine = QueryEngine(catalog_store)
        app.state.mutator = CatalogMutator(catalog_store)
        logger.info("Stores initialized")

        yield

        credential_store.close()
        catalog_store.close()
        logger.info("Film library API shutdown complete")

    app = FastAPI(
        title="Film Library API",
        description="Role-gated catalog of films and actors.",
        version=VERSION,
        lifespan=lifespan,
    )

    # Register in the order the request should encounter them:
    # TrustedHost -> CORS -> SlowAPI.
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Authorization"],
        max_age=3600,
    )
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(log_requests)

    # SlowAPI looks for app.state.limiter by convention. One Limiter per app,
    # so counters and the on/off switch never leak between apps.
    limiter = build_limiter(settings.rate_limit_enabled)
    app.state.limiter = limiter

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_api_route(f"{PREFIX}/health", health, methods=["GET"], response_model=HealthResponse, tags=["Health"])
    app.include_router(build_auth_router(limiter), prefix=PREFIX)
    app.include_router(build_query_router(require_user), prefix=PREFIX, tags=["Catalog"])
    app.include_router(build_query_router(require_admin), prefix=f"{PREFIX}/admin", tags=["Admin"])
    app.include_router(admin_router, prefix=f"{PREFIX}/admin", tags=["Admin"])

    return app

"""
ReadNote Server — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, error mapping,
       and store lifecycle in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn readnote.main:app) or the
       `readnote-server` console script.

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware Chain:                                   │
    │  ┌──────┐ ┌────────┐ ┌─────────┐ ┌──────┐            │
    │  │ CORS │→│ Req ID │→│ Logging │→│ GZip │            │
    │  └──────┘ └────────┘ └─────────┘ └──────┘            │
    │                                                      │
    │  Routes:                                             │
    │  ┌───────────────────────────┐ ┌──────────────────┐  │
    │  │ /api/* (store required)   │ │ /* static + SPA  │  │
    │  └───────────────────────────┘ └──────────────────┘  │
    │                                                      │
    │  Exception Handlers:                                 │
    │  Validation→400 │ NotFound→404 │ Body/Storage→500 │  │
    │  StorageUnavailable→503                              │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, start connecting to Redis in the background
    Shutdown: cancel a pending connect, close the Redis connection
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from readnote import __version__
from readnote.config import settings
from readnote.exceptions import (
    NotFoundError,
    ReadNoteError,
    RequestBodyError,
    StorageError,
    StorageUnavailableError,
    ValidationError,
)
from readnote.middleware.cors import ALLOW_ORIGIN_HEADERS, OpenCORSMiddleware
from readnote.middleware.logging import RequestLoggingMiddleware
from readnote.middleware.request_id import RequestIDMiddleware, current_request_id
from readnote.routes import api, static
from readnote.services.static_service import StaticFileService
from readnote.store import StoreClient

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our access logger replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup never waits for Redis: the connect runs as a background task and
    the API answers 503 until it succeeds. A failed connect leaves the store
    FAILED for the life of the process; static serving is unaffected.
    """
    setup_logging()
    store: StoreClient = app.state.store

    logger.info("=" * 60)
    logger.info("ReadNote server starting up...")
    logger.info("Redis: %s", "configured" if store.url else "not configured")
    logger.info("Static root: %s", app.state.static_files.root)

    connect_task: Optional[asyncio.Task] = None
    if store.url:
        connect_task = asyncio.create_task(store.connect())
    else:
        logger.info("No REDIS_URL provided, running without cloud storage")

    logger.info("ReadNote running on http://%s:%d", settings.host, settings.port)
    logger.info("=" * 60)

    yield

    logger.info("ReadNote server shutting down...")
    if connect_task is not None and not connect_task.done():
        connect_task.cancel()
        try:
            await connect_task
        except asyncio.CancelledError:
            logger.info("Pending Redis connect cancelled")
    await store.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": current_request_id(request)}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _internal_message(exc: ReadNoteError, generic: str) -> str:
    """Underlying error text when details are exposed, a generic line otherwise."""
    return exc.message if settings.expose_error_details else generic


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and a uniform JSON body.

    Handler hierarchy:
        ValidationError          → 400 validation_error
        NotFoundError            → 404 not_found
        RequestBodyError         → 500 invalid_body
        StorageError             → 500 storage_error
        StorageUnavailableError  → 503 storage_unavailable
        ReadNoteError (base)     → 500 server_error
        Exception (fallback)     → 500 internal_server_error
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", current_request_id(request), exc.message)
        return _error_response(request, 400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(request, 404, "not_found", exc.message)

    @app.exception_handler(RequestBodyError)
    async def handle_body_error(request: Request, exc: RequestBodyError):
        logger.error("[%s] Unreadable request body: %s", current_request_id(request), exc.message)
        return _error_response(
            request, 500, "invalid_body", _internal_message(exc, "Request body could not be read.")
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error(
            "[%s] Storage error: %s | Context: %s",
            current_request_id(request), exc.message, exc.context,
        )
        return _error_response(
            request, 500, "storage_error", _internal_message(exc, "A storage error occurred.")
        )

    @app.exception_handler(StorageUnavailableError)
    async def handle_storage_unavailable(request: Request, exc: StorageUnavailableError):
        logger.debug(
            "[%s] Storage unavailable: %s | Context: %s",
            current_request_id(request), exc.message, exc.context,
        )
        return _error_response(request, 503, "storage_unavailable", exc.message)

    @app.exception_handler(ReadNoteError)
    async def handle_app_error(request: Request, exc: ReadNoteError):
        logger.error("[%s] Application error: %s", current_request_id(request), exc.message)
        return _error_response(
            request, 500, "server_error", _internal_message(exc, "An internal error occurred.")
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for unexpected errors.

        Runs outside the middleware stack: the allow-origin header is added
        here rather than by OpenCORSMiddleware, and the request ID is read
        from request.state since the ContextVar is already reset.
        """
        rid = current_request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        message = str(exc) if settings.expose_error_details else "An unexpected error occurred."
        return _error_response(
            request, 500, "internal_server_error", message, headers=ALLOW_ORIGIN_HEADERS
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    store: Optional[StoreClient] = None,
    static_files: Optional[StaticFileService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: Store client to use; built from settings (not yet connected) if None.
        static_files: Static file service; built from settings if None.

    Both are placed on app.state, where request dependencies read them.
    """
    app = FastAPI(
        title="ReadNote API",
        description="Cloud persistence for the ReadNote reader: books, reading progress, and notes.",
        version=__version__,
        docs_url="/docs" if settings.enable_docs else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.enable_docs else None,
        lifespan=lifespan,
    )

    app.state.store = store if store is not None else StoreClient.from_settings()
    app.state.static_files = static_files if static_files is not None else StaticFileService()

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = outermost. Execution order: CORS → RequestID → Logging → GZip
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(OpenCORSMiddleware)

    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    # API first: the static catch-all would match /api/... too
    app.include_router(api.router)
    app.include_router(static.router)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn on HOST:PORT."""
    import uvicorn

    uvicorn.run("readnote.main:app", host=settings.host, port=settings.port)


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `readnote.main:app` to be importable
app = create_app()


if __name__ == "__main__":
    run()

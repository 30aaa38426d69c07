"""
TextCollector — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application.
How:   create_app() wires settings, the snippet store, the service layer,
       middleware, exception handlers and routes. The store is an explicit
       object on app.state; there is no module-level engine.
Who:   uvicorn (`textcollector serve` or `uvicorn textcollector.main:app`)
       and the test suite, which passes in its own Settings and Database.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Logging → CORS           │
    │                                                     │
    │  Routes:  /api/snippets  /api/tags  /api/stats      │
    │           /api/export  /api/import  /api/data       │
    │           /api/shortcuts/add-snippet  /health       │
    │                                                     │
    │  Exception Handlers:                                │
    │   Validation→400  NotFound→404  Persistence→500     │
    │   StoreUnavailable→503                              │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, open the store (fatal if it cannot be opened)
    Shutdown: dispose the store if this app opened it
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from textcollector import __version__
from textcollector.config import Settings, settings as default_settings
from textcollector.database import Database
from textcollector.exceptions import (
    DatabaseError,
    NotFoundError,
    PersistenceError,
    StoreUnavailableError,
    TextCollectorError,
    ValidationError,
)
from textcollector.logging_config import setup_logging
from textcollector.middleware.logging import RequestLoggingMiddleware
from textcollector.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDMiddleware,
    request_id_var,
)
from textcollector.routes import data, health, shortcuts, snippets, tags
from textcollector.services import create_snippet_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Configure logging
        2. Open the snippet store unless the caller already did.
           StoreUnavailableError propagates: the server does not start
           without its data file.

    Shutdown:
        Dispose the store if it was opened here.
    """
    app_settings: Settings = app.state.settings
    database: Database = app.state.database

    setup_logging(app_settings.log_level)
    logger.info("TextCollector %s starting up...", __version__)

    opened_here = False
    if not database.is_open:
        try:
            await database.init()
        except StoreUnavailableError as e:
            logger.critical("Cannot start: %s", e.message)
            raise
        opened_here = True

    logger.info("Server ready at http://%s:%d", app_settings.host, app_settings.port)

    yield

    logger.info("TextCollector shutting down...")
    if opened_here:
        await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    rid = _request_id(request)
    content = {"error": error, "message": message, "request_id": rid}
    if details:
        content["details"] = details
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={REQUEST_ID_HEADER: rid} if rid else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy to JSON error responses.

    Handler hierarchy (most specific wins):
        ValidationError         → 400
        NotFoundError           → 404
        PersistenceError        → 500, message carries the store's reason
        DatabaseError           → 500, generic message
        StoreUnavailableError   → 503
        TextCollectorError      → 500
        Exception (fallback)    → 500, stack trace logged only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc.message)
        return _error_response(request, 400, "validation_error", exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(request, 404, "not_found", exc.message)

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        logger.error("Persistence error: %s | Context: %s", exc.message, exc.context)
        details = {"operation": exc.operation} if exc.operation else None
        return _error_response(request, 500, "persistence_error", exc.message, details)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return _error_response(
            request, 500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        logger.error("Store unavailable: %s", exc.reason)
        return _error_response(request, 503, "store_unavailable", "The snippet store is not available.")

    @app.exception_handler(TextCollectorError)
    async def handle_app_error(request: Request, exc: TextCollectorError):
        logger.error("Application error: %s | Context: %s", exc.message, exc.context)
        return _error_response(request, 500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return _error_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; the environment-derived settings by default
        database: An existing store (opened or not). When omitted one is
                  built from settings and opened by the lifespan handler.
    """
    settings = settings or default_settings
    if database is None:
        database = Database(
            settings.resolved_database_url,
            echo=settings.log_level == "DEBUG",
            busy_timeout=settings.db_busy_timeout,
        )

    app = FastAPI(
        title="TextCollector API",
        description="Collect and organize text snippets from anywhere.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.snippet_service = create_snippet_service()

    # ── Register Middleware ───────────────────────────────────────────────
    # Executed in reverse order of addition: RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, "X-Total-Count"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(snippets.router)
    app.include_router(tags.router)
    app.include_router(data.router)
    app.include_router(shortcuts.router)
    app.include_router(health.router)

    return app


app = create_app()

"""
RLS Notes: FastAPI Application Factory
========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn rlsnotes.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐                   │
    │  │ Req ID   │→│  Logging        │                   │
    │  └──────────┘ └─────────────────┘                   │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────┐ ┌──────────────┐ ┌─────────┐  │
    │  │ /rls/notes/{id}  │ │ /rls/notes   │ │ /health │  │
    │  └──────────────────┘ └──────────────┘ └─────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Auth→401 │ Method→405 │ *→500 (HTML or JSON) │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rlsnotes import __version__
from rlsnotes.auth.session import clear_auth_session
from rlsnotes.config import settings
from rlsnotes.database import dispose_engine
from rlsnotes.exceptions import (
    AuthenticationError,
    DatabaseError,
    MethodNotAllowedError,
    RlsNotesError,
)
from rlsnotes.middleware.logging import RequestLoggingMiddleware
from rlsnotes.middleware.request_id import RequestIDMiddleware, request_id_var
from rlsnotes.rendering import render_error
from rlsnotes.routes import health, notes
from rlsnotes.utils.http import wants_json

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    When:    Called once during app startup (before ANY other initialization).
    Format:  %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:  logging, configuration check.
    Shutdown: dispose the database engine (close all pooled connections).
    """
    setup_logging()
    logger.info("RLS Notes %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health still answers and operators see this in logs
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("RLS Notes shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP responses.

    Handler hierarchy:
        AuthenticationError     → 401 (session cookie cleared)
        MethodNotAllowedError   → 405 (Allow header)
        DatabaseError           → 500 (generic message)
        RlsNotesError (base)    → 500 (InvariantError, UnexpectedResponseError)
        Exception (fallback)    → 500

    500s are rendered by the error boundary page for browsers and as JSON for
    API clients. Internals are logged server-side only.
    """

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        rid = request_id_var.get("")
        logger.info("[%s] Unauthenticated request to %s", rid, request.url.path)
        response = JSONResponse(
            status_code=401,
            content={
                "error": "unauthenticated",
                "message": exc.message,
                "request_id": rid,
            },
        )
        return clear_auth_session(response)

    @app.exception_handler(MethodNotAllowedError)
    async def handle_method_not_allowed(request: Request, exc: MethodNotAllowedError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=405,
            content={
                "error": "method_not_allowed",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
            headers={"Allow": exc.allowed},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        if not wants_json(request):
            return render_error(request, exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(RlsNotesError)
    async def handle_app_error(request: Request, exc: RlsNotesError):
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        if not wants_json(request):
            return render_error(request, exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        if not wants_json(request):
            return render_error(request, exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="RLS Notes",
        description=(
            "Server-rendered notes with session-cookie auth. Every note query "
            "runs under PostgreSQL row-level security scoped to the caller's access token."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID runs first, so the logging middleware sees the request id.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(health.router)

    return app


app = create_app()

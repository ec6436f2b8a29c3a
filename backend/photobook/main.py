"""
Photobook Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       uvicorn serves the module-level `app` (uvicorn photobook.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Rate Limit → Logging          │
    │                                                          │
    │  Routes:                                                 │
    │    /api/submissions    /api/notifications                │
    │    /api/admin          /health                           │
    │                                                          │
    │  Exception Handlers:                                     │
    │    PhotobookError → status_code/code of the subclass     │
    │    RequestValidationError → 400 validation_error         │
    │    Exception → 500                                       │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, optional create_all() for local SQLite runs
    Shutdown: dispose the engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from photobook import __version__
from photobook.config import settings
from photobook.database import create_all, dispose_engine
from photobook.exceptions import PhotobookError, UnexpectedError
from photobook.middleware.logging import RequestLoggingMiddleware
from photobook.middleware.rate_limit import RateLimitMiddleware
from photobook.middleware.request_id import RequestIDMiddleware, request_id_var
from photobook.routes import admin, health, notifications, submissions

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: 2024-01-15T12:00:00 [INFO] photobook.services.workflow_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Photobook Backend %s starting up...", __version__)

    if settings.db_auto_create:
        # Production schemas come from Alembic; this is for local SQLite runs
        await create_all()
        logger.info("Database tables created (DB_AUTO_CREATE)")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Photobook Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(message: str, code: str, details=None) -> dict:
    return {
        "success": False,
        "error": message,
        "code": code,
        "details": details,
        "requestId": request_id_var.get(""),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the error envelope.

    Every PhotobookError subclass carries its own status_code and code, so a
    single handler covers the hierarchy. Server-side failures never expose
    their context in the response; it is logged instead.
    """

    @app.exception_handler(PhotobookError)
    async def handle_photobook_error(request: Request, exc: PhotobookError):
        rid = request_id_var.get("")

        if isinstance(exc, UnexpectedError) or exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.code, exc.message, exc.context)
            return JSONResponse(
                status_code=exc.status_code,
                content=_error_body(
                    "An internal error occurred. Please try again later.", exc.code
                ),
            )

        logger.warning("[%s] %s: %s", rid, exc.code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.code, exc.context or None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Malformed bodies and query strings become 400 validation_error."""
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or None
        message = first.get("msg", "Validation failed")
        if field:
            message = f"{field}: {message}"

        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return JSONResponse(
            status_code=400,
            content=_error_body(
                message,
                "validation_error",
                {"field": field, "errors": len(errors)},
            ),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "An unexpected error occurred. Please try again or contact support.",
                "internal_server_error",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Photobook API",
        description=(
            "Photography marketplace backend: gallery, story, registration and "
            "suggestion moderation with an in-app notification inbox."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RequestID → RateLimit → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(submissions.router)
    app.include_router(notifications.router)
    app.include_router(admin.router)
    app.include_router(health.router)

    return app


app = create_app()

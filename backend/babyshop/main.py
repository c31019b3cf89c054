"""
BabyShop Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, error mapping
       and the database lifecycle in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance
       that owns one `Database`.
Who:   Called by uvicorn (uvicorn babyshop.main:app) and by the tests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware: Request ID → Logging → GZip → CORS          │
    │                                                          │
    │  Routes: /api/products  /api/categories  /api/articles   │
    │          /api/daily-tasks  /api/inviter  /api/image      │
    │          /api/health                                     │
    │                                                          │
    │  Exception Handlers:                                     │
    │    ValidationError→400  NotFoundError→404  Database→500  │
    │                                                          │
    │  app.state.database ── Database (SQL Server pool)        │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Connect to the database (fail fast: bad credentials or an unreachable
       server stop the process instead of failing every request later)
    3. Create the daily-task and baby-profile tables if missing

    Shutdown:
    1. Close the connection pool
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from babyshop import __version__
from babyshop.config import settings
from babyshop.db import Database
from babyshop.db.schema import ensure_schema
from babyshop.exceptions import (
    BabyShopError,
    ConfigurationError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from babyshop.middleware.logging import RequestLoggingMiddleware
from babyshop.middleware.request_id import RequestIDMiddleware, request_id_var
from babyshop.routes import (
    articles,
    categories,
    daily_tasks,
    health,
    image,
    inviter,
    products,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output goes to stdout, which Docker and systemd both capture.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Connect on startup, disconnect on shutdown.

    A configuration or connection error is logged and re-raised: uvicorn
    then exits with a non-zero status, which is what a process supervisor
    needs to see.
    """
    setup_logging()
    database: Database = app.state.database

    logger.info("=" * 60)
    logger.info("BabyShop Backend %s starting up...", __version__)

    try:
        await database.connect()
        await database.query("SELECT 1 AS ok")
        await ensure_schema(database)
    except BabyShopError as e:
        logger.error("Startup failed: %s | Context: %s", e.message, e.context)
        await database.close()
        raise

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("BabyShop Backend shutting down...")
    await database.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    content = {
        "success": False,
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP responses.

    Handler hierarchy:
        ValidationError     → 400 Bad Request
        NotFoundError       → 404 Not Found
        DatabaseError       → 500 (generic message; SQL and driver text logged only)
        ConfigurationError  → 500
        BabyShopError       → 500 (catch-all for custom errors)
        Exception           → 500 (unexpected errors, stack trace logged)

    Responses never include SQL, driver messages or stack traces.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        logger.error("[%s] Configuration error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "configuration_error", "The server is misconfigured.")

    @app.exception_handler(BabyShopError)
    async def handle_app_error(request: Request, exc: BabyShopError):
        logger.error(
            "[%s] %s: %s | Context: %s",
            request_id_var.get(""),
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), exc, exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Assemble the application.

    Args:
        database: Connection provider to use. Defaults to a new `Database`
                  built from settings; tests pass their own.
    """
    app = FastAPI(
        title="BabyShop API",
        description=(
            "Catalog, parenting articles, daily baby-care tasks and photo-based "
            "product lookup for the BabyShop storefront."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database if database is not None else Database()

    # Last added runs first: Request ID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(products.router)
    app.include_router(categories.router)
    app.include_router(articles.router)
    app.include_router(daily_tasks.router)
    app.include_router(inviter.router)
    app.include_router(image.router)
    app.include_router(health.router)

    return app


# uvicorn expects `babyshop.main:app` to be importable
app = create_app()

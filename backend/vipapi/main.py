"""
VIP Travel API - FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires settings, middleware, exception handlers, routers
       and the process-wide asset store / database readiness objects.
Who:   uvicorn (`uvicorn vipapi.main:app`) and the test suite
       (create_app(store=..., connection=...)).

Application Architecture:
    ┌───────────────────────────────────────────────────────────┐
    │                        FastAPI App                        │
    │                                                           │
    │  Middleware (outermost first):                            │
    │  Rate Limit → Request ID → Logging → Readiness → GZip/CORS│
    │                                                           │
    │  Routes:                                                  │
    │  /vipapi/{contact-info,gallery,destination,packages,      │
    │           carousel}   /vipapi/images   /vipapi/bookings   │
    │  /health                                                  │
    │                                                           │
    │  app.state.asset_store    AssetStore (readiness-gated)    │
    │  app.state.db_connection  DatabaseConnection              │
    └───────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, one attempt to connect the
              database and initialize the asset store (failure tolerated;
              the readiness middleware retries on each request)
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from vipapi import __version__
from vipapi.config import settings
from vipapi.database import DatabaseConnection, db_connection, dispose_engine
from vipapi.exceptions import (
    AssetStoreError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
    VipApiError,
)
from vipapi.middleware.logging import RequestLoggingMiddleware
from vipapi.middleware.rate_limit import RateLimitMiddleware
from vipapi.middleware.readiness import ReadinessMiddleware
from vipapi.middleware.request_id import RequestIDMiddleware, request_id_var
from vipapi.routes import bookings, content, health, images
from vipapi.services.asset_store import AssetStore, asset_store

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, at startup.

    Format: 2024-01-15T12:00:00 [INFO] vipapi.services.asset_store: message
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
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("VIP Travel API %s starting up (%s)", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    # Warm up once; the readiness middleware takes over if this fails
    connection: DatabaseConnection = app.state.db_connection
    store: AssetStore = app.state.asset_store
    try:
        await connection.connect()
        await store.initialize()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database not reachable at startup, will retry per request: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("VIP Travel API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy to JSON error responses.

        ValidationError        → 400
        NotFoundError          → 404 (documents and images)
        ConflictError          → 409
        StoreUnavailableError  → 503 + Retry-After
        AssetStoreError        → 500 (includes StoreWriteError)
        DatabaseError          → 500
        VipApiError            → 500
        Exception              → 500

    Server-side errors never return their context; it is logged instead.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.warning("[%s] Write conflict: %s", request_id_var.get(""), exc.context)
        return error_response(409, "conflict", exc.message, details=exc.context)

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        logger.warning("[%s] Asset store unavailable: %s", request_id_var.get(""), exc.context)
        return error_response(
            503,
            "store_unavailable",
            exc.message,
            details={"retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(AssetStoreError)
    async def handle_asset_store_error(request: Request, exc: AssetStoreError):
        logger.error(
            "[%s] Asset store error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return error_response(500, "storage_error", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(VipApiError)
    async def handle_app_error(request: Request, exc: VipApiError):
        logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    store: Optional[AssetStore] = None,
    connection: Optional[DatabaseConnection] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        store:      Asset store to serve images from (default: the process-wide one)
        connection: Readiness tracker the middleware waits on (default: the
                    process-wide one)
    """
    app = FastAPI(
        title="VIP Travel API",
        description=(
            "Content and booking backend for the VIP travel site. Images are "
            "stored in the database and served from /vipapi/images."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.asset_store = store or asset_store
    app.state.db_connection = connection or db_connection

    # Last added runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        ReadinessMiddleware,
        connection=app.state.db_connection,
        store=app.state.asset_store,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    @app.get("/", include_in_schema=False)
    async def root():
        return {"message": "Server is running"}

    for router in content.routers:
        app.include_router(router)
    app.include_router(images.router)
    app.include_router(bookings.router)
    app.include_router(health.router)

    return app


app = create_app()

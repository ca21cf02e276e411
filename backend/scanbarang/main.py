"""
Scan Barang Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       static file serving and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn scanbarang.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware Chain:                                   │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐         │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │         │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘         │
    │                                                      │
    │  Routes:                                             │
    │  /api/auth  /api/barang  /api/scanner  /api/event    │
    │  /health  /                                          │
    │                                                      │
    │  Static:                                             │
    │  /images/{owner}/...      /qr_codes/{owner}/...      │
    │                                                      │
    │  Exception Handlers:                                 │
    │  ScanBarangError → its status │ request schema → 400 │
    │  SQLAlchemyError → 500        │ anything else → 500  │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Report missing credentials (non-fatal)
    3. Create storage directories, sweep orphaned staged files
    Shutdown:
    1. Dispose database engine (close all connections)
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
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from scanbarang import __version__
from scanbarang.config import settings
from scanbarang.database import dispose_engine
from scanbarang.exceptions import ScanBarangError
from scanbarang.middleware.logging import RequestLoggingMiddleware
from scanbarang.middleware.request_id import RequestIDMiddleware, request_id_var
from scanbarang.routes import auth, barang, event, health, scanner
from scanbarang.services.file_service import KIND_IMAGES, KIND_QR_CODES, file_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout
    (containers capture stdout). Called once, first thing in the lifespan.
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
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("aiosmtplib").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Scan Barang Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Item and event routes still work; auth routes will answer 500
        logger.error("Configuration error: %s", str(e))

    file_service.ensure_directories()
    file_service.sweep_staging()
    logger.info("Storage directory: %s", file_service.storage_root)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Scan Barang Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(message: str, details=None) -> dict:
    body = {"error": message}
    if details:
        body["details"] = details
    body["request_id"] = request_id_var.get("")
    return body


def describe_validation_errors(exc: RequestValidationError) -> str:
    """'name: Field required; quantity: Input should be greater than or equal to 0'"""
    parts = []
    for err in exc.errors():
        loc = ".".join(
            str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "header")
        )
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to `{"error", "details"?, "request_id"}` responses.

    Handler hierarchy:
        ScanBarangError         → exc.status_code (400/401/403/404/409/500)
        RequestValidationError  → 400 (missing or malformed request fields)
        SQLAlchemyError         → 500 (generic message, details logged)
        Exception (fallback)    → 500

    `context` is logged and never returned. Stack traces are logged only
    for 5xx.
    """

    @app.exception_handler(ScanBarangError)
    async def handle_app_error(request: Request, exc: ScanBarangError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s",
                rid, type(exc).__name__, exc.message, exc.context,
            )
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = describe_validation_errors(exc)
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return JSONResponse(
            status_code=400,
            content=error_body("Invalid request", message),
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body("A database error occurred. Please try again later."),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body("An unexpected error occurred. Please try again."),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Scan Barang API",
        description=(
            "Inventory tracking and event-based QR code check-in. "
            "Register items with photos and QR labels, organize scanning into "
            "events, and mark scans and events complete."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in REVERSE order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(barang.router)
    app.include_router(scanner.router)
    app.include_router(event.router)
    app.include_router(health.router)

    @app.get("/", tags=["Health"], summary="Liveness message")
    async def root() -> dict:
        return {"message": "Backend is running"}

    # ── Static Files ──────────────────────────────────────────────────────
    # check_dir=False: the directories are created in the lifespan
    app.mount(
        "/images",
        StaticFiles(directory=str(file_service.kind_root(KIND_IMAGES)), check_dir=False),
        name="images",
    )
    app.mount(
        "/qr_codes",
        StaticFiles(directory=str(file_service.kind_root(KIND_QR_CODES)), check_dir=False),
        name="qr_codes",
    )

    return app


# uvicorn imports `scanbarang.main:app`
app = create_app()

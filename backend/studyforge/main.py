"""
StudyForge Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers.
Who:   uvicorn (uvicorn studyforge.main:app) and the route tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware:  Request ID → Logging → GZip → CORS        │
    │                                                         │
    │  Routes:                                                │
    │    /api/summaries   /api/flashcards   /api/quiz         │
    │    /api/extract     /health                             │
    │                                                         │
    │  Exception Handlers:                                    │
    │    UploadValidationError → 400                          │
    │    ClassifiedError       → error.status_code            │
    │    FileStorageError      → 500                          │
    │    Exception             → 500 (generic message)        │
    └─────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from studyforge import __version__
from studyforge.config import settings
from studyforge.exceptions import (
    ClassifiedError,
    FileStorageError,
    RateLimitedError,
    UploadValidationError,
)
from studyforge.middleware.logging import RequestLoggingMiddleware
from studyforge.middleware.request_id import RequestIDMiddleware, current_request_id
from studyforge.routes import extract, flashcards, health, quiz, summaries

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] studyforge.services.orchestrator: message
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # SDK transports log every HTTP call at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("groq").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("StudyForge Backend %s starting up...", __version__)
    logger.info(
        "Default provider: %s, vision provider: %s",
        settings.default_provider,
        settings.vision_provider,
    )

    # Missing keys are reported, not fatal: /health shows them and each
    # generation call fails with a ConfigurationError naming the variable.
    for problem in settings.validate_required_for_production():
        logger.error("Configuration problem: %s", problem)

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("StudyForge Backend shutting down...")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or current_request_id()


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to JSON error bodies.

    Every generation failure is a ClassifiedError, so a single handler covers
    the whole taxonomy: the status code and remediation are data on the error.
    The original provider exception (`cause`) and `context` are logged, never
    returned.
    """

    @app.exception_handler(UploadValidationError)
    async def handle_upload_validation(request: Request, exc: UploadValidationError):
        rid = _request_id(request)
        logger.warning("[%s] Upload rejected: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(ClassifiedError)
    async def handle_classified_error(request: Request, exc: ClassifiedError):
        rid = _request_id(request)
        log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(
            log_level,
            "[%s] %s: %s | Context: %s",
            rid,
            exc.kind.value,
            exc.message,
            exc.context,
        )
        headers = {}
        if isinstance(exc, RateLimitedError):
            headers["Retry-After"] = str(exc.retry_after)
        return JSONResponse(
            status_code=exc.status_code,
            content={**exc.to_dict(), "request_id": rid},
            headers=headers,
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        rid = _request_id(request)
        logger.error("[%s] File storage error: %s | Context: %s", rid, exc.message, exc.context)
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
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
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
        title="StudyForge API",
        description=(
            "Turns notes, images and PDFs into summaries, flashcards and quiz questions "
            "using Gemini, Groq or OpenAI models with automatic model fallback."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RequestID → Logging → GZip → CORS
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
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(summaries.router)
    app.include_router(flashcards.router)
    app.include_router(quiz.router)
    app.include_router(extract.router)
    app.include_router(health.router)

    return app


app = create_app()

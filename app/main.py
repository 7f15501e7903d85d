"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.config import settings
from app.core.database import close_db, init_db
from app.core.exceptions import (
    AuthenticationError,
    ConcurrencyConflictError,
    GenerationError,
    InvalidStateTransitionError,
    NotFoundError,
    PartialCommitError,
    PermissionDeniedError,
    PlexipediaError,
    ValidationError,
)
from app.core.logging import setup_logging
from app.core.redis import close_redis

logger = logging.getLogger(__name__)

# Most specific first; the first match wins.
ERROR_STATUS_CODES: list[tuple[type[PlexipediaError], int]] = [
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (InvalidStateTransitionError, status.HTTP_409_CONFLICT),
    (ConcurrencyConflictError, status.HTTP_409_CONFLICT),
    (PartialCommitError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (GenerationError, status.HTTP_502_BAD_GATEWAY),
]


def status_code_for(exc: PlexipediaError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def plexipedia_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a domain error as a short JSON summary."""
    error = cast(PlexipediaError, exc)
    status_code = status_code_for(error)
    log_extra = {
        "path": request.url.path,
        "error_class": type(error).__name__,
        "status_code": status_code,
        "details": error.details,
    }
    if status_code >= 500:
        logger.error("Request failed", extra=log_extra)
    else:
        logger.info("Request rejected", extra=log_extra)

    message, details = error.message, error.details
    if status_code >= 500 and not isinstance(error, (PartialCommitError, GenerationError)):
        # Store faults carry driver text; only a summary goes out.
        message, details = "Internal server error", {}
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "error": type(error).__name__, "details": details},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    setup_logging(settings.log_level)

    logger.info(
        "Starting Plexipedia",
        extra={
            "environment": settings.environment,
            "version": settings.app_version,
            "model_standard": settings.get_model("standard"),
            "model_fast": settings.get_model("fast"),
        },
    )

    if settings.environment == "development":
        await init_db()
        logger.info("Development database initialized")

    yield

    logger.info("Shutting down Plexipedia")
    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Collaborative encyclopedia back end: versioned articles, "
            "moderated revisions and batch AI draft generation"
        ),
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        cast(Any, CORSMiddleware),
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PlexipediaError, plexipedia_error_handler)

    # Include API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get(
        "/health",
        summary="Health check",
        description="Return service health status and backend version information.",
    )
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()

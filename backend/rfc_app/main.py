"""FastAPI application entry point.

This module creates and configures the FastAPI application, including:
- Lifespan: engine creation and schema migration before serving
- Exception handlers for API errors
- API v1 router mounting
- Health check endpoint
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from rfc_app.api.v1.router import router as v1_router
from rfc_app.core.config import Settings, settings
from rfc_app.core.database import (
    create_engine,
    create_session_factory,
    ensure_database_directory,
)
from rfc_app.core.errors import APIError
from rfc_app.core.rate_limiting import limiter, rate_limit_exceeded_handler
from rfc_app.core.responses import ErrorDetail, ErrorResponse
from rfc_app.core.schema import ensure_schema

logger = structlog.get_logger()


def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors with the standard error envelope.

    Args:
        request: The incoming request.
        exc: The APIError that was raised.

    Returns:
        JSONResponse with error envelope and appropriate status code.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=exc.code,
                message=exc.message,
                details=exc.details,
            )
        ).model_dump(),
    )


def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert FastAPI's validation errors to the standard format.

    Returns:
        JSONResponse with VALIDATION_ERROR code and field-level details.
    """
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=ErrorDetail(
                code="VALIDATION_ERROR",
                message="Request validation failed",
                details=[
                    {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
                    for e in exc.errors()
                ],
            )
        ).model_dump(),
    )


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions.

    Returns 500 INTERNAL_ERROR without exposing stack traces; logs the
    exception for debugging.
    """
    logger.exception("Unhandled exception", exc_info=exc, path=str(request.url.path))

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
            )
        ).model_dump(),
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The lifespan opens the store and runs ensure_schema() before the first
    request is accepted. A SchemaError propagates out of startup, so the
    server never serves a half-migrated store.

    Args:
        app_settings: Settings to use. Defaults to the environment settings.

    Returns:
        Configured FastAPI application instance.
    """
    config = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        ensure_database_directory(config.database_path)
        engine = create_engine(config.database_url, echo=config.database_echo)
        try:
            applied = await ensure_schema(engine)
            logger.info(
                "Schema ready",
                database=str(config.database_path),
                migrations=applied,
            )
            app.state.engine = engine
            app.state.session_factory = create_session_factory(engine)
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title="RFC App API",
        version="1.0.0",
        description="Sign-in codes and comments for RFC discussions",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
    )

    # Register exception handlers
    # Order matters: specific handlers first, then catch-all
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    app.state.limiter = limiter

    app.include_router(v1_router, prefix="/api/v1")

    @app.get("/health")
    def health_check() -> dict:
        """Health check endpoint for monitoring.

        Returns:
            {"status": "healthy"} if service is running.
        """
        return {"status": "healthy"}

    return app


# Used by uvicorn: uvicorn rfc_app.main:app
app = create_app()

"""
FastAPI application entry point with health endpoints and service routing.

This module builds the application: CORS configuration, request correlation
logging, translation of service errors into HTTP responses, the health and
readiness endpoints and the versioned API routers.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from dealer_sales.api.v1 import api_router
from dealer_sales.core.config import get_settings
from dealer_sales.core.exceptions import DealerSalesError, ErrorKind
from dealer_sales.core.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    log_performance,
    set_request_id,
)
from dealer_sales.database.connection import (
    check_database_health,
    close_database_connections,
)

configure_logging()
logger = get_logger(__name__)

ERROR_STATUS_CODES = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.FATAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan context manager for startup and shutdown events.

    Args:
        app: FastAPI application instance

    Yields:
        None during application runtime
    """
    settings = get_settings()

    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        version=settings.app_version,
    )

    yield

    logger.info("Application shutting down")
    with log_performance(logger, "application_shutdown"):
        await close_database_connections()


async def request_logging_middleware(request: Request, call_next):
    """
    Middleware for request logging and correlation ID management.

    Sets request ID for correlation, logs request details, and measures
    response time. Clears context after request processing.

    Returns:
        HTTP response with X-Request-ID header
    """
    request_id = set_request_id(request.headers.get("X-Request-ID"))

    logger.info(
        "Request received",
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None,
    )

    try:
        with log_performance(
            logger,
            "request_processing",
            method=request.method,
            path=request.url.path,
        ):
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
        return response
    finally:
        clear_context()


async def service_error_handler(request: Request, exc: DealerSalesError) -> JSONResponse:
    """
    Translate a service error into the HTTP status of its kind.

    Fatal errors are logged at error level; the rest are expected outcomes
    of valid requests against the current state.
    """
    status_code = ERROR_STATUS_CODES.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    log = logger.error if exc.kind == ErrorKind.FATAL else logger.info
    log(
        "Request rejected",
        method=request.method,
        path=request.url.path,
        kind=exc.kind.value,
        error=exc.message,
    )

    content = exc.to_dict()
    content["request_id"] = get_request_id()
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind == ErrorKind.UNAUTHENTICATED else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError | ValidationError
) -> JSONResponse:
    """
    Handle request and filter validation errors with a structured response.

    Returns:
        JSON response with validation error details
    """
    if isinstance(exc, ValidationError):
        errors = exc.errors(include_url=False, include_context=False)
    else:
        errors = exc.errors()
    details = jsonable_encoder(
        [{key: value for key, value in error.items() if key != "input"} for error in errors]
    )
    logger.warning(
        "Request validation failed",
        method=request.method,
        path=request.url.path,
        errors=details,
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": details,
            "request_id": get_request_id(),
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions without exposing internal details.
    """
    logger.error(
        "Unhandled exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
            "request_id": get_request_id(),
        },
    )


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Dealer vehicle sales backend API",
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.middleware("http")(request_logging_middleware)

    app.add_exception_handler(DealerSalesError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health check endpoint",
    )
    async def health_check() -> dict[str, str]:
        """Always returns 200 OK while the process is serving."""
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    @app.get(
        "/ready",
        tags=["Health"],
        summary="Readiness check endpoint",
    )
    async def readiness_check() -> JSONResponse:
        """Returns 503 until the database answers."""
        database_ready = await check_database_health()
        return JSONResponse(
            status_code=(
                status.HTTP_200_OK
                if database_ready
                else status.HTTP_503_SERVICE_UNAVAILABLE
            ),
            content={
                "status": "ready" if database_ready else "not_ready",
                "database": "healthy" if database_ready else "unhealthy",
            },
        )

    app.include_router(api_router, prefix=settings.api_v1_prefix)
    return app


app = create_app()

"""
FastAPI application entry point.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ohmage.campaigns.router import router as campaigns_router
from ohmage.config import get_settings
from ohmage.shared.correlation import CorrelationIdMiddleware
from ohmage.shared.database import get_database_manager
from ohmage.shared.exceptions import (
    AppException,
    AuthenticationError,
    CampaignNotFoundError,
    ClassNotFoundError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    VisualizationError,
)
from ohmage.shared.logging import get_logger, setup_logging
from ohmage.surveys.router import router as surveys_router
from ohmage.users.router import router as users_router
from ohmage.visualization.router import router as visualization_router

logger = get_logger(__name__)

# First match wins; subclasses must precede their bases.
_STATUS_BY_EXCEPTION: tuple[tuple[type[AppException], int], ...] = (
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (CampaignNotFoundError, status.HTTP_404_NOT_FOUND),
    (ClassNotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (VisualizationError, status.HTTP_502_BAD_GATEWAY),
)


def status_for_exception(exc: AppException) -> int:
    """HTTP status code for an application exception."""
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def failure_body(code: str, message: str, **extra: object) -> dict[str, object]:
    return {"result": "failure", "detail": {"code": code, "message": message, **extra}}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging()
    logger.info("Application starting", extra={"env": get_settings().app_env})

    yield

    await get_database_manager().close()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ohmage API",
        description="Mobile-sensing data collection server",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    # Exception handlers
    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request,
        exc: AppException,
    ) -> JSONResponse:
        """Map application exceptions to failure responses."""
        status_code = status_for_exception(exc)
        log = logger.error if status_code >= 500 else logger.info
        log(
            exc.message,
            extra={
                "code": exc.code,
                "details": exc.details,
                "path": request.url.path,
                "status_code": status_code,
            },
        )
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return JSONResponse(
            status_code=status_code,
            content=failure_body(exc.code, exc.message),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append(
                {
                    "field": field,
                    "message": error["msg"],
                    "type": error["type"],
                }
            )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=failure_body("VALIDATION_ERROR", "Request validation failed", errors=errors),
        )

    # Include routers
    app.include_router(campaigns_router)
    app.include_router(users_router)
    app.include_router(surveys_router)
    app.include_router(visualization_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()

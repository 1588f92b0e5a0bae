"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from modules.credits.routes import router as credits_router
from modules.notifications.routes import router as email_router
from modules.subscriptions.routes import router as subscription_router
from modules.upscale.routes import router as upscale_router
from shared.config import Settings, get_settings
from shared.exceptions import PixelPerfectError
from shared.logging import configure_logging
from shared.models import ErrorBody, ErrorResponse

from .dependencies import ServiceContainer
from .routes import health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app_name} on {settings.host}:{settings.port}")
    yield
    await app.state.container.aclose()
    logger.info(f"Shutting down {settings.app_name}")


def _error_response(status_code: int, body: ErrorBody, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=body).model_dump(),
        headers=headers or None,
    )


async def handle_app_error(request: Request, exc: PixelPerfectError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
    return _error_response(exc.status_code, ErrorBody(**exc.to_dict()), exc.headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return _error_response(400, ErrorBody(
        code="VALIDATION_ERROR",
        message="Invalid request",
        details={"errors": errors},
    ))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return _error_response(500, ErrorBody(
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
    ))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment if omitted

    Returns:
        Configured FastAPI instance
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Credit-metered AI image upscaling API",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.container = ServiceContainer(settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Error envelopes
    app.add_exception_handler(PixelPerfectError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(credits_router, prefix="/api/credits", tags=["credits"])
    app.include_router(upscale_router, prefix="/api/upscale", tags=["upscale"])
    app.include_router(subscription_router, prefix="/api/subscription", tags=["subscription"])
    app.include_router(email_router, prefix="/api/email", tags=["email"])

    return app

"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from shared.config import Settings

from ..dependencies import get_settings_dependency

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    storage: str
    billing: str
    inference: str
    email: str


def _configured(value: str) -> str:
    return "configured" if value else "missing"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_settings_dependency),
) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=settings.app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    settings: Settings = Depends(get_settings_dependency),
) -> ReadinessResponse:
    """
    Readiness check endpoint.

    Reports whether each external collaborator is configured. Does not
    call the vendors.
    """
    if settings.storage_backend == "memory":
        storage = "memory"
    else:
        storage = _configured(settings.supabase_url and settings.supabase_service_role_key)
    email = _configured(settings.brevo_api_key or settings.resend_api_key)

    checks = [storage, email]
    return ReadinessResponse(
        status="ready" if "missing" not in checks else "degraded",
        storage=storage,
        billing=_configured(settings.stripe_secret_key),
        inference=_configured(settings.replicate_api_token),
        email=email,
    )

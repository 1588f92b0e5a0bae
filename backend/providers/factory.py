"""Factory functions for creating providers from settings."""

import httpx

from shared.config import Settings

from .brevo import BREVO_DESCRIPTOR, BrevoEmailProvider
from .email_base import BaseEmailProvider
from .fallback import FallbackSelector
from .models import SendEmailParams, SendEmailResult
from .replicate import ReplicateImageProcessor
from .resend import RESEND_DESCRIPTOR, ResendEmailProvider
from .usage import IProviderUsageTracker


def build_email_providers(
    settings: Settings,
    usage: IProviderUsageTracker,
    http_client: httpx.AsyncClient,
) -> list[BaseEmailProvider]:
    """Create the email providers, applying the enabled switches from settings.

    Returns:
        Providers in priority order: brevo, resend
    """
    common = {
        "usage": usage,
        "http_client": http_client,
        "from_address": settings.email_from_address,
        "from_name": settings.email_from_name,
        "dry_run": settings.email_dry_run,
    }
    return [
        BrevoEmailProvider(
            BREVO_DESCRIPTOR.model_copy(update={"enabled": settings.brevo_enabled}),
            api_key=settings.brevo_api_key,
            **common,
        ),
        ResendEmailProvider(
            RESEND_DESCRIPTOR.model_copy(update={"enabled": settings.resend_enabled}),
            api_key=settings.resend_api_key,
            **common,
        ),
    ]


def create_email_selector(
    settings: Settings,
    usage: IProviderUsageTracker,
    http_client: httpx.AsyncClient,
) -> FallbackSelector[SendEmailParams, SendEmailResult]:
    return FallbackSelector(build_email_providers(settings, usage, http_client), capability="email")


def create_image_processor(
    settings: Settings,
    http_client: httpx.AsyncClient,
) -> ReplicateImageProcessor:
    """Create the inference client.

    Raises:
        RuntimeError: If the Replicate API token is not configured
    """
    return ReplicateImageProcessor(
        http_client,
        api_token=settings.replicate_api_token,
        default_model=settings.replicate_model_version,
        base_url=settings.replicate_base_url,
    )

"""
External capability providers.

Public API:
- CapabilityProvider: Base class for interchangeable providers
- FallbackSelector: Priority-ordered selection with fallback
- BrevoEmailProvider / ResendEmailProvider: Email vendors
- ReplicateImageProcessor: Image inference
- Usage trackers for free-tier quotas
"""

from .base import CapabilityProvider
from .brevo import BREVO_DESCRIPTOR, BrevoEmailProvider
from .email_base import BaseEmailProvider
from .exceptions import AllProvidersFailedError, NoProviderAvailableError
from .factory import build_email_providers, create_email_selector, create_image_processor
from .fallback import FallbackOutcome, FallbackSelector, validate_fallback_chain
from .models import (
    EmailCategory,
    FreeTierQuota,
    ProcessedImage,
    ProcessImageParams,
    ProviderDescriptor,
    ProviderStatus,
    ProviderUsage,
    SendEmailParams,
    SendEmailResult,
)
from .replicate import ReplicateImageProcessor
from .resend import RESEND_DESCRIPTOR, ResendEmailProvider
from .usage import (
    IProviderUsageTracker,
    InMemoryProviderUsageTracker,
    SupabaseProviderUsageTracker,
)

__all__ = [
    # Base
    "CapabilityProvider",
    "BaseEmailProvider",
    # Selection
    "FallbackSelector",
    "FallbackOutcome",
    "validate_fallback_chain",
    # Vendors
    "BrevoEmailProvider",
    "ResendEmailProvider",
    "BREVO_DESCRIPTOR",
    "RESEND_DESCRIPTOR",
    "ReplicateImageProcessor",
    # Factory
    "build_email_providers",
    "create_email_selector",
    "create_image_processor",
    # Usage
    "IProviderUsageTracker",
    "InMemoryProviderUsageTracker",
    "SupabaseProviderUsageTracker",
    # Models
    "EmailCategory",
    "FreeTierQuota",
    "ProcessedImage",
    "ProcessImageParams",
    "ProviderDescriptor",
    "ProviderStatus",
    "ProviderUsage",
    "SendEmailParams",
    "SendEmailResult",
    # Exceptions
    "NoProviderAvailableError",
    "AllProvidersFailedError",
]

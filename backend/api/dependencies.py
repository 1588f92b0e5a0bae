"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations from one Settings
instance built at start-up.

The container lives on app.state; there is no module-level instance.
Tests either build the app with storage_backend="memory" or override
the dependency functions below.
"""

from typing import TYPE_CHECKING, Any, Callable, Optional

import httpx
from fastapi import Request

from shared.config import Settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from supabase import Client
    from modules.billing.catalog import PlanCatalog
    from modules.billing.interfaces import IPlanCatalog
    from modules.credits.interfaces import ICreditLedger, ICreditStore, IOperationAuditLog
    from modules.limits.interfaces import IBatchLimiter, IRateLimiter
    from modules.notifications.interfaces import IEmailLog, IEmailPreferenceStore, IEmailService
    from modules.subscriptions.interfaces import (
        IBillingGateway,
        IPlanChangeService,
        ISubscriptionRepository,
    )
    from modules.upscale.interfaces import IImageProcessor, IUpscaleService
    from providers.usage import IProviderUsageTracker


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached for the life
    of the container. With storage_backend="memory" every store is an
    in-memory implementation; vendor clients (Stripe, Replicate, email
    APIs) are still built from settings when first used.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._instances: dict[str, Any] = {}

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def in_memory(self) -> bool:
        return self._settings.storage_backend == "memory"

    def _get(self, name: str, factory: Callable[[], Any]) -> Any:
        if name not in self._instances:
            self._instances[name] = factory()
        return self._instances[name]

    # Infrastructure

    @property
    def db(self) -> "Client":
        """Supabase client (service role)."""
        def build() -> "Client":
            from shared.database import create_supabase_client
            return create_supabase_client(self._settings)
        return self._get("db", build)

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Shared HTTP client for vendor APIs."""
        return self._get(
            "http_client",
            lambda: httpx.AsyncClient(timeout=self._settings.email_timeout_seconds),
        )

    @property
    def inference_http_client(self) -> httpx.AsyncClient:
        """HTTP client for inference; reads wait as long as a whole operation may run."""
        return self._get(
            "inference_http_client",
            lambda: httpx.AsyncClient(
                timeout=httpx.Timeout(
                    self._settings.operation_timeout_seconds,
                    connect=self._settings.email_timeout_seconds,
                )
            ),
        )

    # Billing catalog

    @property
    def catalog(self) -> "PlanCatalog":
        def build() -> "PlanCatalog":
            from modules.billing.catalog import PlanCatalog
            return PlanCatalog.from_path(self._settings.plan_catalog_path)
        return self._get("catalog", build)

    # Credits

    @property
    def credit_store(self) -> "ICreditStore":
        def build() -> "ICreditStore":
            from modules.credits.store import InMemoryCreditStore, SupabaseCreditStore
            if self.in_memory:
                return InMemoryCreditStore(
                    initial_credits=self.catalog.config.free_user.initial_credits
                )
            return SupabaseCreditStore(self.db)
        return self._get("credit_store", build)

    @property
    def audit_log(self) -> "IOperationAuditLog":
        def build() -> "IOperationAuditLog":
            from modules.credits.audit import InMemoryAuditLog, SupabaseAuditLog
            if self.in_memory:
                return InMemoryAuditLog()
            return SupabaseAuditLog(self.db)
        return self._get("audit_log", build)

    @property
    def ledger(self) -> "ICreditLedger":
        def build() -> "ICreditLedger":
            from modules.credits.service import CreditLedger
            return CreditLedger(
                self.credit_store,
                audit_log=self.audit_log,
                timeout_seconds=self._settings.operation_timeout_seconds,
            )
        return self._get("ledger", build)

    # Limits

    @property
    def rate_limiter(self) -> "IRateLimiter":
        def build() -> "IRateLimiter":
            from modules.limits.service import SlidingWindowRateLimiter
            return SlidingWindowRateLimiter(
                limit=self._settings.rate_limit_requests,
                window_seconds=self._settings.rate_limit_window,
            )
        return self._get("rate_limiter", build)

    @property
    def batch_limiter(self) -> "IBatchLimiter":
        def build() -> "IBatchLimiter":
            from modules.limits.service import InMemoryBatchLimiter, SupabaseBatchLimiter
            if self.in_memory:
                return InMemoryBatchLimiter()
            return SupabaseBatchLimiter(self.db)
        return self._get("batch_limiter", build)

    # Upscale

    @property
    def image_processor(self) -> "IImageProcessor":
        def build() -> "IImageProcessor":
            from providers.factory import create_image_processor
            return create_image_processor(self._settings, self.inference_http_client)
        return self._get("image_processor", build)

    @property
    def upscale(self) -> "IUpscaleService":
        def build() -> "IUpscaleService":
            from modules.upscale.service import UpscaleService
            return UpscaleService(
                catalog=self.catalog,
                ledger=self.ledger,
                processor=self.image_processor,
                batch_limiter=self.batch_limiter,
                profiles=self.subscription_repository,
            )
        return self._get("upscale", build)

    # Subscriptions

    @property
    def subscription_repository(self) -> "ISubscriptionRepository":
        def build() -> "ISubscriptionRepository":
            from modules.subscriptions.repository import (
                InMemorySubscriptionRepository,
                SupabaseSubscriptionRepository,
            )
            if self.in_memory:
                return InMemorySubscriptionRepository()
            return SupabaseSubscriptionRepository(self.db)
        return self._get("subscription_repository", build)

    @property
    def billing_gateway(self) -> "IBillingGateway":
        def build() -> "IBillingGateway":
            from modules.subscriptions.gateway import StripeBillingGateway
            return StripeBillingGateway(self._settings.stripe_secret_key)
        return self._get("billing_gateway", build)

    @property
    def plan_changes(self) -> "IPlanChangeService":
        def build() -> "IPlanChangeService":
            from modules.subscriptions.service import PlanChangeService
            return PlanChangeService(
                catalog=self.catalog,
                repository=self.subscription_repository,
                gateway=self.billing_gateway,
            )
        return self._get("plan_changes", build)

    # Email

    @property
    def usage_tracker(self) -> "IProviderUsageTracker":
        def build() -> "IProviderUsageTracker":
            from providers.usage import InMemoryProviderUsageTracker, SupabaseProviderUsageTracker
            if self.in_memory:
                return InMemoryProviderUsageTracker()
            return SupabaseProviderUsageTracker(self.db)
        return self._get("usage_tracker", build)

    @property
    def email_preferences(self) -> "IEmailPreferenceStore":
        def build() -> "IEmailPreferenceStore":
            from modules.notifications.preferences import (
                InMemoryEmailPreferenceStore,
                SupabaseEmailPreferenceStore,
            )
            if self.in_memory:
                return InMemoryEmailPreferenceStore()
            return SupabaseEmailPreferenceStore(self.db)
        return self._get("email_preferences", build)

    @property
    def email_log(self) -> "IEmailLog":
        def build() -> "IEmailLog":
            from modules.notifications.email_log import InMemoryEmailLog, SupabaseEmailLog
            if self.in_memory:
                return InMemoryEmailLog()
            return SupabaseEmailLog(self.db)
        return self._get("email_log", build)

    @property
    def email(self) -> "IEmailService":
        def build() -> "IEmailService":
            from modules.notifications.service import EmailService
            from providers.factory import create_email_selector
            return EmailService(
                selector=create_email_selector(self._settings, self.usage_tracker, self.http_client),
                preferences=self.email_preferences,
                email_log=self.email_log,
            )
        return self._get("email", build)

    async def aclose(self) -> None:
        """Release network resources held by the container."""
        for name in ("http_client", "inference_http_client"):
            client: Optional[httpx.AsyncClient] = self._instances.get(name)
            if client is not None:
                await client.aclose()
        self._instances.clear()


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_container(request: Request) -> ServiceContainer:
    """Get the container built by create_app()."""
    return request.app.state.container


def get_settings_dependency(request: Request) -> Settings:
    return get_container(request).settings


def get_plan_catalog(request: Request) -> "IPlanCatalog":
    """FastAPI dependency for the plan catalog."""
    return get_container(request).catalog


def get_credit_ledger(request: Request) -> "ICreditLedger":
    """FastAPI dependency for the credit ledger."""
    return get_container(request).ledger


def get_rate_limiter(request: Request) -> "IRateLimiter":
    """FastAPI dependency for the per-user request rate limiter."""
    return get_container(request).rate_limiter


def get_batch_limiter(request: Request) -> "IBatchLimiter":
    """FastAPI dependency for the hourly batch limiter."""
    return get_container(request).batch_limiter


def get_upscale_service(request: Request) -> "IUpscaleService":
    """FastAPI dependency for the upscale service."""
    return get_container(request).upscale


def get_plan_change_service(request: Request) -> "IPlanChangeService":
    """FastAPI dependency for the plan change orchestrator."""
    return get_container(request).plan_changes


def get_email_service(request: Request) -> "IEmailService":
    """FastAPI dependency for the email service."""
    return get_container(request).email

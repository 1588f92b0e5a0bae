"""
Subscription module interfaces.

IBillingGateway is the seam to the external subscription-billing system;
ISubscriptionRepository is the seam to the local mirror.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from .models import (
    ChangePreview,
    ChangeResult,
    ExternalSubscription,
    InvoicePreview,
    SubscriptionMirror,
    SubscriptionStatusResponse,
)


@runtime_checkable
class IBillingGateway(Protocol):
    """
    Subscription, schedule and invoice-preview primitives.

    All methods raise ProviderError when the billing system fails.
    """

    async def retrieve_subscription(self, subscription_id: str) -> ExternalSubscription:
        """Fetch the latest state of a subscription."""
        ...

    async def preview_price_change(
        self,
        customer_id: str,
        subscription: ExternalSubscription,
        target_price_id: str,
    ) -> InvoicePreview:
        """
        Preview the invoice for swapping the subscription's item to a new price.

        Args:
            customer_id: Billing customer id
            subscription: Latest subscription state
            target_price_id: Price to swap to

        Returns:
            Preview invoice including proration lines
        """
        ...

    async def update_subscription_price(
        self,
        subscription: ExternalSubscription,
        target_price_id: str,
    ) -> ExternalSubscription:
        """
        Swap the subscription's item to a new price immediately, with proration.

        The change aborts if the proration charge cannot be collected.
        """
        ...

    async def schedule_price_change(
        self,
        subscription: ExternalSubscription,
        target_price_id: str,
    ) -> str:
        """
        Move to a new price at the end of the current period.

        Reuses the subscription's schedule if one is attached.

        Returns:
            Schedule id
        """
        ...

    async def release_schedule(self, schedule_id: str) -> None:
        """Detach a schedule, leaving the subscription as-is."""
        ...


@runtime_checkable
class ISubscriptionRepository(Protocol):
    """Local subscription mirror and profile tier label."""

    async def get_active_subscription(self, user_id: str) -> Optional[SubscriptionMirror]:
        """
        Get the user's newest active or trialing subscription.

        Returns:
            SubscriptionMirror or None
        """
        ...

    async def get_billing_customer_id(self, user_id: str) -> Optional[str]:
        """Get the user's billing customer id, if any."""
        ...

    async def schedule_downgrade(
        self,
        subscription_id: str,
        scheduled_price_id: str,
        scheduled_change_date: datetime,
    ) -> None:
        """Record a pending downgrade. The current price_id is left alone."""
        ...

    async def apply_upgrade(
        self,
        subscription_id: str,
        price_id: str,
        period_start: datetime,
        period_end: datetime,
    ) -> None:
        """Record an immediate price change and clear any pending downgrade."""
        ...

    async def get_profile_tier(self, user_id: str) -> Optional[str]:
        """Get the plan-tier label used for feature gating."""
        ...

    async def set_profile_tier(self, user_id: str, tier: str) -> None:
        """Set the plan-tier label used for feature gating."""
        ...


@runtime_checkable
class IPlanChangeService(Protocol):
    """
    Previews and applies plan changes.
    """

    async def get_status(self, user_id: str) -> SubscriptionStatusResponse:
        """Get the user's subscription and plan-change state."""
        ...

    async def preview_change(self, user_id: str, target_price_id: str) -> ChangePreview:
        """
        Preview a change to another plan.

        Raises:
            InvalidPriceIdError: If the target is unknown or not a plan
            NoActiveSubscriptionError: If the user has no active subscription
            SamePlanError: If the target is the current plan
            MissingBillingCustomerError: If an upgrade has no billing customer
            ProviderError: If the billing system fails
        """
        ...

    async def apply_change(self, user_id: str, target_price_id: str) -> ChangeResult:
        """
        Apply a change: upgrades now, downgrades at period end.

        Raises:
            InvalidPriceIdError: If the target is unknown or not a plan
            NoActiveSubscriptionError: If the user has no active subscription
            SamePlanError: If the target is the current plan
            SubscriptionModifiedError: If the billing system's price differs from the mirror
            ProviderError: If the billing system fails (mirror unchanged)
        """
        ...

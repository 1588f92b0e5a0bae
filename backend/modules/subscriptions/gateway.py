"""
Stripe billing gateway.

The Stripe SDK is synchronous; calls run in a worker thread so the event
loop keeps serving other requests while Stripe responds.
"""

import asyncio
import logging
from functools import partial
from typing import Any, Callable

import stripe
from stripe import StripeError

from shared.exceptions import ProviderError

from .exceptions import InvalidSubscriptionStateError
from .models import ExternalSubscription, InvoicePreview
from .stripe_adapter import invoice_preview_from_stripe, subscription_from_stripe

logger = logging.getLogger(__name__)


def _provider_error(e: StripeError, action: str) -> ProviderError:
    unavailable = isinstance(e, (stripe.APIConnectionError, stripe.RateLimitError))
    return ProviderError(
        e.user_message or str(e) or f"Stripe request failed: {action}",
        service="stripe",
        vendor_code=e.code,
        details={"action": action, "http_status": e.http_status},
        unavailable=unavailable,
    )


def _as_dict(result: Any) -> Any:
    """Stripe resources are not dicts; the adapter reads plain mappings."""
    if isinstance(result, stripe.StripeObject):
        return result.to_dict()
    return result


class StripeBillingGateway:
    """
    IBillingGateway over the Stripe API.
    """

    def __init__(self, api_key: str):
        """
        Args:
            api_key: Stripe secret key, passed per request
        """
        if not api_key:
            raise RuntimeError("Stripe configuration missing. Set STRIPE_SECRET_KEY.")
        self._api_key = api_key

    async def _call(self, action: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            result = await asyncio.to_thread(partial(fn, *args, api_key=self._api_key, **kwargs))
        except StripeError as e:
            logger.error(f"Stripe {action} failed: {e}")
            raise _provider_error(e, action) from e
        return _as_dict(result)

    def _normalize(self, subscription: Any) -> ExternalSubscription:
        try:
            return subscription_from_stripe(subscription)
        except ValueError as e:
            raise InvalidSubscriptionStateError(subscription.get("id", "unknown"), str(e)) from e

    async def retrieve_subscription(self, subscription_id: str) -> ExternalSubscription:
        subscription = await self._call(
            "retrieve_subscription", stripe.Subscription.retrieve, subscription_id,
        )
        return self._normalize(subscription)

    async def preview_price_change(
        self,
        customer_id: str,
        subscription: ExternalSubscription,
        target_price_id: str,
    ) -> InvoicePreview:
        invoice = await self._call(
            "preview_invoice",
            stripe.Invoice.create_preview,
            customer=customer_id,
            subscription=subscription.id,
            subscription_details={
                "items": [{"id": subscription.item_id, "price": target_price_id}],
                "proration_behavior": "create_prorations",
            },
        )
        return invoice_preview_from_stripe(invoice)

    async def update_subscription_price(
        self,
        subscription: ExternalSubscription,
        target_price_id: str,
    ) -> ExternalSubscription:
        updated = await self._call(
            "update_subscription",
            stripe.Subscription.modify,
            subscription.id,
            items=[{"id": subscription.item_id, "price": target_price_id}],
            proration_behavior="create_prorations",
            payment_behavior="error_if_incomplete",
        )
        return self._normalize(updated)

    async def schedule_price_change(
        self,
        subscription: ExternalSubscription,
        target_price_id: str,
    ) -> str:
        schedule_id = subscription.schedule_id
        if schedule_id:
            logger.info(f"Reusing schedule {schedule_id} for subscription {subscription.id}")
        else:
            schedule = await self._call(
                "create_schedule",
                stripe.SubscriptionSchedule.create,
                from_subscription=subscription.id,
            )
            schedule_id = schedule["id"]

        period_start = int(subscription.current_period_start.timestamp())
        period_end = int(subscription.current_period_end.timestamp())

        await self._call(
            "update_schedule",
            stripe.SubscriptionSchedule.modify,
            schedule_id,
            end_behavior="release",
            phases=[
                {
                    "items": [{"price": subscription.price_id, "quantity": 1}],
                    "start_date": period_start,
                    "end_date": period_end,
                    "proration_behavior": "none",
                },
                {
                    "items": [{"price": target_price_id, "quantity": 1}],
                    "start_date": period_end,
                    "proration_behavior": "none",
                },
            ],
        )
        return schedule_id

    async def release_schedule(self, schedule_id: str) -> None:
        await self._call("release_schedule", stripe.SubscriptionSchedule.release, schedule_id)

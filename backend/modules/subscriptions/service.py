"""
Plan change orchestration.

Upgrades are applied immediately with proration; downgrades are scheduled
for the end of the current billing period through a billing-system
schedule. The local mirror is written only after the billing system
accepts the change. Credits are never granted here; that happens when the
billing system's subscription-updated notification is processed.
"""

import logging
from typing import Iterable

from modules.billing.interfaces import IPlanCatalog
from modules.billing.models import Plan

from .exceptions import (
    MissingBillingCustomerError,
    NoActiveSubscriptionError,
    SamePlanError,
    SubscriptionModifiedError,
)
from .interfaces import IBillingGateway, ISubscriptionRepository
from .models import (
    ChangePreview,
    ChangeResult,
    ChangeStatus,
    ExternalSubscription,
    InvoiceLine,
    PlanSummary,
    SubscriptionMirror,
    SubscriptionState,
    SubscriptionStatusResponse,
)

logger = logging.getLogger(__name__)


def sum_change_lines(lines: Iterable[InvoiceLine], plan_names: Iterable[str]) -> int:
    """
    Sum the proration lines that belong to a plan swap.

    A line belongs to the swap when it is a proration line and its
    description mentions one of the plan names (case-insensitive).
    Unrelated lines (pending invoice items, other subscriptions) are skipped.
    The sign is kept: negative totals are credits.
    """
    # TODO: match on line-item metadata once prices carry a plan key
    names = [name.lower() for name in plan_names if name]
    total = 0
    for line in lines:
        if not line.proration or not line.description:
            continue
        description = line.description.lower()
        if any(name in description for name in names):
            total += line.amount
    return total


class PlanChangeService:
    """
    Previews and applies subscription plan changes.
    """

    def __init__(
        self,
        catalog: IPlanCatalog,
        repository: ISubscriptionRepository,
        gateway: IBillingGateway,
    ):
        self._catalog = catalog
        self._repository = repository
        self._gateway = gateway

    async def get_status(self, user_id: str) -> SubscriptionStatusResponse:
        subscription = await self._repository.get_active_subscription(user_id)
        if subscription is None:
            return SubscriptionStatusResponse(state=SubscriptionState.NO_SUBSCRIPTION)

        plan = self._catalog.get_plan_by_price_id(subscription.price_id)
        scheduled = (
            self._catalog.get_plan_by_price_id(subscription.scheduled_price_id)
            if subscription.scheduled_price_id
            else None
        )
        return SubscriptionStatusResponse(
            state=subscription.state,
            subscription=subscription,
            plan=PlanSummary.from_plan(plan) if plan else None,
            scheduled_plan=PlanSummary.from_plan(scheduled) if scheduled else None,
        )

    async def _load_change(
        self,
        user_id: str,
        target_price_id: str,
    ) -> tuple[Plan, SubscriptionMirror]:
        target = self._catalog.require_plan_price(target_price_id)

        subscription = await self._repository.get_active_subscription(user_id)
        if subscription is None:
            raise NoActiveSubscriptionError(user_id)

        if subscription.price_id == target_price_id:
            raise SamePlanError(target_price_id)

        return target, subscription

    def _summary(self, price_id: str) -> PlanSummary:
        plan = self._catalog.get_plan_by_price_id(price_id)
        if plan is None:
            # Legacy or unlisted price on the mirror
            return PlanSummary(key="unknown", name="Unknown", price_id=price_id, credits_per_cycle=0)
        return PlanSummary.from_plan(plan)

    async def preview_change(self, user_id: str, target_price_id: str) -> ChangePreview:
        target, subscription = await self._load_change(user_id, target_price_id)
        current = self._summary(subscription.price_id)
        is_downgrade = self._catalog.is_downgrade(subscription.price_id, target_price_id)

        if is_downgrade:
            # Period end comes from the billing system, not the mirror
            external = await self._gateway.retrieve_subscription(subscription.id)
            return ChangePreview(
                current_plan=current,
                new_plan=PlanSummary.from_plan(target),
                is_downgrade=True,
                amount_due=0,
                currency=target.currency,
                effective_immediately=False,
                effective_date=external.current_period_end,
                period_start=external.current_period_start,
                period_end=external.current_period_end,
            )

        customer_id = await self._repository.get_billing_customer_id(user_id)
        if not customer_id:
            raise MissingBillingCustomerError(user_id)

        external = await self._gateway.retrieve_subscription(subscription.id)
        invoice = await self._gateway.preview_price_change(customer_id, external, target_price_id)
        amount_due = sum_change_lines(invoice.lines, [current.name, target.name])

        return ChangePreview(
            current_plan=current,
            new_plan=PlanSummary.from_plan(target),
            is_downgrade=False,
            amount_due=amount_due,
            currency=invoice.currency,
            effective_immediately=True,
            period_start=invoice.period_start,
            period_end=invoice.period_end,
        )

    async def apply_change(self, user_id: str, target_price_id: str) -> ChangeResult:
        target, subscription = await self._load_change(user_id, target_price_id)

        external = await self._gateway.retrieve_subscription(subscription.id)
        if external.price_id != subscription.price_id:
            logger.warning(
                f"Subscription {subscription.id} changed externally: "
                f"mirror has {subscription.price_id}, billing has {external.price_id}"
            )
            raise SubscriptionModifiedError(subscription.price_id, external.price_id)

        # Classify against the state just fetched
        if self._catalog.is_downgrade(external.price_id, target_price_id):
            result = await self._schedule_downgrade(subscription, external, target_price_id)
        else:
            result = await self._apply_upgrade(subscription, external, target_price_id)

        await self._update_profile_tier(user_id, target)
        return result

    async def _schedule_downgrade(
        self,
        subscription: SubscriptionMirror,
        external: ExternalSubscription,
        target_price_id: str,
    ) -> ChangeResult:
        schedule_id = await self._gateway.schedule_price_change(external, target_price_id)
        effective_date = external.current_period_end
        logger.info(
            f"Scheduled downgrade of {subscription.id} to {target_price_id} "
            f"at {effective_date.isoformat()} (schedule {schedule_id})"
        )

        try:
            await self._repository.schedule_downgrade(subscription.id, target_price_id, effective_date)
        except Exception:
            # The billing notification reconciles the mirror later
            logger.error(
                f"Downgrade scheduled in billing but mirror update failed for {subscription.id}",
                exc_info=True,
            )

        return ChangeResult(
            subscription_id=subscription.id,
            status=ChangeStatus.SCHEDULED,
            is_downgrade=True,
            effective_immediately=False,
            price_id=subscription.price_id,
            scheduled_price_id=target_price_id,
            effective_date=effective_date,
            schedule_id=schedule_id,
            current_period_start=external.current_period_start,
            current_period_end=external.current_period_end,
        )

    async def _apply_upgrade(
        self,
        subscription: SubscriptionMirror,
        external: ExternalSubscription,
        target_price_id: str,
    ) -> ChangeResult:
        if external.schedule_id:
            # A pending downgrade schedule would otherwise override the upgrade
            await self._gateway.release_schedule(external.schedule_id)

        updated = await self._gateway.update_subscription_price(external, target_price_id)
        logger.info(f"Upgraded {subscription.id} to {target_price_id}")

        try:
            await self._repository.apply_upgrade(
                subscription.id,
                updated.price_id,
                updated.current_period_start,
                updated.current_period_end,
            )
        except Exception:
            logger.error(
                f"Upgrade applied in billing but mirror update failed for {subscription.id}",
                exc_info=True,
            )

        return ChangeResult(
            subscription_id=subscription.id,
            status=ChangeStatus.UPDATED,
            is_downgrade=False,
            effective_immediately=True,
            price_id=updated.price_id,
            current_period_start=updated.current_period_start,
            current_period_end=updated.current_period_end,
        )

    async def _update_profile_tier(self, user_id: str, plan: Plan) -> None:
        try:
            await self._repository.set_profile_tier(user_id, plan.key)
        except Exception:
            logger.error(f"Failed to update subscription tier for user {user_id}", exc_info=True)

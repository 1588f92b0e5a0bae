"""
Pytest fixtures for subscription module tests.

FakeBillingGateway stands in for Stripe: it holds subscription state and
records every call so tests can assert what reached the billing system.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from modules.billing.catalog import PlanCatalog
from modules.subscriptions.models import (
    ExternalSubscription,
    InvoiceLine,
    InvoicePreview,
    SubscriptionMirror,
    SubscriptionStatus,
)
from modules.subscriptions.repository import InMemorySubscriptionRepository
from modules.subscriptions.service import PlanChangeService


HOBBY_PRICE = "price_1SZmVyALMLhQocpf0H7n5ls8"
PRO_PRICE = "price_1SZmVzALMLhQocpfPyRX2W8D"
BUSINESS_PRICE = "price_1SZmVzALMLhQocpfqPk9spg4"

PERIOD_START = datetime(2025, 1, 1, tzinfo=timezone.utc)
PERIOD_END = datetime(2025, 2, 1, tzinfo=timezone.utc)


class FakeBillingGateway:
    """In-memory IBillingGateway."""

    def __init__(self) -> None:
        self.subscriptions: dict[str, ExternalSubscription] = {}
        self.preview_lines: list[InvoiceLine] = []
        self.calls: list[tuple] = []
        self.fail_with: Optional[Exception] = None
        self.schedules = 0

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def retrieve_subscription(self, subscription_id: str) -> ExternalSubscription:
        self.calls.append(("retrieve", subscription_id))
        self._check()
        return self.subscriptions[subscription_id]

    async def preview_price_change(self, customer_id, subscription, target_price_id) -> InvoicePreview:
        self.calls.append(("preview", customer_id, subscription.id, target_price_id))
        self._check()
        return InvoicePreview(
            amount_due=sum(line.amount for line in self.preview_lines),
            currency="usd",
            lines=list(self.preview_lines),
            period_start=subscription.current_period_start,
            period_end=subscription.current_period_end,
        )

    async def update_subscription_price(self, subscription, target_price_id) -> ExternalSubscription:
        self.calls.append(("update", subscription.id, target_price_id))
        self._check()
        updated = subscription.model_copy(update={"price_id": target_price_id, "schedule_id": None})
        self.subscriptions[subscription.id] = updated
        return updated

    async def schedule_price_change(self, subscription, target_price_id) -> str:
        self.calls.append(("schedule", subscription.id, target_price_id))
        self._check()
        schedule_id = subscription.schedule_id
        if not schedule_id:
            self.schedules += 1
            schedule_id = f"sub_sched_{self.schedules}"
        self.subscriptions[subscription.id] = subscription.model_copy(
            update={"schedule_id": schedule_id}
        )
        return schedule_id

    async def release_schedule(self, schedule_id: str) -> None:
        self.calls.append(("release", schedule_id))
        self._check()

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def catalog() -> PlanCatalog:
    return PlanCatalog()


@pytest.fixture
def repository() -> InMemorySubscriptionRepository:
    return InMemorySubscriptionRepository()


@pytest.fixture
def gateway() -> FakeBillingGateway:
    return FakeBillingGateway()


@pytest.fixture
def service(catalog, repository, gateway) -> PlanChangeService:
    return PlanChangeService(catalog=catalog, repository=repository, gateway=gateway)


@pytest.fixture
def subscribe(repository, gateway):
    """Put a user on a plan in both the mirror and the fake billing system."""

    def _subscribe(
        user_id: str = "user-1",
        price_id: str = PRO_PRICE,
        subscription_id: str = "sub_123",
        customer_id: Optional[str] = "cus_123",
        schedule_id: Optional[str] = None,
        scheduled_price_id: Optional[str] = None,
    ) -> SubscriptionMirror:
        mirror = SubscriptionMirror(
            id=subscription_id,
            user_id=user_id,
            price_id=price_id,
            status=SubscriptionStatus.ACTIVE,
            current_period_start=PERIOD_START,
            current_period_end=PERIOD_END,
            scheduled_price_id=scheduled_price_id,
            scheduled_change_date=PERIOD_END if scheduled_price_id else None,
            created_at=PERIOD_START,
        )
        repository.add_subscription(mirror)
        if customer_id:
            repository.set_billing_customer(user_id, customer_id)
        gateway.subscriptions[subscription_id] = ExternalSubscription(
            id=subscription_id,
            status="active",
            customer_id=customer_id,
            price_id=price_id,
            item_id="si_123",
            schedule_id=schedule_id,
            current_period_start=PERIOD_START,
            current_period_end=PERIOD_END,
        )
        return mirror

    return _subscribe

"""
Subscription mirror repositories.

The mirror is only written after the billing system accepted a change.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from shared.repository import BaseRepository

from .models import ACTIVE_STATUSES, SubscriptionMirror, SubscriptionStatus


class InMemorySubscriptionRepository:
    """
    Subscription mirror kept in dictionaries.

    For testing and development. Use SupabaseSubscriptionRepository for production.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, SubscriptionMirror] = {}
        self._customers: dict[str, str] = {}
        self._tiers: dict[str, str] = {}

    def add_subscription(self, subscription: SubscriptionMirror) -> None:
        self._subscriptions[subscription.id] = subscription

    def set_billing_customer(self, user_id: str, customer_id: str) -> None:
        self._customers[user_id] = customer_id

    def set_tier(self, user_id: str, tier: str) -> None:
        self._tiers[user_id] = tier

    def get(self, subscription_id: str) -> Optional[SubscriptionMirror]:
        return self._subscriptions.get(subscription_id)

    async def get_active_subscription(self, user_id: str) -> Optional[SubscriptionMirror]:
        candidates = [
            s for s in self._subscriptions.values()
            if s.user_id == user_id and s.status in ACTIVE_STATUSES
        ]
        if not candidates:
            return None
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return max(candidates, key=lambda s: s.created_at or epoch)

    async def get_billing_customer_id(self, user_id: str) -> Optional[str]:
        return self._customers.get(user_id)

    async def schedule_downgrade(
        self,
        subscription_id: str,
        scheduled_price_id: str,
        scheduled_change_date: datetime,
    ) -> None:
        current = self._subscriptions[subscription_id]
        self._subscriptions[subscription_id] = current.model_copy(update={
            "scheduled_price_id": scheduled_price_id,
            "scheduled_change_date": scheduled_change_date,
        })

    async def apply_upgrade(
        self,
        subscription_id: str,
        price_id: str,
        period_start: datetime,
        period_end: datetime,
    ) -> None:
        current = self._subscriptions[subscription_id]
        self._subscriptions[subscription_id] = current.model_copy(update={
            "price_id": price_id,
            "current_period_start": period_start,
            "current_period_end": period_end,
            "scheduled_price_id": None,
            "scheduled_change_date": None,
        })

    async def get_profile_tier(self, user_id: str) -> Optional[str]:
        return self._tiers.get(user_id)

    async def set_profile_tier(self, user_id: str, tier: str) -> None:
        self._tiers[user_id] = tier


class SupabaseSubscriptionRepository(BaseRepository[SubscriptionMirror]):
    """
    Subscription mirror in the subscriptions and profiles tables.
    """

    async def get_active_subscription(self, user_id: str) -> Optional[SubscriptionMirror]:
        result = (
            self._db.table("subscriptions")
            .select("*")
            .eq("user_id", user_id)
            .in_("status", [s.value for s in ACTIVE_STATUSES])
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return self._map_to_subscription(result.data[0])

    async def get_billing_customer_id(self, user_id: str) -> Optional[str]:
        result = (
            self._db.table("profiles")
            .select("stripe_customer_id")
            .eq("id", user_id)
            .execute()
        )
        row = self._first_row(result.data)
        return row.get("stripe_customer_id") if row else None

    async def schedule_downgrade(
        self,
        subscription_id: str,
        scheduled_price_id: str,
        scheduled_change_date: datetime,
    ) -> None:
        self._db.table("subscriptions").update({
            "scheduled_price_id": scheduled_price_id,
            "scheduled_change_date": scheduled_change_date.isoformat(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", subscription_id).execute()

    async def apply_upgrade(
        self,
        subscription_id: str,
        price_id: str,
        period_start: datetime,
        period_end: datetime,
    ) -> None:
        self._db.table("subscriptions").update({
            "price_id": price_id,
            "current_period_start": period_start.isoformat(),
            "current_period_end": period_end.isoformat(),
            "scheduled_price_id": None,
            "scheduled_change_date": None,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", subscription_id).execute()

    async def get_profile_tier(self, user_id: str) -> Optional[str]:
        result = (
            self._db.table("profiles")
            .select("subscription_tier")
            .eq("id", user_id)
            .execute()
        )
        row = self._first_row(result.data)
        return row.get("subscription_tier") if row else None

    async def set_profile_tier(self, user_id: str, tier: str) -> None:
        self._db.table("profiles").update({
            "subscription_tier": tier,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", user_id).execute()

    def _map_to_subscription(self, row: dict[str, Any]) -> SubscriptionMirror:
        return SubscriptionMirror(
            id=row["id"],
            user_id=row["user_id"],
            price_id=row["price_id"],
            status=SubscriptionStatus(row["status"]),
            current_period_start=self._parse_timestamp(row.get("current_period_start")),
            current_period_end=self._parse_timestamp(row.get("current_period_end")),
            scheduled_price_id=row.get("scheduled_price_id"),
            scheduled_change_date=self._parse_timestamp(row.get("scheduled_change_date")),
            created_at=self._parse_timestamp(row.get("created_at")),
        )

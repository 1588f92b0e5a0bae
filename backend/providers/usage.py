"""Per-provider usage counters with lazy UTC day/month resets.

There is no background reset job: counters are reset the next time they
are read or incremented after a UTC day or month boundary.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, runtime_checkable

from supabase import Client

from shared.repository import BaseRepository

from .models import FreeTierQuota, ProviderUsage

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def apply_resets(usage: ProviderUsage, now: datetime) -> ProviderUsage:
    """Zero the daily/monthly counters if their UTC period has rolled over.

    Args:
        usage: Stored counters
        now: Current UTC time

    Returns:
        The counters as they should be seen at `now`
    """
    updates: dict = {}
    if usage.last_daily_reset.astimezone(timezone.utc).date() != now.date():
        updates["daily_requests"] = 0
        updates["last_daily_reset"] = now
    last_month = usage.last_monthly_reset.astimezone(timezone.utc)
    if (last_month.year, last_month.month) != (now.year, now.month):
        updates["monthly_credits"] = 0
        updates["last_monthly_reset"] = now
    if not updates:
        return usage
    return usage.model_copy(update=updates)


def quota_allows(usage: ProviderUsage, quota: FreeTierQuota) -> bool:
    """Check counters against caps. A cap of 0 is not enforced."""
    if quota.unlimited:
        return True
    if quota.daily_requests and usage.daily_requests >= quota.daily_requests:
        return False
    if quota.monthly_credits and usage.monthly_credits >= quota.monthly_credits:
        return False
    return True


@runtime_checkable
class IProviderUsageTracker(Protocol):
    """Interface for provider usage counters."""

    async def get_usage(self, provider: str) -> ProviderUsage:
        """Get counters for a provider, applying any due reset."""
        ...

    async def increment_usage(
        self,
        provider: str,
        requests: int = 1,
        credits: int = 1,
    ) -> ProviderUsage:
        """Add to a provider's counters, applying any due reset first."""
        ...

    async def is_within_quota(self, provider: str, quota: FreeTierQuota) -> bool:
        """Check whether a provider still has free-tier quota left."""
        ...

    async def get_all_usage(self) -> list[ProviderUsage]:
        """Get counters for every provider that has any."""
        ...


class InMemoryProviderUsageTracker:
    """Usage counters kept in a dictionary. For testing and development."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utc_now
        self._usage: dict[str, ProviderUsage] = {}

    def _current(self, provider: str) -> ProviderUsage:
        now = self._clock()
        usage = self._usage.get(provider) or ProviderUsage(
            provider=provider,
            last_daily_reset=now,
            last_monthly_reset=now,
        )
        usage = apply_resets(usage, now)
        self._usage[provider] = usage
        return usage

    async def get_usage(self, provider: str) -> ProviderUsage:
        return self._current(provider)

    async def increment_usage(
        self,
        provider: str,
        requests: int = 1,
        credits: int = 1,
    ) -> ProviderUsage:
        usage = self._current(provider)
        updated = usage.model_copy(update={
            "daily_requests": usage.daily_requests + requests,
            "monthly_credits": usage.monthly_credits + credits,
        })
        self._usage[provider] = updated
        return updated

    async def is_within_quota(self, provider: str, quota: FreeTierQuota) -> bool:
        return quota_allows(self._current(provider), quota)

    async def get_all_usage(self) -> list[ProviderUsage]:
        return [self._current(name) for name in sorted(self._usage)]


class SupabaseProviderUsageTracker(BaseRepository[ProviderUsage]):
    """Usage counters in the email_provider_usage table.

    Increments go through the increment_email_provider_usage RPC, which
    applies the same reset rules inside the database.
    """

    def __init__(self, db: Client, clock: Optional[Clock] = None):
        super().__init__(db)
        self._clock = clock or utc_now

    def _map_row(self, row: dict) -> ProviderUsage:
        return ProviderUsage(
            provider=row["provider_name"],
            daily_requests=row.get("requests_today") or 0,
            monthly_credits=row.get("credits_this_month") or 0,
            last_daily_reset=self._parse_timestamp(row.get("last_daily_reset")) or self._clock(),
            last_monthly_reset=self._parse_timestamp(row.get("last_monthly_reset")) or self._clock(),
        )

    async def get_usage(self, provider: str) -> ProviderUsage:
        now = self._clock()
        result = (
            self._db.table("email_provider_usage")
            .select("*")
            .eq("provider_name", provider)
            .execute()
        )
        row = self._first_row(result.data)
        if row is None:
            return ProviderUsage(provider=provider, last_daily_reset=now, last_monthly_reset=now)

        stored = self._map_row(row)
        usage = apply_resets(stored, now)
        if usage is not stored:
            self._db.table("email_provider_usage").update({
                "requests_today": usage.daily_requests,
                "credits_this_month": usage.monthly_credits,
                "last_daily_reset": usage.last_daily_reset.isoformat(),
                "last_monthly_reset": usage.last_monthly_reset.isoformat(),
            }).eq("provider_name", provider).execute()
        return usage

    async def increment_usage(
        self,
        provider: str,
        requests: int = 1,
        credits: int = 1,
    ) -> ProviderUsage:
        result = self._db.rpc("increment_email_provider_usage", {
            "p_provider_name": provider,
            "p_requests": requests,
            "p_credits": credits,
        }).execute()
        row = self._first_row(result.data)
        if row is None:
            return await self.get_usage(provider)
        return self._map_row(row)

    async def is_within_quota(self, provider: str, quota: FreeTierQuota) -> bool:
        if quota.unlimited:
            return True
        return quota_allows(await self.get_usage(provider), quota)

    async def get_all_usage(self) -> list[ProviderUsage]:
        now = self._clock()
        result = self._db.table("email_provider_usage").select("*").order("provider_name").execute()
        return [apply_resets(self._map_row(row), now) for row in result.data or []]

"""Tests for provider usage counters."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from providers.models import FreeTierQuota, ProviderUsage
from providers.usage import (
    IProviderUsageTracker,
    SupabaseProviderUsageTracker,
    apply_resets,
    quota_allows,
)


def usage_at(last_daily: datetime, last_monthly: datetime, daily: int = 5, monthly: int = 50) -> ProviderUsage:
    return ProviderUsage(
        provider="brevo",
        daily_requests=daily,
        monthly_credits=monthly,
        last_daily_reset=last_daily,
        last_monthly_reset=last_monthly,
    )


class TestApplyResets:
    def test_same_day_unchanged(self):
        stamp = datetime(2025, 1, 15, 1, 0, tzinfo=timezone.utc)
        usage = usage_at(stamp, stamp)
        assert apply_resets(usage, datetime(2025, 1, 15, 23, 59, tzinfo=timezone.utc)) is usage

    def test_new_day_resets_daily_only(self):
        stamp = datetime(2025, 1, 15, 23, 0, tzinfo=timezone.utc)
        now = datetime(2025, 1, 16, 0, 5, tzinfo=timezone.utc)

        result = apply_resets(usage_at(stamp, stamp), now)

        assert result.daily_requests == 0
        assert result.last_daily_reset == now
        assert result.monthly_credits == 50

    def test_new_month_resets_both(self):
        stamp = datetime(2025, 1, 31, 22, 0, tzinfo=timezone.utc)
        now = datetime(2025, 2, 1, 0, 0, tzinfo=timezone.utc)

        result = apply_resets(usage_at(stamp, stamp), now)

        assert result.daily_requests == 0
        assert result.monthly_credits == 0
        assert result.last_monthly_reset == now

    def test_same_month_number_next_year_resets(self):
        stamp = datetime(2024, 1, 15, tzinfo=timezone.utc)
        now = datetime(2025, 1, 15, tzinfo=timezone.utc)
        assert apply_resets(usage_at(stamp, stamp), now).monthly_credits == 0


class TestQuotaAllows:
    @pytest.fixture
    def stamp(self):
        return datetime(2025, 1, 15, tzinfo=timezone.utc)

    def test_zero_caps_always_allow(self, stamp):
        usage = usage_at(stamp, stamp, daily=10_000, monthly=10_000)
        assert quota_allows(usage, FreeTierQuota())

    def test_daily_cap(self, stamp):
        quota = FreeTierQuota(daily_requests=5, monthly_credits=100)
        assert not quota_allows(usage_at(stamp, stamp, daily=5, monthly=0), quota)
        assert quota_allows(usage_at(stamp, stamp, daily=4, monthly=0), quota)

    def test_monthly_cap(self, stamp):
        quota = FreeTierQuota(daily_requests=5, monthly_credits=100)
        assert not quota_allows(usage_at(stamp, stamp, daily=0, monthly=100), quota)

    def test_only_monthly_capped(self, stamp):
        quota = FreeTierQuota(monthly_credits=100)
        assert quota_allows(usage_at(stamp, stamp, daily=9_999, monthly=99), quota)


class TestInMemoryProviderUsageTracker:
    def test_implements_interface(self, usage):
        assert isinstance(usage, IProviderUsageTracker)

    @pytest.mark.asyncio
    async def test_new_provider_starts_at_zero(self, usage):
        result = await usage.get_usage("brevo")
        assert result.daily_requests == 0
        assert result.monthly_credits == 0

    @pytest.mark.asyncio
    async def test_increment(self, usage):
        await usage.increment_usage("brevo")
        result = await usage.increment_usage("brevo", requests=1, credits=2)

        assert result.daily_requests == 2
        assert result.monthly_credits == 3

    @pytest.mark.asyncio
    async def test_daily_quota_recovers_next_day(self, usage, clock):
        quota = FreeTierQuota(daily_requests=2, monthly_credits=100)
        await usage.increment_usage("brevo")
        await usage.increment_usage("brevo")
        assert not await usage.is_within_quota("brevo", quota)

        clock.advance(days=1)

        assert await usage.is_within_quota("brevo", quota)
        assert (await usage.get_usage("brevo")).monthly_credits == 2

    @pytest.mark.asyncio
    async def test_get_all_usage_sorted(self, usage):
        await usage.increment_usage("resend")
        await usage.increment_usage("brevo")

        names = [u.provider for u in await usage.get_all_usage()]

        assert names == ["brevo", "resend"]


class TestSupabaseProviderUsageTracker:
    @pytest.fixture
    def mock_db(self):
        return MagicMock()

    @pytest.fixture
    def tracker(self, mock_db, clock):
        return SupabaseProviderUsageTracker(mock_db, clock=clock)

    @pytest.mark.asyncio
    async def test_increment_uses_rpc(self, tracker, mock_db):
        mock_db.rpc.return_value.execute.return_value.data = [{
            "provider_name": "brevo",
            "requests_today": 3,
            "credits_this_month": 40,
            "last_daily_reset": "2025-01-15T00:00:00+00:00",
            "last_monthly_reset": "2025-01-01T00:00:00+00:00",
        }]

        result = await tracker.increment_usage("brevo")

        mock_db.rpc.assert_called_once_with("increment_email_provider_usage", {
            "p_provider_name": "brevo",
            "p_requests": 1,
            "p_credits": 1,
        })
        assert result.daily_requests == 3
        assert result.monthly_credits == 40

    @pytest.mark.asyncio
    async def test_get_usage_writes_back_due_reset(self, tracker, mock_db):
        mock_db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [{
            "provider_name": "brevo",
            "requests_today": 300,
            "credits_this_month": 500,
            "last_daily_reset": "2025-01-14T00:00:00+00:00",
            "last_monthly_reset": "2025-01-01T00:00:00+00:00",
        }]

        result = await tracker.get_usage("brevo")

        assert result.daily_requests == 0
        assert result.monthly_credits == 500
        update = mock_db.table.return_value.update.call_args[0][0]
        assert update["requests_today"] == 0

    @pytest.mark.asyncio
    async def test_get_usage_missing_row(self, tracker, mock_db):
        mock_db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []

        result = await tracker.get_usage("resend")

        assert result.provider == "resend"
        assert result.daily_requests == 0
        mock_db.table.return_value.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_unlimited_quota_skips_read(self, tracker, mock_db):
        assert await tracker.is_within_quota("brevo", FreeTierQuota())
        mock_db.table.assert_not_called()

"""Tests for the subscription mirror repositories."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from modules.subscriptions.interfaces import ISubscriptionRepository
from modules.subscriptions.models import SubscriptionMirror, SubscriptionStatus
from modules.subscriptions.repository import (
    InMemorySubscriptionRepository,
    SupabaseSubscriptionRepository,
)


JAN_1 = datetime(2025, 1, 1, tzinfo=timezone.utc)
FEB_1 = datetime(2025, 2, 1, tzinfo=timezone.utc)


def mirror(**overrides) -> SubscriptionMirror:
    fields = dict(
        id="sub_123",
        user_id="user-1",
        price_id="price_pro",
        status=SubscriptionStatus.ACTIVE,
        current_period_start=JAN_1,
        current_period_end=FEB_1,
        created_at=JAN_1,
    )
    fields.update(overrides)
    return SubscriptionMirror(**fields)


class TestInMemorySubscriptionRepository:
    @pytest.fixture
    def repository(self):
        return InMemorySubscriptionRepository()

    def test_implements_interface(self, repository):
        assert isinstance(repository, ISubscriptionRepository)

    @pytest.mark.asyncio
    async def test_returns_newest_active_subscription(self, repository):
        repository.add_subscription(mirror(id="sub_old", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)))
        repository.add_subscription(mirror(id="sub_new"))
        repository.add_subscription(mirror(
            id="sub_canceled",
            status=SubscriptionStatus.CANCELED,
            created_at=datetime(2025, 6, 1, tzinfo=timezone.utc),
        ))

        result = await repository.get_active_subscription("user-1")

        assert result.id == "sub_new"

    @pytest.mark.asyncio
    async def test_trialing_counts_as_active(self, repository):
        repository.add_subscription(mirror(status=SubscriptionStatus.TRIALING))
        assert await repository.get_active_subscription("user-1") is not None

    @pytest.mark.asyncio
    async def test_schedule_then_upgrade(self, repository):
        """An upgrade should clear a previously scheduled downgrade."""
        repository.add_subscription(mirror())
        await repository.schedule_downgrade("sub_123", "price_hobby", FEB_1)
        assert repository.get("sub_123").scheduled_price_id == "price_hobby"

        await repository.apply_upgrade("sub_123", "price_business", JAN_1, FEB_1)

        updated = repository.get("sub_123")
        assert updated.price_id == "price_business"
        assert updated.scheduled_price_id is None
        assert updated.scheduled_change_date is None


class TestSupabaseSubscriptionRepository:
    @pytest.fixture
    def mock_db(self):
        return MagicMock()

    @pytest.fixture
    def repository(self, mock_db):
        return SupabaseSubscriptionRepository(mock_db)

    @pytest.mark.asyncio
    async def test_get_active_subscription_maps_row(self, repository, mock_db):
        query = mock_db.table.return_value.select.return_value.eq.return_value.in_.return_value
        query.order.return_value.limit.return_value.execute.return_value.data = [{
            "id": "sub_123",
            "user_id": "user-1",
            "price_id": "price_pro",
            "status": "active",
            "current_period_start": "2025-01-01T00:00:00+00:00",
            "current_period_end": "2025-02-01T00:00:00Z",
            "scheduled_price_id": "price_hobby",
            "scheduled_change_date": "2025-02-01T00:00:00Z",
            "created_at": "2025-01-01T00:00:00Z",
        }]

        result = await repository.get_active_subscription("user-1")

        mock_db.table.assert_called_with("subscriptions")
        mock_db.table.return_value.select.return_value.eq.return_value.in_.assert_called_once_with(
            "status", ["active", "trialing"]
        )
        assert result.price_id == "price_pro"
        assert result.current_period_end == FEB_1
        assert result.scheduled_price_id == "price_hobby"

    @pytest.mark.asyncio
    async def test_get_active_subscription_none(self, repository, mock_db):
        query = mock_db.table.return_value.select.return_value.eq.return_value.in_.return_value
        query.order.return_value.limit.return_value.execute.return_value.data = []
        assert await repository.get_active_subscription("user-1") is None

    @pytest.mark.asyncio
    async def test_schedule_downgrade_leaves_price(self, repository, mock_db):
        """Scheduling a downgrade should only touch the scheduled columns."""
        await repository.schedule_downgrade("sub_123", "price_hobby", FEB_1)

        update = mock_db.table.return_value.update.call_args[0][0]
        assert "price_id" not in update
        assert update["scheduled_price_id"] == "price_hobby"
        assert update["scheduled_change_date"] == FEB_1.isoformat()
        mock_db.table.return_value.update.return_value.eq.assert_called_once_with("id", "sub_123")

    @pytest.mark.asyncio
    async def test_apply_upgrade_clears_schedule(self, repository, mock_db):
        await repository.apply_upgrade("sub_123", "price_business", JAN_1, FEB_1)

        update = mock_db.table.return_value.update.call_args[0][0]
        assert update["price_id"] == "price_business"
        assert update["scheduled_price_id"] is None
        assert update["scheduled_change_date"] is None

    @pytest.mark.asyncio
    async def test_profile_tier(self, repository, mock_db):
        mock_db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [
            {"subscription_tier": "pro"}
        ]
        assert await repository.get_profile_tier("user-1") == "pro"

        await repository.set_profile_tier("user-1", "hobby")
        update = mock_db.table.return_value.update.call_args[0][0]
        assert update["subscription_tier"] == "hobby"

    @pytest.mark.asyncio
    async def test_billing_customer_id(self, repository, mock_db):
        mock_db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [
            {"stripe_customer_id": "cus_123"}
        ]
        assert await repository.get_billing_customer_id("user-1") == "cus_123"

"""Tests for normalizing Stripe subscription and invoice objects."""

from datetime import datetime, timezone

import pytest

from modules.subscriptions.models import PeriodSource
from modules.subscriptions.stripe_adapter import (
    extract_billing_period,
    invoice_preview_from_stripe,
    subscription_from_stripe,
)


JAN_1 = datetime(2025, 1, 1, tzinfo=timezone.utc)
FEB_1 = datetime(2025, 2, 1, tzinfo=timezone.utc)


def ts(dt: datetime) -> int:
    return int(dt.timestamp())


def stripe_subscription(**overrides) -> dict:
    subscription = {
        "id": "sub_123",
        "status": "active",
        "customer": "cus_123",
        "schedule": None,
        "items": {
            "data": [{
                "id": "si_123",
                "price": {
                    "id": "price_pro",
                    "recurring": {"interval": "month", "interval_count": 1},
                },
            }],
        },
    }
    subscription.update(overrides)
    return subscription


class TestExtractBillingPeriod:
    def test_reads_subscription_fields(self):
        """Older API versions carry the period on the subscription."""
        sub = stripe_subscription(current_period_start=ts(JAN_1), current_period_end=ts(FEB_1))
        assert extract_billing_period(sub) == (JAN_1, FEB_1, PeriodSource.SUBSCRIPTION)

    def test_falls_back_to_item_fields(self):
        """Newer API versions carry the period on each item."""
        sub = stripe_subscription()
        sub["items"]["data"][0]["current_period_start"] = ts(JAN_1)
        sub["items"]["data"][0]["current_period_end"] = ts(FEB_1)
        assert extract_billing_period(sub) == (JAN_1, FEB_1, PeriodSource.ITEM)

    def test_computes_from_anchor(self):
        """Without period fields, walk forward from the billing anchor."""
        sub = stripe_subscription(billing_cycle_anchor=ts(datetime(2024, 11, 15, tzinfo=timezone.utc)))
        now = datetime(2025, 1, 20, tzinfo=timezone.utc)

        start, end, source = extract_billing_period(sub, now=now)

        assert source == PeriodSource.COMPUTED
        assert start == datetime(2025, 1, 15, tzinfo=timezone.utc)
        assert end == datetime(2025, 2, 15, tzinfo=timezone.utc)

    def test_computes_yearly_periods(self):
        sub = stripe_subscription(billing_cycle_anchor=ts(datetime(2023, 6, 1, tzinfo=timezone.utc)))
        sub["items"]["data"][0]["price"]["recurring"] = {"interval": "year", "interval_count": 1}

        start, end, _ = extract_billing_period(sub, now=datetime(2025, 1, 20, tzinfo=timezone.utc))

        assert start == datetime(2024, 6, 1, tzinfo=timezone.utc)
        assert end == datetime(2025, 6, 1, tzinfo=timezone.utc)

    def test_no_period_information(self):
        with pytest.raises(ValueError):
            extract_billing_period(stripe_subscription())


class TestSubscriptionFromStripe:
    def test_normalizes_fields(self):
        sub = stripe_subscription(
            current_period_start=ts(JAN_1),
            current_period_end=ts(FEB_1),
            schedule={"id": "sub_sched_1"},
            customer={"id": "cus_999"},
        )

        external = subscription_from_stripe(sub)

        assert external.id == "sub_123"
        assert external.price_id == "price_pro"
        assert external.item_id == "si_123"
        assert external.schedule_id == "sub_sched_1"
        assert external.customer_id == "cus_999"
        assert external.current_period_end == FEB_1

    def test_requires_items(self):
        with pytest.raises(ValueError):
            subscription_from_stripe(stripe_subscription(items={"data": []}))


class TestInvoicePreviewFromStripe:
    def test_reads_top_level_proration_flags(self):
        invoice = {
            "amount_due": 5550,
            "currency": "usd",
            "period_start": ts(JAN_1),
            "period_end": ts(FEB_1),
            "lines": {"data": [
                {"amount": -1900, "description": "Unused time on Hobby", "proration": True},
                {"amount": 14900, "description": "Business", "proration": False},
            ]},
        }

        preview = invoice_preview_from_stripe(invoice)

        assert preview.amount_due == 5550
        assert [line.proration for line in preview.lines] == [True, False]
        assert preview.period_start == JAN_1

    def test_reads_nested_proration_flags(self):
        """Newer API versions nest the flag under parent.subscription_item_details."""
        invoice = {
            "amount_due": 100,
            "currency": "eur",
            "lines": {"data": [{
                "amount": 100,
                "description": "Remaining time on Pro",
                "parent": {"subscription_item_details": {"proration": True}},
            }]},
        }

        preview = invoice_preview_from_stripe(invoice)

        assert preview.currency == "eur"
        assert preview.lines[0].proration is True
        assert preview.period_start is None
